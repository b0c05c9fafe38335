"""
Call Signaling Exceptions

Each carries the message that is reported back to the sender as
`error{message}`. None of them is fatal to the connection.
"""
from callrelay.config import constants


class SignalingError(Exception):
    """Base exception for signaling errors"""
    default_message = constants.ERR_INVALID_FORMAT

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CallNotFoundError(SignalingError):
    """Raised when a call id is unknown"""
    default_message = constants.ERR_CALL_NOT_FOUND


class CallAlreadyExistsError(SignalingError):
    """Raised when a call id is live or was used before"""
    default_message = constants.ERR_CALL_EXISTS


class NotParticipantError(SignalingError):
    """Raised when the sender is neither caller nor target of the call"""
    default_message = constants.ERR_NOT_PARTICIPANT


class InvalidTransitionError(SignalingError):
    """Raised when an event is not legal in the call's current phase"""
    default_message = constants.ERR_ALREADY_ANSWERED


class NotRegisteredError(SignalingError):
    """Raised when an unregistered connection sends a call command"""
    default_message = constants.ERR_NOT_REGISTERED


class InvalidCallTargetError(SignalingError):
    """Raised when a caller targets their own identity"""
    default_message = constants.ERR_SELF_CALL
