"""
Call Session Module

The call table, its records, and the signaling exceptions.
"""
from .models import CallId, CallPhase, CallSession, TERMINAL_PHASES
from .table import CallSessionTable
from .exceptions import (
    SignalingError,
    CallNotFoundError,
    CallAlreadyExistsError,
    NotParticipantError,
    InvalidTransitionError,
    NotRegisteredError,
    InvalidCallTargetError,
)

__all__ = [
    "CallId",
    "CallPhase",
    "CallSession",
    "CallSessionTable",
    "TERMINAL_PHASES",
    "SignalingError",
    "CallNotFoundError",
    "CallAlreadyExistsError",
    "NotParticipantError",
    "InvalidTransitionError",
    "NotRegisteredError",
    "InvalidCallTargetError",
]
