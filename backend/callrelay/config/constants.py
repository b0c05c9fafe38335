"""
Protocol constants shared by the schemas, the router and the tests.

Note: Environment-dependent settings belong in settings.py.
"""

# ==============================================================================
# INBOUND MESSAGE TYPES
# ==============================================================================

MSG_REGISTER: str = "register"
MSG_CALL_REQUEST: str = "call_request"
MSG_CALL_RESPONSE: str = "call_response"
MSG_END_CALL: str = "end_call"
MSG_OFFER: str = "offer"
MSG_ANSWER: str = "answer"
MSG_ICE_CANDIDATE: str = "ice_candidate"
MSG_HEARTBEAT: str = "heartbeat"

# ==============================================================================
# OUTBOUND MESSAGE TYPES
# ==============================================================================

MSG_REGISTERED: str = "registered"
MSG_INCOMING_CALL: str = "incoming_call"
MSG_CALL_FAILED: str = "call_failed"
MSG_CALL_ACCEPTED: str = "call_accepted"
MSG_CALL_REJECTED: str = "call_rejected"
MSG_CALL_ENDED: str = "call_ended"
MSG_HEARTBEAT_ACK: str = "heartbeat_ack"
MSG_ERROR: str = "error"

# ==============================================================================
# CALL RESPONSES
# ==============================================================================

RESPONSE_ACCEPT: str = "accept"
RESPONSE_REJECT: str = "reject"

# ==============================================================================
# REASONS & ERROR MESSAGES (client-visible)
# ==============================================================================

REASON_USER_NOT_ONLINE: str = "User not online"
REASON_USER_DISCONNECTED: str = "User disconnected"
REASON_NO_ANSWER: str = "No answer"

ERR_INVALID_FORMAT: str = "Invalid message format"
ERR_CALL_NOT_FOUND: str = "Call not found"
ERR_CALL_EXISTS: str = "Call already exists"
ERR_NOT_REGISTERED: str = "Not registered"
ERR_NOT_PARTICIPANT: str = "Not a participant in this call"
ERR_NOT_CALLEE: str = "Only the callee can respond to a call"
ERR_ALREADY_ANSWERED: str = "Call already answered"
ERR_SELF_CALL: str = "Cannot call yourself"

# ==============================================================================
# WEBSOCKET CLOSE CODES
# ==============================================================================

# Application-defined range (4000-4999)
CLOSE_SUPERSEDED: int = 4001
CLOSE_SUPERSEDED_REASON: str = "Superseded by a newer connection"

# Going away (RFC 6455)
CLOSE_IDLE_TIMEOUT: int = 1001
CLOSE_IDLE_TIMEOUT_REASON: str = "Heartbeat timeout"
