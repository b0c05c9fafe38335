"""
WebSocket Event Schemas

Pydantic models for the inbound signaling messages and builders for the
outbound ones. Every outbound event is stamped at emission time.
"""

import time
from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, TypeAdapter

from callrelay.config.constants import (
    MSG_CALL_ACCEPTED,
    MSG_CALL_ENDED,
    MSG_CALL_FAILED,
    MSG_CALL_REJECTED,
    MSG_ERROR,
    MSG_HEARTBEAT_ACK,
    MSG_INCOMING_CALL,
    MSG_REGISTERED,
)
from callrelay.services.call.models import CallId


def now_ms() -> int:
    """Wall-clock milliseconds since the epoch."""
    return int(time.time() * 1000)


# =============================================================================
# Inbound Event Models
# =============================================================================

class WebSocketEventBase(BaseModel):
    """Base model for all inbound events."""
    type: str


class CallEventBase(WebSocketEventBase):
    """Any event that references an existing call."""
    call_id: Union[StrictInt, Annotated[StrictStr, Field(min_length=1)]]


class RegisterEvent(WebSocketEventBase):
    """Bind this connection to a user identity."""
    type: Literal["register"] = "register"
    user_id: int


class HeartbeatEvent(WebSocketEventBase):
    """Client heartbeat to maintain connection."""
    type: Literal["heartbeat"] = "heartbeat"


class CallRequestEvent(CallEventBase):
    """Caller invites a target user."""
    type: Literal["call_request"] = "call_request"
    target_user_id: int
    call_type: Any = "audio"


class CallResponseEvent(CallEventBase):
    """Callee accepts or rejects a ringing call."""
    type: Literal["call_response"] = "call_response"
    response: Literal["accept", "reject"]


class EndCallEvent(CallEventBase):
    """Either participant hangs up."""
    type: Literal["end_call"] = "end_call"


class OfferEvent(CallEventBase):
    type: Literal["offer"] = "offer"
    offer: Any


class AnswerEvent(CallEventBase):
    type: Literal["answer"] = "answer"
    answer: Any


class IceCandidateEvent(CallEventBase):
    type: Literal["ice_candidate"] = "ice_candidate"
    candidate: Any


InboundEvent = Annotated[
    Union[
        RegisterEvent,
        HeartbeatEvent,
        CallRequestEvent,
        CallResponseEvent,
        EndCallEvent,
        OfferEvent,
        AnswerEvent,
        IceCandidateEvent,
    ],
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter = TypeAdapter(InboundEvent)

INBOUND_TYPES = frozenset(
    ["register", "heartbeat", "call_request", "call_response",
     "end_call", "offer", "answer", "ice_candidate"]
)


def parse_event(data: Dict[str, Any]) -> WebSocketEventBase:
    """
    Validate a decoded JSON object against the inbound event union.

    Raises:
        pydantic.ValidationError if the payload doesn't match its declared type.
    """
    return _inbound_adapter.validate_python(data)


# =============================================================================
# Outbound Event Builders
# =============================================================================

def caller_info(caller_id: int) -> Dict[str, Any]:
    return {
        "username": f"user_{caller_id}",
        "full_name": f"User {caller_id}",
        "profile_picture": None,
    }


def registered(user_id: int) -> Dict[str, Any]:
    return {"type": MSG_REGISTERED, "user_id": user_id, "timestamp": now_ms()}


def incoming_call(call_id: CallId, caller_id: int, call_type: Any) -> Dict[str, Any]:
    return {
        "type": MSG_INCOMING_CALL,
        "call_id": call_id,
        "caller_id": caller_id,
        "call_type": call_type,
        "caller_info": caller_info(caller_id),
        "timestamp": now_ms(),
    }


def call_failed(call_id: CallId, reason: str) -> Dict[str, Any]:
    return {"type": MSG_CALL_FAILED, "call_id": call_id, "reason": reason, "timestamp": now_ms()}


def call_accepted(call_id: CallId) -> Dict[str, Any]:
    return {"type": MSG_CALL_ACCEPTED, "call_id": call_id, "timestamp": now_ms()}


def call_rejected(call_id: CallId) -> Dict[str, Any]:
    return {"type": MSG_CALL_REJECTED, "call_id": call_id, "timestamp": now_ms()}


def call_ended(call_id: CallId, reason: Optional[str] = None) -> Dict[str, Any]:
    event: Dict[str, Any] = {"type": MSG_CALL_ENDED, "call_id": call_id}
    if reason:
        event["reason"] = reason
    event["timestamp"] = now_ms()
    return event


def forwarded(event: WebSocketEventBase) -> Dict[str, Any]:
    """Re-emit an offer/answer/candidate unchanged, with a fresh timestamp.

    `call_id` keeps the type the sender used (number or string).
    """
    payload = event.model_dump()
    payload["timestamp"] = now_ms()
    return payload


def heartbeat_ack() -> Dict[str, Any]:
    return {"type": MSG_HEARTBEAT_ACK, "timestamp": now_ms()}


def error(message: str) -> Dict[str, Any]:
    return {"type": MSG_ERROR, "message": message, "timestamp": now_ms()}
