"""
Schemas Package

Pydantic models for WebSocket signaling events.
"""

from callrelay.schemas.websocket_events import (
    WebSocketEventBase,
    RegisterEvent,
    HeartbeatEvent,
    CallRequestEvent,
    CallResponseEvent,
    EndCallEvent,
    OfferEvent,
    AnswerEvent,
    IceCandidateEvent,
    parse_event,
)

__all__ = [
    "WebSocketEventBase",
    "RegisterEvent",
    "HeartbeatEvent",
    "CallRequestEvent",
    "CallResponseEvent",
    "EndCallEvent",
    "OfferEvent",
    "AnswerEvent",
    "IceCandidateEvent",
    "parse_event",
]
