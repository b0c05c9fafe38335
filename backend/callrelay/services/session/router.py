"""
Signaling Router - Call State Machine

Single entry point for every inbound message. Validates the message,
applies the call-phase transition, resolves the peer and delivers the
outbound event through the ConnectionRegistry. Also owns the cleanup
that runs when a connection goes away and the ringing-call expiry.

No lock is held while sending: the table is mutated first, deliveries
happen afterwards.
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from callrelay.config import constants
from callrelay.config.settings import Settings
from callrelay.schemas import websocket_events as events
from callrelay.schemas.websocket_events import (
    INBOUND_TYPES,
    CallRequestEvent,
    CallResponseEvent,
    EndCallEvent,
    RegisterEvent,
    WebSocketEventBase,
    parse_event,
)
from callrelay.services import metrics
from callrelay.services.call import (
    CallId,
    CallNotFoundError,
    CallPhase,
    CallSession,
    CallSessionTable,
    InvalidCallTargetError,
    NotParticipantError,
    NotRegisteredError,
    SignalingError,
)
from callrelay.services.connection import ClientConnection, ConnectionRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[ClientConnection, WebSocketEventBase], Awaitable[None]]


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in INBOUND_TYPES)
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid"))
    return "; ".join(parts)


class SignalingRouter:
    """
    Routes signaling events between the two participants of each call.

    Message handlers:
    - register: bind identity, acknowledge
    - call_request / call_response / end_call: call lifecycle
    - offer / answer / ice_candidate: forwarded to the peer
    - heartbeat: acknowledged
    """

    def __init__(self, registry: ConnectionRegistry, calls: CallSessionTable, settings: Settings):
        self.registry = registry
        self.calls = calls
        self.settings = settings
        self._handlers: Dict[str, Handler] = {
            constants.MSG_REGISTER: self._handle_register,
            constants.MSG_HEARTBEAT: self._handle_heartbeat,
            constants.MSG_CALL_REQUEST: self._handle_call_request,
            constants.MSG_CALL_RESPONSE: self._handle_call_response,
            constants.MSG_END_CALL: self._handle_end_call,
            constants.MSG_OFFER: self._handle_offer,
            constants.MSG_ANSWER: self._handle_answer,
            constants.MSG_ICE_CANDIDATE: self._handle_ice_candidate,
        }

    # === Entry point ===

    async def dispatch(self, conn: ClientConnection, raw: Any) -> None:
        """Decode, validate and handle one inbound message from `conn`."""
        conn.touch()

        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"❌ Undecodable message from {conn!r}")
            await conn.send_json(events.error(constants.ERR_INVALID_FORMAT))
            return

        if not isinstance(data, dict):
            await conn.send_json(events.error(constants.ERR_INVALID_FORMAT))
            return

        msg_type = data.get("type")
        if not isinstance(msg_type, str) or msg_type not in self._handlers:
            logger.warning(f"❓ Unknown message type {msg_type!r} from {conn!r}")
            await conn.send_json(events.error(f"Unknown message type: {msg_type}"))
            return

        metrics.messages_received.labels(type=msg_type).inc()
        logger.debug(f"📨 Received {msg_type} from user {conn.user_id}")

        try:
            event = parse_event(data)
        except ValidationError as e:
            logger.warning(f"Malformed {msg_type} from {conn!r}: {e.error_count()} error(s)")
            await conn.send_json(events.error(f"Invalid {msg_type} message: {_describe_validation_error(e)}"))
            return

        try:
            await self._handlers[msg_type](conn, event)
        except SignalingError as e:
            logger.info(f"⚠️ {msg_type} from user {conn.user_id} refused: {e.message}")
            await conn.send_json(events.error(e.message))

    # === Helpers ===

    def _sender(self, conn: ClientConnection) -> int:
        """The identity `conn` currently speaks for."""
        if conn.user_id is None or self.registry.lookup(conn.user_id) is not conn:
            raise NotRegisteredError()
        return conn.user_id

    def _require_call(self, call_id: CallId, sender: int) -> CallSession:
        call = self.calls.get(call_id)
        if call is None:
            raise CallNotFoundError()
        if not call.has_participant(sender):
            raise NotParticipantError()
        return call

    async def _deliver(self, user_id: int, message: Dict[str, Any]) -> bool:
        delivered = await self.registry.send(user_id, message)
        if not delivered:
            metrics.delivery_failures.labels(type=message["type"]).inc()
            logger.warning(f"📭 Could not deliver {message['type']} to user {user_id}")
        return delivered

    def _update_gauges(self) -> None:
        metrics.active_calls_gauge.set(self.calls.get_active_call_count())
        metrics.connected_clients_gauge.set(self.registry.get_total_connections())

    # === Registration ===

    async def _handle_register(self, conn: ClientConnection, event: RegisterEvent) -> None:
        user_id = event.user_id
        if not conn.is_open:
            # Superseded or closing socket; its last words don't count
            return

        if conn.user_id is not None and conn.user_id != user_id:
            # One connection speaks for one identity at a time
            await self.release(conn)

        previous = await self.registry.register(user_id, conn)
        if previous is not None and self.settings.CLOSE_SUPERSEDED_CONNECTIONS:
            await previous.close(constants.CLOSE_SUPERSEDED, constants.CLOSE_SUPERSEDED_REASON)

        conn.start_keepalive(self.settings.HEARTBEAT_INTERVAL_SEC, self.settings.HEARTBEAT_TIMEOUT_SEC)
        self._update_gauges()

        await conn.send_json(events.registered(user_id))
        logger.info(f"✅ User {user_id} registered")

    async def _handle_heartbeat(self, conn: ClientConnection, event: WebSocketEventBase) -> None:
        await conn.send_json(events.heartbeat_ack())

    # === Call lifecycle ===

    async def _handle_call_request(self, conn: ClientConnection, event: CallRequestEvent) -> None:
        caller_id = self._sender(conn)
        target_id = event.target_user_id
        if target_id == caller_id:
            raise InvalidCallTargetError()

        call = await self.calls.create(event.call_id, caller_id, target_id, event.call_type)
        self._update_gauges()
        logger.info(f"📞 Call request {call.call_id}: {caller_id} -> {target_id} ({event.call_type})")

        sent = await self._deliver(target_id, events.incoming_call(call.call_id, caller_id, event.call_type))
        if not sent:
            await self.calls.remove(call.call_id, CallPhase.ENDED, expected=call)
            self._update_gauges()
            metrics.calls_finished.labels(outcome="failed").inc()
            await conn.send_json(events.call_failed(call.call_id, constants.REASON_USER_NOT_ONLINE))
            logger.info(f"📵 Call {call.call_id} failed: user {target_id} not online")

    async def _handle_call_response(self, conn: ClientConnection, event: CallResponseEvent) -> None:
        sender = self._sender(conn)
        call = self._require_call(event.call_id, sender)
        if sender != call.target_id:
            raise SignalingError(constants.ERR_NOT_CALLEE)

        if event.response == constants.RESPONSE_ACCEPT:
            await self.calls.transition(call.call_id, CallPhase.ACCEPTED, expected=call)
            await self._deliver(call.caller_id, events.call_accepted(call.call_id))
            logger.info(f"✅ Call {call.call_id} accepted")
        else:
            await self.calls.transition(call.call_id, CallPhase.REJECTED, expected=call)
            self._update_gauges()
            metrics.calls_finished.labels(outcome="rejected").inc()
            await self._deliver(call.caller_id, events.call_rejected(call.call_id))
            logger.info(f"❌ Call {call.call_id} rejected")

    async def _handle_end_call(self, conn: ClientConnection, event: EndCallEvent) -> None:
        sender = self._sender(conn)
        call = self._require_call(event.call_id, sender)
        peer = call.other_participant(sender)

        if await self.calls.remove(call.call_id, CallPhase.ENDED, expected=call) is None:
            raise CallNotFoundError()
        self._update_gauges()
        metrics.calls_finished.labels(outcome="ended").inc()

        await self._deliver(peer, events.call_ended(call.call_id))
        logger.info(f"📵 Call {call.call_id} ended by user {sender}")

    # === Signaling forwarding ===

    async def _forward(self, conn: ClientConnection, event: WebSocketEventBase,
                       new_phase: Optional[CallPhase] = None) -> None:
        sender = self._sender(conn)
        call = self.calls.get(event.call_id)
        if call is None:
            if self.calls.was_removed(event.call_id):
                logger.debug(f"Dropping late {event.type} for removed call {event.call_id}")
                return
            raise CallNotFoundError()

        peer = call.other_participant(sender)

        if new_phase is not None:
            try:
                await self.calls.transition(call.call_id, new_phase, expected=call)
            except CallNotFoundError:
                logger.debug(f"Dropping {event.type} for call {event.call_id} removed mid-flight")
                return

        await self._deliver(peer, events.forwarded(event))
        logger.debug(f"📄 {event.type} forwarded for call {call.call_id}")

    async def _handle_offer(self, conn: ClientConnection, event: WebSocketEventBase) -> None:
        await self._forward(conn, event)

    async def _handle_answer(self, conn: ClientConnection, event: WebSocketEventBase) -> None:
        await self._forward(conn, event, new_phase=CallPhase.CONNECTED)

    async def _handle_ice_candidate(self, conn: ClientConnection, event: WebSocketEventBase) -> None:
        await self._forward(conn, event)

    # === Cleanup ===

    async def release(self, conn: ClientConnection) -> List[CallSession]:
        """
        Drop `conn`'s identity binding and end every call of that identity.

        A connection that was superseded by a newer registration releases
        nothing: the identity is still live elsewhere.

        Returns:
            The calls that were ended.
        """
        user_id = conn.user_id
        if user_id is None:
            return []
        conn.user_id = None

        if not await self.registry.unregister(user_id, conn):
            logger.info(f"Stale connection {conn.connection_id} for user {user_id} closed; binding kept")
            return []

        ended = await self.calls.remove_for_user(user_id)
        self._update_gauges()

        for call in ended:
            metrics.calls_finished.labels(outcome="disconnected").inc()
            peer = call.other_participant(user_id)
            await self._deliver(peer, events.call_ended(call.call_id, constants.REASON_USER_DISCONNECTED))
            logger.info(f"📵 Call {call.call_id} ended: user {user_id} disconnected")

        return ended

    async def expire_ringing_calls(self, now: Optional[float] = None) -> List[CallSession]:
        """End RINGING calls that outlived RING_TIMEOUT_SEC."""
        expired = await self.calls.expire_ringing(self.settings.RING_TIMEOUT_SEC, now)
        if expired:
            self._update_gauges()

        for call in expired:
            metrics.calls_finished.labels(outcome="no_answer").inc()
            await self._deliver(call.caller_id, events.call_failed(call.call_id, constants.REASON_NO_ANSWER))
            await self._deliver(call.target_id, events.call_ended(call.call_id, constants.REASON_NO_ANSWER))
            logger.info(f"⏰ Call {call.call_id} expired unanswered")

        return expired

    async def ring_sweeper(self) -> None:
        """Background task: periodically expire unanswered calls."""
        interval = max(self.settings.RING_SWEEP_INTERVAL_SEC, 0.1)
        while True:
            await asyncio.sleep(interval)
            try:
                await self.expire_ringing_calls()
            except Exception as e:
                logger.error(f"Ring sweeper error: {e}")
