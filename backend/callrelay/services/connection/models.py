"""
Connection Models

Wrapper around a single client WebSocket. Owns the per-connection
keep-alive watchdog; knows nothing about calls.
"""
import asyncio
import logging
import time
import uuid
from datetime import datetime, UTC
from typing import Any, Dict, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from callrelay.config.constants import CLOSE_IDLE_TIMEOUT, CLOSE_IDLE_TIMEOUT_REASON

logger = logging.getLogger(__name__)


class ClientConnection:
    """Represents a single signaling WebSocket."""

    def __init__(self, websocket: WebSocket, send_timeout: float = 5.0):
        self.websocket = websocket
        self.connection_id = uuid.uuid4().hex[:8]
        self.user_id: Optional[int] = None
        self.send_timeout = send_timeout
        self.connected_at = datetime.now(UTC)
        self.last_seen = time.monotonic()
        self._closed = False
        self._keepalive_task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return f"<ClientConnection {self.connection_id} user={self.user_id}>"

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def touch(self) -> None:
        """Record inbound activity for the idle watchdog."""
        self.last_seen = time.monotonic()

    async def send_json(self, data: Dict[str, Any]) -> bool:
        """Send JSON message to this connection. Never raises."""
        if not self.is_open:
            return False
        try:
            await asyncio.wait_for(self.websocket.send_json(data), timeout=self.send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Send to {self!r} timed out after {self.send_timeout}s")
            return False
        except Exception as e:
            logger.error(f"Error sending JSON to {self!r}: {e}")
            return False

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Close the socket once; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        self.stop_keepalive()
        try:
            await asyncio.wait_for(self.websocket.close(code=code, reason=reason), timeout=self.send_timeout)
        except Exception as e:
            logger.debug(f"Close of {self!r} failed: {e}")

    def mark_closed(self) -> None:
        """Called by the receive loop once the peer has gone away."""
        self._closed = True
        self.stop_keepalive()

    # === Keep-alive ===

    def start_keepalive(self, interval: float, timeout: float) -> None:
        """Close the connection if nothing arrives for `timeout` seconds."""
        if timeout <= 0 or interval <= 0 or self._keepalive_task is not None:
            return
        self._keepalive_task = asyncio.create_task(self._keepalive_loop(interval, timeout))

    def stop_keepalive(self) -> None:
        task = self._keepalive_task
        self._keepalive_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    async def _keepalive_loop(self, interval: float, timeout: float) -> None:
        while not self._closed:
            await asyncio.sleep(interval)
            idle = time.monotonic() - self.last_seen
            if idle > timeout:
                logger.info(f"💤 {self!r} idle for {idle:.0f}s, closing")
                await self.close(CLOSE_IDLE_TIMEOUT, CLOSE_IDLE_TIMEOUT_REASON)
                return
