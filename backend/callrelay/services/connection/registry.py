"""
Connection Registry

Maps a user identity to its single live connection. A later registration
for the same identity supersedes the earlier one; a stale close can never
evict the newer binding.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from .models import ClientConnection

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Owns the user_id -> ClientConnection map behind an asyncio lock."""

    def __init__(self):
        self._connections: Dict[int, ClientConnection] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: int, conn: ClientConnection) -> Optional[ClientConnection]:
        """
        Bind `user_id` to `conn` unconditionally.

        Returns:
            The superseded connection, if a different one was bound before.
        """
        async with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = conn
            conn.user_id = user_id

        if previous is conn:
            return None
        if previous is not None:
            logger.info(f"User {user_id} re-registered; {previous!r} superseded by {conn!r}")
        return previous

    async def unregister(self, user_id: int, conn: ClientConnection) -> bool:
        """
        Remove the binding only if it still points at `conn`.

        Returns:
            True if the binding was removed.
        """
        async with self._lock:
            if self._connections.get(user_id) is not conn:
                return False
            del self._connections[user_id]
        return True

    def lookup(self, user_id: int) -> Optional[ClientConnection]:
        return self._connections.get(user_id)

    async def send(self, user_id: int, message: Dict[str, Any]) -> bool:
        """
        Deliver to the user's current connection.

        Returns:
            False if the user is unknown or the channel is dead. Never raises.
        """
        conn = self.lookup(user_id)
        if conn is None:
            return False
        return await conn.send_json(message)

    def is_user_connected(self, user_id: int) -> bool:
        conn = self._connections.get(user_id)
        return conn is not None and conn.is_open

    def get_total_connections(self) -> int:
        """Get total number of registered users."""
        return len(self._connections)
