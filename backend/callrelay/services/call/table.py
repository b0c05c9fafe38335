"""
Call Session Table

Owns call_id -> CallSession for every live call. Removed call ids are
remembered (bounded, oldest first out) so late messages are recognised
as stale instead of resurrecting the call.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from .exceptions import CallAlreadyExistsError, CallNotFoundError
from .models import CallId, CallPhase, CallSession

logger = logging.getLogger(__name__)


class CallSessionTable:
    """Live calls plus tombstones of removed ones."""

    def __init__(self, history_size: int = 1024):
        self._calls: Dict[CallId, CallSession] = {}
        self._removed: "OrderedDict[CallId, CallPhase]" = OrderedDict()
        self._history_size = max(history_size, 0)
        self._lock = asyncio.Lock()

    # === Mutations ===

    async def create(self, call_id: CallId, caller_id: int, target_id: int, call_type: Any = "audio") -> CallSession:
        """
        Create a RINGING call.

        Raises:
            CallAlreadyExistsError if the id is live or was used before.
        """
        async with self._lock:
            if call_id in self._calls or call_id in self._removed:
                raise CallAlreadyExistsError()
            call = CallSession(call_id=call_id, caller_id=caller_id, target_id=target_id, call_type=call_type)
            self._calls[call_id] = call
        return call

    async def transition(self, call_id: CallId, new_phase: CallPhase, expected: Optional[CallSession] = None) -> CallSession:
        """
        Advance a live call. Terminal phases remove it from the table.

        Raises:
            CallNotFoundError if the call is gone (or was replaced).
            InvalidTransitionError if the move is illegal.
        """
        async with self._lock:
            call = self._calls.get(call_id)
            if call is None or (expected is not None and call is not expected):
                raise CallNotFoundError()
            call.advance(new_phase)
            if new_phase.is_terminal:
                self._remove_locked(call_id)
        return call

    async def remove(self, call_id: CallId, phase: CallPhase = CallPhase.ENDED,
                     expected: Optional[CallSession] = None) -> Optional[CallSession]:
        """
        Remove a live call, marking it with a terminal phase.

        Returns:
            The removed call, or None if someone else removed it first.
        """
        async with self._lock:
            call = self._calls.get(call_id)
            if call is None or (expected is not None and call is not expected):
                return None
            call.advance(phase)
            self._remove_locked(call_id)
        return call

    async def remove_for_user(self, user_id: int) -> List[CallSession]:
        """Remove and return every live call that `user_id` takes part in."""
        async with self._lock:
            calls = [c for c in self._calls.values() if c.has_participant(user_id)]
            for call in calls:
                call.advance(CallPhase.ENDED)
                self._remove_locked(call.call_id)
        return calls

    async def expire_ringing(self, timeout: float, now: Optional[float] = None) -> List[CallSession]:
        """Remove RINGING calls older than `timeout` seconds."""
        if timeout <= 0:
            return []
        now = time.monotonic() if now is None else now
        async with self._lock:
            expired = [
                c for c in self._calls.values()
                if c.phase == CallPhase.RINGING and now - c.created_at >= timeout
            ]
            for call in expired:
                call.advance(CallPhase.ENDED)
                self._remove_locked(call.call_id)
        return expired

    def _remove_locked(self, call_id: CallId) -> None:
        call = self._calls.pop(call_id)
        self._removed[call_id] = call.phase
        while len(self._removed) > self._history_size:
            self._removed.popitem(last=False)

    # === Queries ===

    def get(self, call_id: CallId) -> Optional[CallSession]:
        return self._calls.get(call_id)

    def was_removed(self, call_id: CallId) -> bool:
        return call_id in self._removed

    def __contains__(self, call_id: CallId) -> bool:
        return call_id in self._calls

    def __len__(self) -> int:
        return len(self._calls)

    def get_active_call_count(self) -> int:
        """Get number of live calls."""
        return len(self._calls)

    def snapshot(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self._calls.values()]
