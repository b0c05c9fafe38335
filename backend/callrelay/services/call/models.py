"""
Call Session Model

In-memory record of one two-party call and its negotiation phase.
"""
import enum
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Union

from .exceptions import InvalidTransitionError, NotParticipantError

# Client-chosen; kept with the JSON type it arrived with
CallId = Union[int, str]


class CallPhase(str, enum.Enum):
    RINGING = "ringing"
    ACCEPTED = "accepted"
    CONNECTED = "connected"
    REJECTED = "rejected"
    ENDED = "ended"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES: FrozenSet[CallPhase] = frozenset({CallPhase.REJECTED, CallPhase.ENDED})

# Legal forward moves. Terminal phases are absorbing.
TRANSITIONS: Dict[CallPhase, FrozenSet[CallPhase]] = {
    CallPhase.RINGING: frozenset({CallPhase.ACCEPTED, CallPhase.CONNECTED, CallPhase.REJECTED, CallPhase.ENDED}),
    CallPhase.ACCEPTED: frozenset({CallPhase.CONNECTED, CallPhase.ENDED}),
    CallPhase.CONNECTED: frozenset({CallPhase.CONNECTED, CallPhase.ENDED}),
    CallPhase.REJECTED: frozenset(),
    CallPhase.ENDED: frozenset(),
}


@dataclass
class CallSession:
    """A tracked pairing of caller and target."""
    call_id: CallId
    caller_id: int
    target_id: int
    call_type: Any = "audio"
    phase: CallPhase = CallPhase.RINGING
    created_at: float = field(default_factory=time.monotonic)

    def __post_init__(self):
        if self.caller_id == self.target_id:
            raise ValueError("A call needs two distinct participants")

    @property
    def participants(self) -> FrozenSet[int]:
        return frozenset({self.caller_id, self.target_id})

    def has_participant(self, user_id: int) -> bool:
        return user_id == self.caller_id or user_id == self.target_id

    def other_participant(self, user_id: int) -> int:
        """
        Resolve the peer of `user_id`.

        Raises:
            NotParticipantError if `user_id` is not in this call.
        """
        if user_id == self.caller_id:
            return self.target_id
        if user_id == self.target_id:
            return self.caller_id
        raise NotParticipantError()

    def can_transition(self, new_phase: CallPhase) -> bool:
        return new_phase in TRANSITIONS[self.phase]

    def advance(self, new_phase: CallPhase) -> None:
        """Move to `new_phase` or raise InvalidTransitionError."""
        if not self.can_transition(new_phase):
            raise InvalidTransitionError(
                f"Call {self.call_id} cannot go from {self.phase.value} to {new_phase.value}"
                if self.phase.is_terminal else None
            )
        self.phase = new_phase

    def to_dict(self):
        return {
            "call_id": self.call_id,
            "caller_id": self.caller_id,
            "target_id": self.target_id,
            "call_type": self.call_type,
            "phase": self.phase.value,
            "created_at": self.created_at,
        }
