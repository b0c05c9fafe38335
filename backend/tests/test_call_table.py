import asyncio
import time

import pytest

from callrelay.services.call import (
    CallAlreadyExistsError,
    CallNotFoundError,
    CallPhase,
    CallSession,
    CallSessionTable,
    InvalidTransitionError,
    NotParticipantError,
)


def test_call_requires_two_distinct_participants():
    with pytest.raises(ValueError):
        CallSession(call_id="c1", caller_id=1, target_id=1)


def test_other_participant():
    call = CallSession(call_id="c1", caller_id=1, target_id=2)

    assert call.other_participant(1) == 2
    assert call.other_participant(2) == 1
    with pytest.raises(NotParticipantError):
        call.other_participant(3)


def test_terminal_phases_are_absorbing():
    for phase in (CallPhase.REJECTED, CallPhase.ENDED):
        call = CallSession(call_id="c1", caller_id=1, target_id=2, phase=phase)
        assert phase.is_terminal
        for target in CallPhase:
            assert not call.can_transition(target)


def test_phase_only_moves_forward():
    call = CallSession(call_id="c1", caller_id=1, target_id=2)
    call.advance(CallPhase.ACCEPTED)
    call.advance(CallPhase.CONNECTED)

    with pytest.raises(InvalidTransitionError):
        call.advance(CallPhase.ACCEPTED)
    with pytest.raises(InvalidTransitionError):
        call.advance(CallPhase.RINGING)


@pytest.mark.asyncio
async def test_create_starts_ringing():
    table = CallSessionTable()
    call = await table.create("c1", 1, 2, "video")

    assert call.phase == CallPhase.RINGING
    assert table.get("c1") is call
    assert "c1" in table
    assert len(table) == 1


@pytest.mark.asyncio
async def test_duplicate_call_id_is_rejected():
    table = CallSessionTable()
    await table.create("c1", 1, 2)

    with pytest.raises(CallAlreadyExistsError):
        await table.create("c1", 3, 4)


@pytest.mark.asyncio
async def test_accept_then_second_accept_fails():
    table = CallSessionTable()
    await table.create("c1", 1, 2)

    await table.transition("c1", CallPhase.ACCEPTED)
    with pytest.raises(InvalidTransitionError):
        await table.transition("c1", CallPhase.ACCEPTED)
    with pytest.raises(InvalidTransitionError):
        await table.transition("c1", CallPhase.REJECTED)

    assert table.get("c1").phase == CallPhase.ACCEPTED


@pytest.mark.asyncio
async def test_reject_removes_and_remembers_call_id():
    table = CallSessionTable()
    await table.create("c1", 1, 2)

    call = await table.transition("c1", CallPhase.REJECTED)

    assert call.phase == CallPhase.REJECTED
    assert "c1" not in table
    assert table.was_removed("c1")
    with pytest.raises(CallAlreadyExistsError):
        await table.create("c1", 1, 2)
    with pytest.raises(CallNotFoundError):
        await table.transition("c1", CallPhase.ACCEPTED)


@pytest.mark.asyncio
async def test_transition_with_replaced_call_is_not_found():
    table = CallSessionTable()
    stale = CallSession(call_id="c1", caller_id=1, target_id=2)
    await table.create("c1", 1, 2)

    with pytest.raises(CallNotFoundError):
        await table.transition("c1", CallPhase.ACCEPTED, expected=stale)


@pytest.mark.asyncio
async def test_concurrent_removal_happens_once():
    table = CallSessionTable()
    await table.create("c1", 1, 2)

    results = await asyncio.gather(table.remove("c1"), table.remove("c1"))

    assert sum(r is not None for r in results) == 1
    assert len(table) == 0


@pytest.mark.asyncio
async def test_remove_for_user_ends_all_their_calls():
    table = CallSessionTable()
    await table.create("c1", 1, 2)
    await table.create("c2", 3, 1)
    await table.create("c3", 3, 4)

    removed = await table.remove_for_user(1)

    assert {c.call_id for c in removed} == {"c1", "c2"}
    assert all(c.phase == CallPhase.ENDED for c in removed)
    assert list(c["call_id"] for c in table.snapshot()) == ["c3"]
    assert await table.remove_for_user(1) == []


@pytest.mark.asyncio
async def test_expire_ringing_only_touches_old_ringing_calls():
    table = CallSessionTable()
    ringing = await table.create("c1", 1, 2)
    await table.create("c2", 3, 4)
    await table.transition("c2", CallPhase.ACCEPTED)

    assert await table.expire_ringing(60, now=ringing.created_at + 10) == []

    expired = await table.expire_ringing(60, now=time.monotonic() + 61)

    assert [c.call_id for c in expired] == ["c1"]
    assert "c2" in table


@pytest.mark.asyncio
async def test_expire_ringing_disabled():
    table = CallSessionTable()
    await table.create("c1", 1, 2)

    assert await table.expire_ringing(0, now=time.monotonic() + 10_000) == []
    assert "c1" in table


@pytest.mark.asyncio
async def test_removed_history_is_bounded():
    table = CallSessionTable(history_size=2)
    for call_id in ("a", "b", "c"):
        await table.create(call_id, 1, 2)
        await table.remove(call_id)

    assert not table.was_removed("a")
    assert table.was_removed("b")
    assert table.was_removed("c")
