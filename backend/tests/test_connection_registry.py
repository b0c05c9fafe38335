import asyncio

import pytest

from callrelay.services.connection import ConnectionRegistry
from tests.helpers import make_connection


@pytest.mark.asyncio
async def test_register_and_lookup():
    registry = ConnectionRegistry()
    conn = make_connection()

    previous = await registry.register(1, conn)

    assert previous is None
    assert registry.lookup(1) is conn
    assert conn.user_id == 1
    assert registry.is_user_connected(1)
    assert registry.lookup(2) is None


@pytest.mark.asyncio
async def test_reregister_supersedes_previous_connection():
    registry = ConnectionRegistry()
    old, new = make_connection(), make_connection()

    await registry.register(1, old)
    previous = await registry.register(1, new)

    assert previous is old
    assert registry.lookup(1) is new
    assert registry.get_total_connections() == 1


@pytest.mark.asyncio
async def test_registering_same_connection_twice_is_not_a_supersede():
    registry = ConnectionRegistry()
    conn = make_connection()

    await registry.register(1, conn)
    assert await registry.register(1, conn) is None


@pytest.mark.asyncio
async def test_stale_unregister_keeps_newer_binding():
    registry = ConnectionRegistry()
    old, new = make_connection(), make_connection()
    await registry.register(1, old)
    await registry.register(1, new)

    assert await registry.unregister(1, old) is False
    assert registry.lookup(1) is new

    assert await registry.unregister(1, new) is True
    assert registry.lookup(1) is None


@pytest.mark.asyncio
async def test_send_to_unknown_user_is_not_delivered():
    registry = ConnectionRegistry()
    assert await registry.send(42, {"type": "ping"}) is False


@pytest.mark.asyncio
async def test_send_delivers_to_live_connection():
    registry = ConnectionRegistry()
    conn = make_connection()
    await registry.register(1, conn)

    assert await registry.send(1, {"type": "hello"}) is True
    assert conn.websocket.sent == [{"type": "hello"}]


@pytest.mark.asyncio
async def test_send_to_closed_connection_is_not_delivered():
    registry = ConnectionRegistry()
    conn = make_connection()
    await registry.register(1, conn)
    await conn.close()

    assert await registry.send(1, {"type": "hello"}) is False
    assert conn.websocket.sent == []


@pytest.mark.asyncio
async def test_transport_error_is_reported_not_raised():
    registry = ConnectionRegistry()
    conn = make_connection()
    conn.websocket.fail_sends = True
    await registry.register(1, conn)

    assert await registry.send(1, {"type": "hello"}) is False


@pytest.mark.asyncio
async def test_slow_send_times_out():
    registry = ConnectionRegistry()
    conn = make_connection(send_timeout=0.01)

    async def stuck(data):
        await asyncio.sleep(5)

    conn.websocket.send_json = stuck
    await registry.register(1, conn)

    assert await registry.send(1, {"type": "hello"}) is False


@pytest.mark.asyncio
async def test_idle_connection_is_closed_by_keepalive():
    conn = make_connection()
    conn.start_keepalive(interval=0.01, timeout=0.02)

    await asyncio.sleep(0.2)

    assert conn.websocket.closed_with == (1001, "Heartbeat timeout")
    assert not conn.is_open


@pytest.mark.asyncio
async def test_keepalive_disabled_with_zero_timeout():
    conn = make_connection()
    conn.start_keepalive(interval=0.01, timeout=0)

    await asyncio.sleep(0.05)

    assert conn.websocket.closed_with is None
    assert conn.is_open
