import json
from typing import Any, Dict, List, Optional, Union

from starlette.websockets import WebSocketState

from callrelay.services.connection import ClientConnection


class FakeWebSocket:
    """Records everything the relay sends; can be told to fail."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.closed_with: Optional[tuple] = None
        self.fail_sends = False

    async def send_json(self, data: Dict[str, Any]) -> None:
        if self.fail_sends:
            raise RuntimeError("connection reset by peer")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        self.closed_with = (code, reason)
        self.application_state = WebSocketState.DISCONNECTED

    def of_type(self, msg_type: str) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m["type"] == msg_type]

    def last(self) -> Dict[str, Any]:
        return self.sent[-1]


def make_connection(send_timeout: float = 0.5) -> ClientConnection:
    return ClientConnection(FakeWebSocket(), send_timeout=send_timeout)


async def send(router, conn: ClientConnection, **message) -> None:
    await router.dispatch(conn, json.dumps(message))


async def register(router, user_id: int) -> ClientConnection:
    conn = make_connection()
    await send(router, conn, type="register", user_id=user_id)
    return conn


async def start_call(router, caller: ClientConnection, callee_id: int,
                     call_id: Union[int, str] = "c1", call_type: str = "video") -> None:
    await send(router, caller, type="call_request", call_id=call_id,
               target_user_id=callee_id, call_type=call_type)


def assert_error(conn: ClientConnection, message: str) -> None:
    last = conn.websocket.last()
    assert last["type"] == "error"
    assert last["message"] == message
