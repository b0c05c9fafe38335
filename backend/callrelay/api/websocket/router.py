"""
WebSocket Router - Signaling Endpoint

Thin routing layer that hands each socket to a ConnectionOrchestrator.
"""
from fastapi import APIRouter, WebSocket

from callrelay.services.session import ConnectionOrchestrator

router = APIRouter()


@router.websocket("/")
@router.websocket("/ws")
async def ws_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for call signaling.

    Message Types (JSON, client -> server):
        - register: {user_id}
        - call_request: {call_id, target_user_id, call_type}
        - call_response: {call_id, response: accept|reject}
        - end_call: {call_id}
        - offer / answer / ice_candidate: {call_id, offer|answer|candidate}
        - heartbeat
    """
    state = websocket.app.state
    orchestrator = ConnectionOrchestrator(
        websocket=websocket,
        router=state.signaling,
        settings=state.settings,
    )
    await orchestrator.run()
