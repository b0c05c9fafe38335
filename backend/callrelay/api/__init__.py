from datetime import datetime, UTC

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/")
async def root(request: Request):
    """Relay status, kept compatible with existing dashboards."""
    state = request.app.state
    return {
        "status": "WebRTC Signaling Server Running",
        "connectedClients": state.registry.get_total_connections(),
        "activeCalls": state.calls.get_active_call_count(),
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health")
async def health(request: Request):
    """Health check endpoint."""
    state = request.app.state
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "active_calls": state.calls.get_active_call_count(),
        "total_connections": state.registry.get_total_connections(),
    }
