"""
Session management module.

Provides the SignalingRouter (call state machine) and the
ConnectionOrchestrator that feeds it from a WebSocket.
"""
from .router import SignalingRouter
from .orchestrator import ConnectionOrchestrator

__all__ = ["SignalingRouter", "ConnectionOrchestrator"]
