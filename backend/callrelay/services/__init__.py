"""Signaling Services.

This package contains the in-memory state and routing logic of the relay.

Service Categories:
- Connection: identity -> WebSocket registry
- Call: call session table and phase model
- Session: message routing / call state machine, per-connection loop
- Metrics: prometheus instrumentation
"""
