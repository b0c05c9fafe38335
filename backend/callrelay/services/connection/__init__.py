"""
Connection Management Module

Connection wrapper and the identity -> connection registry.
"""
from .models import ClientConnection
from .registry import ConnectionRegistry

__all__ = [
    "ClientConnection",
    "ConnectionRegistry",
]
