"""
Call Signaling Relay

Brokers the WebRTC control-plane handshake between pairs of connected users.
"""

__version__ = "1.0.0"
