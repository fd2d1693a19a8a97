"""
Connection status tracking for voice command sessions.

Tracked separately from the recognition state machine: a session can be
LISTENING only while UP, but IDLE with any status.

Pure data owned by SessionGateway.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """WebSocket lifecycle status, independent of SessionState."""
    DOWN = "DOWN"  # Never connected, or disconnected
    UP = "UP"      # Active WebSocket connection
