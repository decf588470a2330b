"""
Live channel for the corrsurface webapp.

Pushes recomputed correlation surfaces to browser clients over WebSocket as
they change their toggle selections.
"""

from .manager import (
    MessageType,
    WebSocketManager,
    WebSocketMessage,
    parse_selection_changes,
    ws_manager,
)

__all__ = [
    "MessageType",
    "WebSocketManager",
    "WebSocketMessage",
    "parse_selection_changes",
    "ws_manager",
]
