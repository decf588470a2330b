"""
WebSocket connection manager for live correlation surfaces.

Each connection owns a ``SurfaceSession``. Clients push selection changes and
receive the recomputed surface (grid, statistics and Plotly figure) once the
fetch-and-pivot cycle for that change has finished. Cycles run as background
tasks so a new selection can arrive while a previous fetch is still pending;
superseded cycles are dropped by the session's generation counter.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set

from fastapi import WebSocket

from api.app_config import get_app_config
from api.shared.correlation_data import (
    DataSetSelection,
    OrderParameterSelection,
    RangeSelection,
)
from api.shared.figure import figure_payload
from api.shared.loader import DatasetLoadError
from api.shared.logger import get_logger
from api.shared.pivot import grid_statistics
from api.shared.session import SurfaceSession, SurfaceUpdate

logger = get_logger(__name__)

SURFACE_CHANNEL = "correlations"


class MessageType(str, Enum):
    """Types of WebSocket messages."""

    # Client -> server
    SELECT = "select"
    REFRESH = "refresh"

    # Server -> client
    SURFACE_UPDATED = "surface_updated"
    SURFACE_FAILED = "surface_failed"

    # System messages
    PING = "ping"
    PONG = "pong"
    ERROR = "error"
    CONNECTED = "connected"


@dataclass
class WebSocketMessage:
    """Represents a WebSocket message."""

    type: MessageType
    channel: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now().isoformat()

    def to_json(self) -> str:
        """Convert message to JSON string."""
        return json.dumps({
            "type": self.type.value,
            "channel": self.channel,
            "data": self.data,
            "timestamp": self.timestamp,
        })

    @classmethod
    def from_json(cls, json_str: str) -> "WebSocketMessage":
        """Create message from JSON string."""
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ValueError("message must be a JSON object")
        payload = data.get("data") or {}
        if not isinstance(payload, dict):
            raise ValueError("message data must be a JSON object")
        return cls(
            type=MessageType(data.get("type", "error")),
            channel=data.get("channel", SURFACE_CHANNEL),
            data=payload,
            timestamp=data.get("timestamp"),
        )


def parse_selection_changes(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate the selection keys of a ``select`` message.

    Raises:
        ValueError: On an unknown key or value.
    """
    parsers = {
        "range": RangeSelection,
        "dataset": DataSetSelection,
        "order_parameter": OrderParameterSelection,
    }
    unknown = set(data) - set(parsers)
    if unknown:
        raise ValueError(f"Unknown selection keys: {', '.join(sorted(unknown))}")
    return {key: parsers[key](value) for key, value in data.items() if value is not None}


def surface_message_data(update: SurfaceUpdate) -> Dict[str, Any]:
    return {
        "generation": update.generation,
        "record_count": update.record_count,
        "selection": update.grid.selection.to_dict(),
        "grid": update.grid.to_dict(),
        "statistics": grid_statistics(update.grid),
        "figure": figure_payload(update.grid),
    }


def _default_session() -> SurfaceSession:
    return SurfaceSession(discard_stale=get_app_config().discard_stale)


class WebSocketManager:
    """
    Manages WebSocket connections and their surface sessions.
    """

    def __init__(self, session_factory: Optional[Callable[[], SurfaceSession]] = None):
        """Initialize the WebSocket manager."""
        self._session_factory = session_factory or _default_session

        # Connection -> its view state
        self._sessions: Dict[WebSocket, SurfaceSession] = {}

        # Connection -> recompute cycles still running
        self._tasks: Dict[WebSocket, Set[asyncio.Task]] = {}

        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, client_id: Optional[str] = None) -> SurfaceSession:
        """
        Accept a new WebSocket connection and start its first cycle.

        Args:
            websocket: The WebSocket connection
            client_id: Optional client identifier
        """
        await websocket.accept()

        session = self._session_factory()
        async with self._lock:
            self._sessions[websocket] = session
            self._tasks[websocket] = set()

        await self.send_to_connection(
            websocket,
            WebSocketMessage(
                type=MessageType.CONNECTED,
                channel="system",
                data={
                    "client_id": client_id,
                    "selection": session.selection.to_dict(),
                    "message": "Connected to corrsurface WebSocket server",
                },
            ),
        )

        self.schedule_cycle(websocket)
        return session

    async def disconnect(self, websocket: WebSocket) -> None:
        """
        Forget a connection and cancel its pending cycles.

        Args:
            websocket: The WebSocket connection to disconnect
        """
        async with self._lock:
            tasks = self._tasks.pop(websocket, set())
            self._sessions.pop(websocket, None)

        current = asyncio.current_task()
        for task in tasks:
            if task is not current:
                task.cancel()

    async def send_to_connection(
        self,
        websocket: WebSocket,
        message: WebSocketMessage,
    ) -> bool:
        """
        Send a message to a specific connection.

        Returns:
            True if sent successfully, False otherwise
        """
        try:
            await websocket.send_text(message.to_json())
            return True
        except Exception as e:
            logger.warning("Error sending WebSocket message: %s", e)
            await self.disconnect(websocket)
            return False

    def get_session(self, websocket: WebSocket) -> Optional[SurfaceSession]:
        return self._sessions.get(websocket)

    def get_connection_count(self) -> int:
        """Get the total number of active connections."""
        return len(self._sessions)

    def get_pending_cycles(self, websocket: WebSocket) -> int:
        return len(self._tasks.get(websocket, ()))

    def schedule_cycle(
        self,
        websocket: WebSocket,
        changes: Optional[Dict[str, Any]] = None,
    ) -> Optional[asyncio.Task]:
        """Start a fetch-and-recompute cycle in the background."""
        tasks = self._tasks.get(websocket)
        if tasks is None:
            return None

        task = asyncio.create_task(self._run_cycle(websocket, changes or {}))
        tasks.add(task)
        task.add_done_callback(tasks.discard)
        return task

    async def _run_cycle(self, websocket: WebSocket, changes: Dict[str, Any]) -> None:
        session = self._sessions.get(websocket)
        if session is None:
            return

        try:
            if changes:
                update = await session.select(**changes)
            else:
                update = await session.refresh()
        except DatasetLoadError as e:
            logger.error("Surface cycle failed: %s", e)
            await self.send_to_connection(
                websocket,
                WebSocketMessage(
                    type=MessageType.SURFACE_FAILED,
                    channel=SURFACE_CHANNEL,
                    data={"error": str(e), "generation": session.generation},
                ),
            )
            return
        except Exception as e:
            logger.exception("Unexpected error in surface cycle")
            await self.send_to_connection(
                websocket,
                WebSocketMessage(
                    type=MessageType.SURFACE_FAILED,
                    channel=SURFACE_CHANNEL,
                    data={"error": f"Internal error: {e}", "generation": session.generation},
                ),
            )
            return

        if update is None:
            # superseded by a newer selection
            return

        await self.send_to_connection(
            websocket,
            WebSocketMessage(
                type=MessageType.SURFACE_UPDATED,
                channel=SURFACE_CHANNEL,
                data=surface_message_data(update),
            ),
        )

    async def handle_message(
        self,
        websocket: WebSocket,
        message_text: str,
    ) -> Optional[WebSocketMessage]:
        """
        Handle an incoming WebSocket message.

        Args:
            websocket: Source WebSocket connection
            message_text: Raw message text

        Returns:
            Response message or None
        """
        try:
            message = WebSocketMessage.from_json(message_text)
        except (json.JSONDecodeError, ValueError) as e:
            return WebSocketMessage(
                type=MessageType.ERROR,
                channel="system",
                data={"error": f"Invalid message format: {e}"},
            )

        if message.type == MessageType.PING:
            return WebSocketMessage(
                type=MessageType.PONG,
                channel="system",
                data={"timestamp": datetime.now().isoformat()},
            )

        if message.type == MessageType.SELECT:
            try:
                changes = parse_selection_changes(message.data)
            except ValueError as e:
                return WebSocketMessage(
                    type=MessageType.ERROR,
                    channel=SURFACE_CHANNEL,
                    data={"error": f"Invalid selection: {e}"},
                )
            self.schedule_cycle(websocket, changes)
            return None

        if message.type == MessageType.REFRESH:
            self.schedule_cycle(websocket)
            return None

        return WebSocketMessage(
            type=MessageType.ERROR,
            channel="system",
            data={"error": f"Unsupported message type: {message.type.value}"},
        )


# Global WebSocket manager instance
ws_manager = WebSocketManager()
