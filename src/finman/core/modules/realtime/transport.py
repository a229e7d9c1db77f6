"""Transport server: live connections and their per-connection state machine.

Each connection moves CONNECTED -> AUTHENTICATED -> CLOSED (or straight to
CLOSED). The server owns the live-connection table and reports connects and
disconnects to the connection registry.
"""

import secrets
from typing import Any, Protocol

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from finman.core.modules.realtime.models import (
    ClientEvent,
    ConnectionState,
    EventMessage,
    ServerEvent,
    SessionId,
)
from finman.core.modules.realtime.registry import ConnectionRegistry

logger = structlog.get_logger(__name__)

GOING_AWAY = 1001


class Sender(Protocol):
    """The outbound half of a socket (a Starlette `WebSocket` satisfies it)."""

    async def send_json(self, data: Any) -> None: ...  # noqa: ANN401

    async def close(self, code: int = 1000) -> None: ...


class Connection:
    """One live transport session."""

    def __init__(self, session_id: SessionId, sender: Sender) -> None:
        self.session_id = session_id
        self.sender = sender
        self.state = ConnectionState.CONNECTED
        self.user_id: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    async def emit(self, event: str, data: Any = None) -> bool:  # noqa: ANN401
        """Send one frame. Returns False if the connection is closed or the send failed."""
        if self.is_closed:
            return False
        if isinstance(data, BaseModel):
            data = data.model_dump(mode="json", by_alias=True)
        try:
            await self.sender.send_json({"event": event, "data": data})
        except Exception as e:
            logger.warning("socket_send_failed", session_id=self.session_id, socket_event=event, error=str(e))
            return False
        return True


class TransportServer:
    """Accepts connections, authenticates them, and tracks their lifetime."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._connections: dict[SessionId, Connection] = {}

    @property
    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    def get_connection(self, session_id: SessionId) -> Connection | None:
        return self._connections.get(session_id)

    def connect(self, sender: Sender) -> Connection:
        """Register a freshly accepted socket under a new session id."""
        connection = Connection(SessionId(secrets.token_urlsafe(16)), sender)
        self._connections[connection.session_id] = connection
        logger.info("client_connected", session_id=connection.session_id, total=len(self._connections))
        return connection

    async def handle_message(self, connection: Connection, message: Any) -> None:  # noqa: ANN401
        """Route one decoded client frame."""
        if connection.is_closed:
            return
        try:
            frame = EventMessage.model_validate(message)
        except PydanticValidationError:
            logger.debug("socket_frame_ignored", session_id=connection.session_id)
            return

        if frame.event == ClientEvent.AUTHENTICATE:
            await self.authenticate(connection, frame.data)
        else:
            logger.debug("socket_event_ignored", session_id=connection.session_id, socket_event=frame.event)

    async def authenticate(self, connection: Connection, user_id: Any) -> None:  # noqa: ANN401
        """Bind `user_id` to the connection and acknowledge. Malformed ids are ignored."""
        if connection.is_closed:
            return
        if not isinstance(user_id, str) or not user_id:
            return

        self._registry.register(user_id, connection.session_id)
        connection.user_id = user_id
        connection.state = ConnectionState.AUTHENTICATED
        logger.info("user_authenticated", user_id=user_id, session_id=connection.session_id)
        await connection.emit(ServerEvent.AUTHENTICATED, {"success": True, "userId": user_id})

    def handle_error(self, connection: Connection, error: object) -> None:
        """Transport-level errors are logged; the connection stays open."""
        logger.warning("socket_error", session_id=connection.session_id, error=str(error))

    def disconnect(self, connection: Connection) -> None:
        if connection.is_closed:
            return
        connection.state = ConnectionState.CLOSED
        self._connections.pop(connection.session_id, None)
        user_id = self._registry.remove(connection.session_id)
        logger.info("client_disconnected", session_id=connection.session_id, user_id=user_id)

    async def emit(self, session_id: SessionId, event: str, data: Any = None) -> bool:  # noqa: ANN401
        connection = self._connections.get(session_id)
        if connection is None:
            return False
        return await connection.emit(event, data)

    async def emit_all(self, event: str, data: Any = None) -> int:  # noqa: ANN401
        """Send to every live connection. Returns the number of successful sends."""
        sent = 0
        for connection in self.connections:
            if await connection.emit(event, data):
                sent += 1
        return sent

    async def shutdown(self) -> None:
        """Close every live connection."""
        for connection in self.connections:
            try:
                await connection.sender.close(code=GOING_AWAY)
            except Exception as e:
                logger.debug("socket_close_failed", session_id=connection.session_id, error=str(e))
            self.disconnect(connection)
