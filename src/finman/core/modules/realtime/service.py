from typing import Any

import structlog

from finman.core.core import Service
from finman.core.modules.realtime.dispatcher import NotificationDispatcher
from finman.core.modules.realtime.models import CorsPolicy
from finman.core.modules.realtime.registry import ConnectionRegistry
from finman.core.modules.realtime.transport import Connection, Sender, TransportServer
from finman.core.storage import DocumentStore

logger = structlog.get_logger(__name__)


class RealtimeService(Service):
    """Owns this process's connection registry, transport server and dispatcher.

    Created with the core at startup; on shutdown every live socket is closed
    and the registry is emptied. Valid for a single-process deployment only.
    """

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store)
        self.registry = ConnectionRegistry()
        self.transport = TransportServer(self.registry)
        self.dispatcher = NotificationDispatcher(self.registry, self.transport)
        self._cors: CorsPolicy | None = None

    @property
    def cors(self) -> CorsPolicy:
        if self._cors is None:
            self._cors = CorsPolicy(origins=self.core.config.cors_origins)
        return self._cors

    def is_handshake_allowed(self, origin: str | None) -> bool:
        return self.cors.allows(origin, "GET")

    def open(self, sender: Sender) -> Connection:
        return self.transport.connect(sender)

    async def receive(self, connection: Connection, message: Any) -> None:  # noqa: ANN401
        await self.transport.handle_message(connection, message)

    def fail(self, connection: Connection, error: object) -> None:
        self.transport.handle_error(connection, error)

    def close(self, connection: Connection) -> None:
        self.transport.disconnect(connection)

    async def notify_user(self, user_id: str, event: str, payload: Any = None) -> None:  # noqa: ANN401
        await self.dispatcher.notify_user(user_id, event, payload)

    async def broadcast(self, event: str, payload: Any = None) -> None:  # noqa: ANN401
        await self.dispatcher.broadcast(event, payload)

    async def on_stop(self) -> None:
        await self.transport.shutdown()
        self.registry.clear()
        logger.debug("realtime_service_stopped")
