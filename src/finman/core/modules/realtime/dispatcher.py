from typing import Any

import structlog

from finman.core.modules.realtime.registry import ConnectionRegistry
from finman.core.modules.realtime.transport import TransportServer

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Pushes events to users' live sessions.

    Delivery is best-effort and at-most-once: a user without a session simply
    misses the event, and callers are never told either way.
    """

    def __init__(self, registry: ConnectionRegistry, transport: TransportServer) -> None:
        self._registry = registry
        self._transport = transport

    async def notify_user(self, user_id: str, event: str, payload: Any = None) -> None:  # noqa: ANN401
        session_id = self._registry.lookup(user_id)
        if session_id is None:
            logger.debug("notification_dropped", user_id=user_id, socket_event=event)
            return
        await self._transport.emit(session_id, event, payload)

    async def broadcast(self, event: str, payload: Any = None) -> None:  # noqa: ANN401
        """Emit to every live connection, authenticated or not."""
        sent = await self._transport.emit_all(event, payload)
        logger.debug("broadcast_sent", socket_event=event, recipients=sent)
