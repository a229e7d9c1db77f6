"""Real-time notification models."""

from enum import StrEnum
from typing import Any, NewType

from pydantic import BaseModel, Field

SessionId = NewType("SessionId", str)


class ConnectionState(StrEnum):
    """Lifecycle of one transport connection. CLOSED is terminal."""

    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class ClientEvent(StrEnum):
    """Events sent by clients."""

    AUTHENTICATE = "authenticate"  # data: user id


class ServerEvent(StrEnum):
    """Events pushed to clients."""

    AUTHENTICATED = "authenticated"  # data: {"success": bool, "userId": str}
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"


class EventMessage(BaseModel):
    """Wire frame in both directions: `{"event": ..., "data": ...}`."""

    event: str = Field(..., min_length=1)
    data: Any = None


class CorsPolicy(BaseModel):
    """Cross-origin rules applied to transport handshakes."""

    origins: list[str] = Field(default_factory=list)
    methods: tuple[str, ...] = ("GET", "POST")
    credentials: bool = True

    def allows(self, origin: str | None, method: str = "GET") -> bool:
        """Check a handshake. Requests without an Origin header are not browser requests and pass."""
        if method.upper() not in self.methods:
            return False
        if origin is None or not self.origins or "*" in self.origins:
            return True
        return origin in self.origins
