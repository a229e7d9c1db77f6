"""Session management models."""

from datetime import datetime, timedelta
from typing import NewType
from uuid import UUID

from pydantic import Field

from finman.core.db import StoredModel
from finman.utils import as_utc, now

AuthToken = NewType("AuthToken", str)


class Session(StoredModel):
    """User authentication session.

    Indexed on auth_token - unique, user_id.
    """

    user_id: UUID
    auth_token: str
    created_at: datetime = Field(default_factory=now)

    def is_expired(self, ttl: timedelta) -> bool:
        return as_utc(self.created_at) + ttl < now()
