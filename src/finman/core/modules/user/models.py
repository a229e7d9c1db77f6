from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, Field

from finman.core.db import StoredModel
from finman.utils import now


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"


class User(StoredModel):
    """User domain model with credentials."""

    name: str
    email: str  # Stored lowercase, unique
    password_hash: str  # bcrypt hash
    role: UserRole = UserRole.USER
    created_at: datetime = Field(default_factory=now)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class UserView(BaseModel):
    """User account information (API representation)."""

    id: UUID = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="Account role")
    created_at: datetime = Field(..., description="Registration time (UTC)")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(id=user.id, name=user.name, email=user.email, role=user.role, created_at=user.created_at)
