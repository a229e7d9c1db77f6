from datetime import datetime
from uuid import UUID

from pydantic import Field

from finman.core.db import StoredModel
from finman.core.modules.transaction.models import TransactionType
from finman.utils import now

MAX_NAME_LENGTH = 50


class Category(StoredModel):
    """Per-user transaction category.

    Indexed on (user_id, name, type) - unique.
    """

    user_id: UUID
    name: str
    type: TransactionType
    icon: str = "category"  # Material icon name
    color: str = "#666666"
    is_default: bool = False  # Created automatically at registration
    created_at: datetime = Field(default_factory=now)
