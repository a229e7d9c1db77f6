"""Monthly spending limits per expense category."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from finman.core.db import StoredModel
from finman.utils import now

MIN_YEAR = 2000
MAX_YEAR = 2100


class Budget(StoredModel):
    """Spending limit for one expense category in one calendar month.

    Indexed on (user_id, category_id, year, month) - unique.
    """

    user_id: UUID
    category_id: UUID
    amount: float = Field(..., gt=0)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
