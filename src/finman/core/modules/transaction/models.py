"""Transaction models."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from pydantic import Field

from finman.core.db import StoredModel
from finman.utils import now

MAX_DESCRIPTION_LENGTH = 500
MAX_NOTES_LENGTH = 1000


class TransactionType(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMethod(StrEnum):
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    DIGITAL_WALLET = "digital_wallet"
    OTHER = "other"


def signed_amount(amount: float, transaction_type: TransactionType) -> float:
    """Expenses are stored negative, income positive."""
    magnitude = abs(amount)
    return -magnitude if transaction_type == TransactionType.EXPENSE else magnitude


class Transaction(StoredModel):
    """A single income or expense entry.

    Indexed on user_id and (user_id, category_id).
    """

    user_id: UUID
    category_id: UUID
    type: TransactionType
    amount: float  # Signed by type, see signed_amount()
    description: str
    date: datetime
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
