import math
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog

from finman.core.core import Service
from finman.core.modules.category.models import Category
from finman.core.modules.realtime.models import ServerEvent
from finman.core.modules.transaction.models import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NOTES_LENGTH,
    PaymentMethod,
    Transaction,
    TransactionType,
    signed_amount,
)
from finman.core.storage import DESCENDING, DocumentStore
from finman.errors import NotFoundError, ValidationError
from finman.utils import as_utc, now

logger = structlog.get_logger(__name__)


def validate_description(description: str) -> str:
    description = description.strip()
    if not description:
        raise ValidationError("Please add a description")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(f"Description can not be more than {MAX_DESCRIPTION_LENGTH} characters")
    return description


def validate_notes(notes: str) -> str:
    notes = notes.strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(f"Notes can not be more than {MAX_NOTES_LENGTH} characters")
    return notes


def validate_amount(amount: float) -> None:
    if not math.isfinite(amount):
        raise ValidationError("Amount must be a finite number")
    if amount == 0:
        raise ValidationError("Please add an amount")


def validate_category(category: Category, user_id: UUID, type: TransactionType) -> None:
    if category.user_id != user_id:
        raise ValidationError("Category does not belong to the transaction owner")
    if category.type != type:
        raise ValidationError(f"Category '{category.name}' is for {category.type} transactions")


def in_date_range(value: datetime, start: datetime | None, end: datetime | None) -> bool:
    value = as_utc(value)
    if start is not None and value < as_utc(start):
        return False
    return end is None or value <= as_utc(end)


def in_amount_range(amount: float, minimum: float | None, maximum: float | None) -> bool:
    """Inclusive range on the magnitude, so the same bounds work for income and expenses."""
    magnitude = abs(amount)
    if minimum is not None and magnitude < minimum:
        return False
    return maximum is None or magnitude <= maximum


class TransactionService(Service):
    """Manages income and expense transactions and notifies owners of changes."""

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store)
        self._collection = store.collection("transactions")

    async def on_start(self) -> None:
        await self._collection.create_index(["user_id"])
        await self._collection.create_index(["user_id", "category_id"])

    async def list_transactions(
        self,
        user_id: UUID,
        type: TransactionType | None = None,
        category_id: UUID | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        min_amount: float | None = None,
        max_amount: float | None = None,
    ) -> list[Transaction]:
        """Get a user's transactions, newest first, optionally filtered.

        Date bounds and amount bounds are inclusive; amount bounds apply to the
        absolute amount.
        """
        if min_amount is not None and max_amount is not None and min_amount > max_amount:
            raise ValidationError("min_amount must not be greater than max_amount")
        query: dict[str, Any] = {"user_id": user_id}
        if type is not None:
            query["type"] = type
        if category_id is not None:
            query["category_id"] = category_id
        docs = await self._collection.find(query, sort=[("date", DESCENDING)])
        return [
            t
            for t in Transaction.from_documents(docs)
            if in_date_range(t.date, start_date, end_date) and in_amount_range(t.amount, min_amount, max_amount)
        ]

    async def get_transaction(self, transaction_id: UUID) -> Transaction:
        doc = await self._collection.find_one({"_id": transaction_id})
        if doc is None:
            raise NotFoundError(f"Transaction not found with id of {transaction_id}")
        return Transaction.model_validate(doc)

    async def create_transaction(
        self,
        user_id: UUID,
        category: Category,
        type: TransactionType,
        amount: float,
        description: str,
        date: datetime | None = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        notes: str = "",
        tags: list[str] | None = None,
    ) -> Transaction:
        """Create transaction with its amount signed by type."""
        validate_amount(amount)
        validate_category(category, user_id, type)
        transaction = Transaction(
            user_id=user_id,
            category_id=category.id,
            type=type,
            amount=signed_amount(amount, type),
            description=validate_description(description),
            date=as_utc(date) if date is not None else now(),
            payment_method=payment_method,
            notes=validate_notes(notes),
            tags=[tag.strip() for tag in tags or [] if tag.strip()],
        )
        await self._collection.insert_one(transaction.to_document())
        logger.debug("transaction_created", transaction_id=transaction.id, user_id=user_id)

        await self.core.services.realtime.notify_user(str(user_id), ServerEvent.TRANSACTION_CREATED, transaction)
        return transaction

    async def update_transaction(
        self,
        transaction_id: UUID,
        category: Category | None = None,
        type: TransactionType | None = None,
        amount: float | None = None,
        description: str | None = None,
        date: datetime | None = None,
        payment_method: PaymentMethod | None = None,
        notes: str | None = None,
        tags: list[str] | None = None,
    ) -> Transaction:
        """Partial update; None values are ignored.

        The amount is re-signed whenever type or amount changes, and the
        resulting category must still match the resulting type.
        """
        current = await self.get_transaction(transaction_id)
        new_type = type or current.type

        if category is None and new_type != current.type:
            category = await self.core.services.category.get_category(current.category_id)
        if category is not None:
            validate_category(category, current.user_id, new_type)

        if amount is not None:
            validate_amount(amount)
        magnitude = amount if amount is not None else current.amount

        values: dict[str, Any] = {
            "type": new_type,
            "amount": signed_amount(magnitude, new_type),
            "updated_at": now(),
        }
        if category is not None:
            values["category_id"] = category.id
        if description is not None:
            values["description"] = validate_description(description)
        if date is not None:
            values["date"] = as_utc(date)
        if payment_method is not None:
            values["payment_method"] = payment_method
        if notes is not None:
            values["notes"] = validate_notes(notes)
        if tags is not None:
            values["tags"] = [tag.strip() for tag in tags if tag.strip()]

        await self._collection.update_one({"_id": transaction_id}, values)
        transaction = await self.get_transaction(transaction_id)

        await self.core.services.realtime.notify_user(
            str(transaction.user_id), ServerEvent.TRANSACTION_UPDATED, transaction
        )
        return transaction

    async def delete_transaction(self, transaction_id: UUID) -> None:
        transaction = await self.get_transaction(transaction_id)
        await self._collection.delete_one({"_id": transaction_id})
        await self.core.services.realtime.notify_user(
            str(transaction.user_id), ServerEvent.TRANSACTION_DELETED, {"id": str(transaction_id)}
        )

    async def count_by_category(self, category_id: UUID) -> int:
        return await self._collection.count({"category_id": category_id})

    async def delete_transactions_by_user(self, user_id: UUID) -> int:
        """Delete all transactions of a user and return count of deleted transactions."""
        return await self._collection.delete_many({"user_id": user_id})
