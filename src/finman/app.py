from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog

from finman.config import Config
from finman.core.core import Core
from finman.core.modules.budget.models import Budget
from finman.core.modules.category.models import Category
from finman.core.modules.realtime.transport import Connection, Sender
from finman.core.modules.report.models import (
    BudgetReport,
    CategoryTotal,
    PeriodGrouping,
    PeriodTotal,
    TransactionSummary,
)
from finman.core.modules.session.models import AuthToken
from finman.core.modules.transaction.models import PaymentMethod, Transaction, TransactionType
from finman.core.modules.user.models import User, UserView
from finman.core.storage import DocumentStore
from finman.errors import AuthenticationError, ValidationError

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config, store: DocumentStore | None = None) -> None:
        self._core = Core(config, store)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def get_health(self) -> dict[str, str]:
        """Report storage reachability (public)."""
        try:
            await self._core.store.ping()
        except Exception as e:  # noqa: BLE001
            logger.warning("storage_unreachable", error=str(e))
            database = "disconnected"
        else:
            database = "connected"
        return {"status": "ok", "storage": self._core.store.backend, "database": database}

    # === Auth ===
    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        """Check if authentication token is valid."""
        return await self._core.services.session.is_auth_token_valid(auth_token)

    async def register(self, name: str, email: str, password: str) -> AuthToken:
        """Create account with default categories and start a session."""
        user = await self._core.services.user.create_user(name, email, password)
        await self._core.services.category.create_default_categories(user.id)
        return await self._core.services.session.create_session(user.id)

    async def login(self, email: str, password: str) -> AuthToken:
        """Authenticate user and create session."""
        if not self._core.services.user.verify_password(email, password):
            raise AuthenticationError("Invalid credentials")
        user = self._core.services.user.get_user_by_email(email)
        return await self._core.services.session.create_session(user.id)

    async def logout(self, auth_token: AuthToken) -> None:
        """Invalidate user session."""
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.session.invalidate_session(auth_token)

    # === Profile ===
    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        """Get current authenticated user profile."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return UserView.from_domain(current_user)

    async def update_profile(self, auth_token: AuthToken, name: str | None, email: str | None) -> UserView:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        user = await self._core.services.user.update_details(current_user.id, name, email)
        return UserView.from_domain(user)

    async def change_password(self, auth_token: AuthToken, old_password: str, new_password: str) -> None:
        """Change password for current user."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.user.change_password(current_user.id, old_password, new_password)

    # === Users (admin) ===
    async def get_all_users(self, auth_token: AuthToken) -> list[UserView]:
        await self._core.services.access.ensure_admin(auth_token)
        return [UserView.from_domain(user) for user in self._core.services.user.get_all_users()]

    async def delete_user(self, auth_token: AuthToken, user_id: UUID) -> None:
        """Delete a user and everything they own (admin only, cannot delete self)."""
        current_user = await self._core.services.access.ensure_admin(auth_token)
        user = self._core.services.user.get_user(user_id)
        if user.id == current_user.id:
            raise ValidationError("Cannot delete yourself")

        # Dependents first, the user record last
        await self._core.services.transaction.delete_transactions_by_user(user.id)
        await self._core.services.budget.delete_budgets_by_user(user.id)
        await self._core.services.category.delete_categories_by_user(user.id)
        await self._core.services.session.invalidate_user_sessions(user.id)
        await self._core.services.user.delete_user(user.id)

    # === Categories ===
    async def get_categories(self, auth_token: AuthToken, type: TransactionType | None = None) -> list[Category]:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.category.list_categories(current_user.id, type)

    async def get_category(self, auth_token: AuthToken, category_id: UUID) -> Category:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._resolve_category(current_user, category_id)

    async def create_category(
        self, auth_token: AuthToken, name: str, type: TransactionType, icon: str | None, color: str | None
    ) -> Category:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.category.create_category(current_user.id, name, type, icon, color)

    async def update_category(
        self, auth_token: AuthToken, category_id: UUID, name: str | None, icon: str | None, color: str | None
    ) -> Category:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        category = await self._resolve_category(current_user, category_id)
        return await self._core.services.category.update_category(category.id, name, icon, color)

    async def delete_category(self, auth_token: AuthToken, category_id: UUID) -> None:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        category = await self._resolve_category(current_user, category_id)
        await self._core.services.category.delete_category(category.id)

    # === Transactions ===
    async def get_transactions(
        self,
        auth_token: AuthToken,
        type: TransactionType | None = None,
        category_id: UUID | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        min_amount: float | None = None,
        max_amount: float | None = None,
    ) -> list[Transaction]:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.transaction.list_transactions(
            current_user.id, type, category_id, start_date, end_date, min_amount, max_amount
        )

    async def get_transaction(self, auth_token: AuthToken, transaction_id: UUID) -> Transaction:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._resolve_transaction(current_user, transaction_id)

    async def create_transaction(
        self,
        auth_token: AuthToken,
        category_id: UUID,
        type: TransactionType,
        amount: float,
        description: str,
        date: datetime | None = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        notes: str = "",
        tags: list[str] | None = None,
    ) -> Transaction:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        category = await self._resolve_category(current_user, category_id)
        return await self._core.services.transaction.create_transaction(
            current_user.id, category, type, amount, description, date, payment_method, notes, tags
        )

    async def update_transaction(
        self,
        auth_token: AuthToken,
        transaction_id: UUID,
        category_id: UUID | None = None,
        type: TransactionType | None = None,
        amount: float | None = None,
        description: str | None = None,
        date: datetime | None = None,
        payment_method: PaymentMethod | None = None,
        notes: str | None = None,
        tags: list[str] | None = None,
    ) -> Transaction:
        """Update transaction (owner or admin).

        Parameters are optional (None) to support partial updates - only fields
        provided will be updated, while None values are ignored."""
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        transaction = await self._resolve_transaction(current_user, transaction_id)
        category = None
        if category_id is not None:
            category = await self._core.services.category.get_category(category_id)
        return await self._core.services.transaction.update_transaction(
            transaction.id, category, type, amount, description, date, payment_method, notes, tags
        )

    async def delete_transaction(self, auth_token: AuthToken, transaction_id: UUID) -> None:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        transaction = await self._resolve_transaction(current_user, transaction_id)
        await self._core.services.transaction.delete_transaction(transaction.id)

    # === Budgets ===
    async def get_budgets(self, auth_token: AuthToken, month: int | None, year: int | None) -> list[Budget]:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.budget.list_budgets(current_user.id, month, year)

    async def create_budget(
        self, auth_token: AuthToken, category_id: UUID, amount: float, month: int, year: int
    ) -> Budget:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        category = await self._resolve_category(current_user, category_id)
        return await self._core.services.budget.create_budget(current_user.id, category, amount, month, year)

    async def update_budget(self, auth_token: AuthToken, budget_id: UUID, amount: float) -> Budget:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        budget = await self._resolve_budget(current_user, budget_id)
        return await self._core.services.budget.update_budget(budget.id, amount)

    async def delete_budget(self, auth_token: AuthToken, budget_id: UUID) -> None:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        budget = await self._resolve_budget(current_user, budget_id)
        await self._core.services.budget.delete_budget(budget.id)

    # === Reports ===
    async def get_summary_report(
        self, auth_token: AuthToken, start_date: datetime | None, end_date: datetime | None
    ) -> TransactionSummary:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.report.get_summary(current_user.id, start_date, end_date)

    async def get_category_report(
        self, auth_token: AuthToken, start_date: datetime | None, end_date: datetime | None
    ) -> list[CategoryTotal]:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.report.get_by_category(current_user.id, start_date, end_date)

    async def get_period_report(
        self, auth_token: AuthToken, start_date: datetime, end_date: datetime, grouping: PeriodGrouping
    ) -> list[PeriodTotal]:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.report.get_by_period(current_user.id, start_date, end_date, grouping)

    async def get_budget_report(self, auth_token: AuthToken, month: int, year: int) -> BudgetReport:
        current_user = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.report.get_budget_report(current_user.id, month, year)

    # === Real-time sockets (no auth token: clients identify with the authenticate event) ===
    def is_socket_origin_allowed(self, origin: str | None) -> bool:
        return self._core.services.realtime.is_handshake_allowed(origin)

    def open_socket(self, sender: Sender) -> Connection:
        return self._core.services.realtime.open(sender)

    async def receive_socket_message(self, connection: Connection, message: Any) -> None:  # noqa: ANN401
        await self._core.services.realtime.receive(connection, message)

    def report_socket_error(self, connection: Connection, error: object) -> None:
        self._core.services.realtime.fail(connection, error)

    def close_socket(self, connection: Connection) -> None:
        self._core.services.realtime.close(connection)

    async def broadcast(self, auth_token: AuthToken, event: str, payload: Any = None) -> None:  # noqa: ANN401
        """Push an event to every connected client (admin only)."""
        await self._core.services.access.ensure_admin(auth_token)
        await self._core.services.realtime.broadcast(event, payload)

    # === Private resolver methods ===
    async def _resolve_category(self, user: User, category_id: UUID) -> Category:
        """Resolve category and check ownership. Raises NotFoundError or AccessDeniedError."""
        category = await self._core.services.category.get_category(category_id)
        self._core.services.access.ensure_owner(user, category.user_id, "category")
        return category

    async def _resolve_transaction(self, user: User, transaction_id: UUID) -> Transaction:
        transaction = await self._core.services.transaction.get_transaction(transaction_id)
        self._core.services.access.ensure_owner(user, transaction.user_id, "transaction")
        return transaction

    async def _resolve_budget(self, user: User, budget_id: UUID) -> Budget:
        budget = await self._core.services.budget.get_budget(budget_id)
        self._core.services.access.ensure_owner(user, budget.user_id, "budget")
        return budget
