from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, cast

import structlog

from finman.config import Config
from finman.core.storage import DocumentStore, create_store

if TYPE_CHECKING:
    from finman.core.modules.access.service import AccessService
    from finman.core.modules.budget.service import BudgetService
    from finman.core.modules.category.service import CategoryService
    from finman.core.modules.realtime.service import RealtimeService
    from finman.core.modules.report.service import ReportService
    from finman.core.modules.session.service import SessionService
    from finman.core.modules.transaction.service import TransactionService
    from finman.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with direct storage access."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    user: UserService
    session: SessionService
    access: AccessService
    category: CategoryService
    transaction: TransactionService
    budget: BudgetService
    report: ReportService
    realtime: RealtimeService

    def __init__(self, store: DocumentStore) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Start order: users before anything keyed by user, realtime last
        service_configs = [
            ("user", "finman.core.modules.user.service", "UserService"),
            ("session", "finman.core.modules.session.service", "SessionService"),
            ("access", "finman.core.modules.access.service", "AccessService"),
            ("category", "finman.core.modules.category.service", "CategoryService"),
            ("transaction", "finman.core.modules.transaction.service", "TransactionService"),
            ("budget", "finman.core.modules.budget.service", "BudgetService"),
            ("report", "finman.core.modules.report.service", "ReportService"),
            ("realtime", "finman.core.modules.realtime.service", "RealtimeService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(store)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop services in reverse start order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, storage, and all service instances."""

    config: Config
    store: DocumentStore
    services: Services

    def __init__(self, config: Config, store: DocumentStore | None = None) -> None:
        """Initialize core with config, a document store, and auto-register services."""
        self.config = config
        self.store = store if store is not None else create_store(config)
        self.services = Services(self.store)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.store.open()
        await self.services.start_all()
        logger.info("core_started", storage=self.store.backend)

    async def on_stop(self) -> None:
        """Stop services and close the store on shutdown."""
        await self.services.stop_all()
        await self.store.close()
        logger.info("core_stopped")
