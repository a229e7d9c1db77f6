from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from finman.app import App
from finman.config import Config
from finman.errors import UserError
from finman.web.deps import AppDep
from finman.web.error_handlers import general_exception_handler, request_validation_error_handler, user_error_handler
from finman.web.openapi import set_custom_openapi
from finman.web.routers import (
    auth_router,
    budgets_router,
    categories_router,
    notifications_router,
    profile_router,
    realtime_router,
    reports_router,
    transactions_router,
    users_router,
)

API_PREFIX = "/api/v1"
API_ROUTERS = (
    auth_router,
    profile_router,
    users_router,
    categories_router,
    transactions_router,
    budgets_router,
    reports_router,
    notifications_router,
)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        # Routers and the WebSocket endpoint reach the facade through app.state
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="FinMan API", lifespan=lifespan)

    # Origins are shared with the WebSocket handshake check
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Unversioned, for load balancers and uptime checks
    @app.get("/health", tags=["health"], operation_id="healthCheck")
    async def health_check(app: AppDep) -> dict[str, str]:
        return await app.get_health()

    for router in API_ROUTERS:
        app.include_router(router, prefix=API_PREFIX)
    app.include_router(realtime_router)

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
