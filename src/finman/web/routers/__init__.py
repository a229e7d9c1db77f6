from finman.web.routers.auth import router as auth_router
from finman.web.routers.budgets import router as budgets_router
from finman.web.routers.categories import router as categories_router
from finman.web.routers.notifications import router as notifications_router
from finman.web.routers.profile import router as profile_router
from finman.web.routers.realtime import router as realtime_router
from finman.web.routers.reports import router as reports_router
from finman.web.routers.transactions import router as transactions_router
from finman.web.routers.users import router as users_router

__all__ = [
    "auth_router",
    "budgets_router",
    "categories_router",
    "notifications_router",
    "profile_router",
    "realtime_router",
    "reports_router",
    "transactions_router",
    "users_router",
]
