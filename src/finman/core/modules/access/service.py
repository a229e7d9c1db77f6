from uuid import UUID

from finman.core.core import Service
from finman.core.modules.session.models import AuthToken
from finman.core.modules.user.models import User
from finman.errors import AccessDeniedError


class AccessService(Service):
    async def ensure_authenticated(self, auth_token: AuthToken) -> User:
        """Ensure the user is authenticated."""
        return await self.core.services.session.get_authenticated_user(auth_token)

    async def ensure_admin(self, auth_token: AuthToken) -> User:
        """Ensure the authenticated user is admin, raise AccessDeniedError if not."""
        user = await self.ensure_authenticated(auth_token)
        if not user.is_admin:
            raise AccessDeniedError("Admin privileges required")
        return user

    def ensure_owner(self, user: User, owner_id: UUID, resource: str) -> None:
        """Ensure `user` owns the resource (admins may act on anything)."""
        if user.id != owner_id and not user.is_admin:
            raise AccessDeniedError(f"User '{user.id}' is not authorized to access this {resource}")
