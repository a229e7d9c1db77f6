import secrets
from datetime import timedelta
from uuid import UUID

import structlog

from finman.core.core import Service
from finman.core.modules.session.models import AuthToken, Session
from finman.core.modules.user.models import User
from finman.core.storage import DocumentStore
from finman.errors import AuthenticationError

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Service for managing user sessions."""

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store)
        self._collection = store.collection("sessions")
        self._authenticated_users: dict[AuthToken, UUID] = {}

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.core.config.session_ttl_days)

    async def on_start(self) -> None:
        """Create indexes on startup."""
        await self._collection.create_index(["auth_token"], unique=True)
        await self._collection.create_index(["user_id"])

    async def create_session(self, user_id: UUID) -> AuthToken:
        auth_token = AuthToken(secrets.token_urlsafe(32))
        new_session = Session(user_id=user_id, auth_token=auth_token)
        await self._collection.insert_one(new_session.to_document())
        return auth_token

    async def get_authenticated_user(self, auth_token: AuthToken) -> User:
        # Check cache first; the user itself always comes from the user cache
        user_id = self._authenticated_users.get(auth_token)
        if user_id is None:
            doc = await self._collection.find_one({"auth_token": auth_token})
            if doc is None:
                raise AuthenticationError("Invalid or expired session")
            session = Session.model_validate(doc)
            if session.is_expired(self.ttl):
                await self.invalidate_session(auth_token)
                raise AuthenticationError("Invalid or expired session")
            user_id = session.user_id

        if not self.core.services.user.has_user(user_id):
            self._authenticated_users.pop(auth_token, None)
            raise AuthenticationError("Invalid or expired session")

        self._authenticated_users[auth_token] = user_id
        return self.core.services.user.get_user(user_id)

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        try:
            await self.get_authenticated_user(auth_token)
        except AuthenticationError:
            return False
        return True

    async def invalidate_session(self, auth_token: AuthToken) -> None:
        """Invalidate a session by removing it from storage."""
        self._authenticated_users.pop(auth_token, None)
        await self._collection.delete_one({"auth_token": auth_token})

    async def invalidate_user_sessions(self, user_id: UUID) -> int:
        """Drop every session belonging to a user."""
        self._authenticated_users = {t: u for t, u in self._authenticated_users.items() if u != user_id}
        return await self._collection.delete_many({"user_id": user_id})
