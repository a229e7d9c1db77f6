from uuid import UUID

import bcrypt
import structlog

from finman.core.core import Service
from finman.core.modules.user.models import User, UserRole
from finman.core.modules.user.validators import normalize_email, validate_email, validate_name, validate_password
from finman.core.storage import DocumentStore
from finman.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_ADMIN_NAME = "Admin User"
DEFAULT_ADMIN_EMAIL = "admin@example.com"
DEFAULT_ADMIN_PASSWORD = "admin123"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


class UserService(Service):
    """Manages users with in-memory cache."""

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store)
        self._collection = store.collection("users")
        self._users: dict[UUID, User] = {}

    def get_user(self, user_id: UUID) -> User:
        """Get user by ID from cache."""
        if user_id not in self._users:
            raise NotFoundError(f"User '{user_id}' not found")
        return self._users[user_id]

    def get_user_by_email(self, email: str) -> User:
        email = normalize_email(email)
        user = next((u for u in self._users.values() if u.email == email), None)
        if user is None:
            raise NotFoundError(f"User '{email}' not found")
        return user

    def has_user(self, user_id: UUID) -> bool:
        return user_id in self._users

    def has_email(self, email: str) -> bool:
        email = normalize_email(email)
        return any(user.email == email for user in self._users.values())

    def get_all_users(self) -> list[User]:
        return sorted(self._users.values(), key=lambda u: u.created_at)

    async def create_user(self, name: str, email: str, password: str, role: UserRole = UserRole.USER) -> User:
        """Create user with hashed password."""
        email = normalize_email(email)
        validate_name(name)
        validate_email(email)
        validate_password(password)
        if self.has_email(email):
            raise ValidationError("User already exists")

        user = User(name=name.strip(), email=email, password_hash=hash_password(password), role=role)
        await self._collection.insert_one(user.to_document())
        logger.info("user_created", user_id=user.id, role=role)
        return await self.update_user_cache(user.id)

    def verify_password(self, email: str, password: str) -> bool:
        """Verify password against stored hash."""
        email = normalize_email(email)
        user = next((u for u in self._users.values() if u.email == email), None)
        if user is None:
            return False
        return check_password(password, user.password_hash)

    async def change_password(self, user_id: UUID, old_password: str, new_password: str) -> None:
        """Change user password after verifying current password."""
        user = self.get_user(user_id)
        if not check_password(old_password, user.password_hash):
            raise ValidationError("Invalid current password")

        validate_password(new_password)
        await self._collection.update_one({"_id": user_id}, {"password_hash": hash_password(new_password)})
        await self.update_user_cache(user_id)

    async def update_details(self, user_id: UUID, name: str | None = None, email: str | None = None) -> User:
        """Update name and/or email. None values are left unchanged."""
        user = self.get_user(user_id)
        values: dict[str, str] = {}
        if name is not None:
            validate_name(name)
            values["name"] = name.strip()
        if email is not None:
            email = normalize_email(email)
            validate_email(email)
            if email != user.email and self.has_email(email):
                raise ValidationError("Email is already in use")
            values["email"] = email

        if values:
            await self._collection.update_one({"_id": user_id}, values)
        return await self.update_user_cache(user_id)

    async def delete_user(self, user_id: UUID) -> None:
        if not self.has_user(user_id):
            raise NotFoundError(f"User '{user_id}' not found")
        await self._collection.delete_one({"_id": user_id})
        del self._users[user_id]
        logger.info("user_deleted", user_id=user_id)

    async def ensure_admin_user_exists(self) -> None:
        """Create default admin user if no admin exists."""
        if any(user.is_admin for user in self._users.values()):
            return
        await self.create_user(DEFAULT_ADMIN_NAME, DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD, UserRole.ADMIN)

    async def update_all_users_cache(self) -> None:
        """Reload all users cache from storage."""
        users = User.from_documents(await self._collection.find({}))
        self._users = {user.id: user for user in users}

    async def update_user_cache(self, user_id: UUID) -> User:
        """Reload a specific user cache from storage."""
        user = await self._collection.find_one({"_id": user_id})
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        self._users[user_id] = User.model_validate(user)
        return self._users[user_id]

    async def on_start(self) -> None:
        """Initialize indexes, cache, and admin user."""
        await self._collection.create_index(["email"], unique=True)
        await self.update_all_users_cache()
        await self.ensure_admin_user_exists()
        logger.debug("user_service_started", user_count=len(self._users))
