import re
from uuid import UUID

import structlog

from finman.core.core import Service
from finman.core.modules.category.defaults import DEFAULT_CATEGORIES
from finman.core.modules.category.models import MAX_NAME_LENGTH, Category
from finman.core.modules.transaction.models import TransactionType
from finman.core.storage import ASCENDING, DocumentStore
from finman.errors import NotFoundError, ValidationError

logger = structlog.get_logger(__name__)

COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def validate_category_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise ValidationError("Please add a category name")
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(f"Name can not be more than {MAX_NAME_LENGTH} characters")
    return name


def validate_color(color: str) -> None:
    if not COLOR_RE.fullmatch(color):
        raise ValidationError(f"Invalid color '{color}', expected #RRGGBB")


class CategoryService(Service):
    """Manages per-user income and expense categories."""

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store)
        self._collection = store.collection("categories")

    async def on_start(self) -> None:
        await self._collection.create_index(["user_id", "name", "type"], unique=True)
        await self._collection.create_index(["user_id"])

    async def list_categories(self, user_id: UUID, type: TransactionType | None = None) -> list[Category]:
        query: dict[str, object] = {"user_id": user_id}
        if type is not None:
            query["type"] = type
        docs = await self._collection.find(query, sort=[("type", ASCENDING), ("name", ASCENDING)])
        return Category.from_documents(docs)

    async def get_category(self, category_id: UUID) -> Category:
        doc = await self._collection.find_one({"_id": category_id})
        if doc is None:
            raise NotFoundError(f"Category not found with id of {category_id}")
        return Category.model_validate(doc)

    async def create_category(
        self,
        user_id: UUID,
        name: str,
        type: TransactionType,
        icon: str | None = None,
        color: str | None = None,
        is_default: bool = False,
    ) -> Category:
        category = Category(user_id=user_id, name=validate_category_name(name), type=type, is_default=is_default)
        if icon:
            category.icon = icon
        if color:
            validate_color(color)
            category.color = color
        await self._collection.insert_one(category.to_document())
        return category

    async def create_default_categories(self, user_id: UUID) -> list[Category]:
        """Create the standard category set for a new user."""
        categories = [
            await self.create_category(user_id, name, type, icon, color, is_default=True)
            for name, type, icon, color in DEFAULT_CATEGORIES
        ]
        logger.debug("default_categories_created", user_id=user_id, count=len(categories))
        return categories

    async def update_category(
        self, category_id: UUID, name: str | None = None, icon: str | None = None, color: str | None = None
    ) -> Category:
        """Partial update; None values are ignored. Type and owner never change."""
        values: dict[str, str] = {}
        if name is not None:
            values["name"] = validate_category_name(name)
        if icon is not None:
            values["icon"] = icon
        if color is not None:
            validate_color(color)
            values["color"] = color

        if values and not await self._collection.update_one({"_id": category_id}, values):
            raise NotFoundError(f"Category not found with id of {category_id}")
        return await self.get_category(category_id)

    async def delete_category(self, category_id: UUID) -> None:
        if await self.core.services.transaction.count_by_category(category_id):
            raise ValidationError("Cannot delete category that is being used in transactions")
        if not await self._collection.delete_one({"_id": category_id}):
            raise NotFoundError(f"Category not found with id of {category_id}")
        await self.core.services.budget.delete_budgets_by_category(category_id)

    async def delete_categories_by_user(self, user_id: UUID) -> int:
        """Delete all categories of a user and return count of deleted categories."""
        return await self._collection.delete_many({"user_id": user_id})
