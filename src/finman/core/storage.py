"""Document storage backends.

Services talk to a `DocumentCollection` and never to a driver directly, so the
same code runs on MongoDB or on a single JSON file. Queries are plain
field-equality dicts; anything richer (date ranges, grouping) is done by the
services in Python.
"""

import copy
import json
import os
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse
from uuid import UUID

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from finman.config import Config
from finman.errors import ValidationError
from finman.utils import as_utc

logger = structlog.get_logger(__name__)

Document = dict[str, Any]
Query = dict[str, Any]
SortSpec = list[tuple[str, int]]

ASCENDING = 1
DESCENDING = -1


class DocumentCollection(ABC):
    """A named set of documents keyed by `_id`."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    async def create_index(self, keys: list[str], unique: bool = False) -> None: ...

    @abstractmethod
    async def insert_one(self, document: Document) -> None: ...

    @abstractmethod
    async def find_one(self, query: Query) -> Document | None: ...

    @abstractmethod
    async def find(self, query: Query, sort: SortSpec | None = None) -> list[Document]: ...

    @abstractmethod
    async def update_one(self, query: Query, values: Document) -> bool:
        """Set `values` on the first matching document. Returns False if none matched."""

    @abstractmethod
    async def delete_one(self, query: Query) -> bool: ...

    @abstractmethod
    async def delete_many(self, query: Query) -> int: ...

    @abstractmethod
    async def count(self, query: Query) -> int: ...


class DocumentStore(ABC):
    """A set of collections plus lifecycle hooks."""

    backend: str

    @abstractmethod
    def collection(self, name: str) -> DocumentCollection: ...

    async def open(self) -> None:
        """Prepare the store for use."""

    async def close(self) -> None:
        """Release resources held by the store."""

    @abstractmethod
    async def ping(self) -> None:
        """Raise if the store is unreachable."""

    @abstractmethod
    async def describe(self) -> dict[str, Any]:
        """Return human-readable backend information."""

    @abstractmethod
    async def collection_names(self) -> list[str]: ...

    @abstractmethod
    async def drop_all(self) -> None:
        """Delete every collection and its indexes."""


# === MongoDB ===


class MongoCollection(DocumentCollection):
    def __init__(self, collection: AsyncCollection[Document]) -> None:
        super().__init__(collection.name)
        self._collection = collection

    async def create_index(self, keys: list[str], unique: bool = False) -> None:
        await self._collection.create_index([(key, ASCENDING) for key in keys], unique=unique)

    async def insert_one(self, document: Document) -> None:
        try:
            await self._collection.insert_one(document)
        except DuplicateKeyError as e:
            raise ValidationError(f"Duplicate entry in '{self.name}'") from e

    async def find_one(self, query: Query) -> Document | None:
        return await self._collection.find_one(query)

    async def find(self, query: Query, sort: SortSpec | None = None) -> list[Document]:
        cursor = self._collection.find(query)
        if sort:
            cursor = cursor.sort(sort)
        return await cursor.to_list()

    async def update_one(self, query: Query, values: Document) -> bool:
        try:
            result = await self._collection.update_one(query, {"$set": values})
        except DuplicateKeyError as e:
            raise ValidationError(f"Duplicate entry in '{self.name}'") from e
        return result.matched_count > 0

    async def delete_one(self, query: Query) -> bool:
        result = await self._collection.delete_one(query)
        return result.deleted_count > 0

    async def delete_many(self, query: Query) -> int:
        result = await self._collection.delete_many(query)
        return result.deleted_count

    async def count(self, query: Query) -> int:
        return await self._collection.count_documents(query)


class MongoStore(DocumentStore):
    backend = "mongo"

    def __init__(self, database_url: str) -> None:
        self._client: AsyncMongoClient[Document] = AsyncMongoClient(
            database_url, uuidRepresentation="standard", tz_aware=True
        )
        self._database: AsyncDatabase[Document] = self._client.get_database(urlparse(database_url).path[1:] or "finman")

    def collection(self, name: str) -> DocumentCollection:
        return MongoCollection(self._database.get_collection(name))

    async def close(self) -> None:
        await self._client.aclose()

    async def ping(self) -> None:
        await self._database.command("ping")

    async def describe(self) -> dict[str, Any]:
        info = await self._client.server_info()
        return {"backend": self.backend, "database": self._database.name, "server_version": info.get("version")}

    async def collection_names(self) -> list[str]:
        return sorted(await self._database.list_collection_names())

    async def drop_all(self) -> None:
        for name in await self._database.list_collection_names():
            await self._database.drop_collection(name)


# === JSON file ===


def encode_value(value: Any) -> Any:  # noqa: ANN401
    """Normalize a value into its JSON form.

    Datetimes always carry microseconds and a UTC offset so that their string
    form sorts chronologically.
    """
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return as_utc(value).isoformat(timespec="microseconds")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: encode_value(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [encode_value(v) for v in value]
    return value


def _matches(document: Document, query: Query) -> bool:
    return all(document.get(key) == expected for key, expected in query.items())


def _sort_key(field: str):  # noqa: ANN202
    # None sorts first, as in MongoDB
    return lambda doc: (doc.get(field) is not None, doc.get(field))


class JsonCollection(DocumentCollection):
    """Mutations build a new document list and hand it to `JsonStore.commit`.

    Memory only changes once the file write succeeded.
    """

    def __init__(self, store: "JsonStore", name: str) -> None:
        super().__init__(name)
        self._store = store

    @property
    def _documents(self) -> list[Document]:
        return self._store.data.get(self.name, [])

    async def create_index(self, keys: list[str], unique: bool = False) -> None:
        if unique:
            self._store.add_unique_key(self.name, tuple(keys))

    def _check_unique(self, candidate: Document) -> None:
        for keys in self._store.unique_keys(self.name):
            values = tuple(candidate.get(key) for key in keys)
            for doc in self._documents:
                if doc.get("_id") == candidate.get("_id"):
                    continue
                if tuple(doc.get(key) for key in keys) == values:
                    raise ValidationError(f"Duplicate entry in '{self.name}'")

    async def insert_one(self, document: Document) -> None:
        encoded = encode_value(document)
        self._check_unique(encoded)
        self._store.commit(self.name, [*self._documents, encoded])

    async def find_one(self, query: Query) -> Document | None:
        encoded = encode_value(query)
        for doc in self._documents:
            if _matches(doc, encoded):
                return copy.deepcopy(doc)
        return None

    async def find(self, query: Query, sort: SortSpec | None = None) -> list[Document]:
        encoded = encode_value(query)
        result = [copy.deepcopy(doc) for doc in self._documents if _matches(doc, encoded)]
        # Stable sorts applied from the least significant key
        for field, direction in reversed(sort or []):
            result.sort(key=_sort_key(field), reverse=direction == DESCENDING)
        return result

    async def update_one(self, query: Query, values: Document) -> bool:
        encoded = encode_value(query)
        documents = self._documents
        for index, doc in enumerate(documents):
            if _matches(doc, encoded):
                updated = {**doc, **encode_value(values)}
                self._check_unique(updated)
                self._store.commit(self.name, [*documents[:index], updated, *documents[index + 1 :]])
                return True
        return False

    async def delete_one(self, query: Query) -> bool:
        encoded = encode_value(query)
        documents = self._documents
        for index, doc in enumerate(documents):
            if _matches(doc, encoded):
                self._store.commit(self.name, [*documents[:index], *documents[index + 1 :]])
                return True
        return False

    async def delete_many(self, query: Query) -> int:
        encoded = encode_value(query)
        kept = [doc for doc in self._documents if not _matches(doc, encoded)]
        deleted = len(self._documents) - len(kept)
        if deleted:
            self._store.commit(self.name, kept)
        return deleted

    async def count(self, query: Query) -> int:
        encoded = encode_value(query)
        return sum(1 for doc in self._documents if _matches(doc, encoded))


class JsonStore(DocumentStore):
    """All collections in one JSON file, rewritten after every mutation."""

    backend = "json"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self.data: dict[str, list[Document]] = {}
        self._unique: dict[str, set[tuple[str, ...]]] = {}

    def collection(self, name: str) -> DocumentCollection:
        return JsonCollection(self, name)

    def add_unique_key(self, collection: str, keys: tuple[str, ...]) -> None:
        self._unique.setdefault(collection, set()).add(keys)

    def unique_keys(self, collection: str) -> set[tuple[str, ...]]:
        return self._unique.get(collection, set())

    async def open(self) -> None:
        if self._path.exists():
            self.data = json.loads(self._path.read_text(encoding="utf-8"))
            logger.debug("json_store_loaded", path=str(self._path), collections=len(self.data))
        else:
            logger.info("json_store_missing", path=str(self._path))

    def commit(self, collection: str, documents: list[Document]) -> None:
        """Replace one collection: write the file first, then swap it in."""
        data = {**self.data, collection: documents}
        self.write(data)
        self.data = data

    def write(self, data: dict[str, list[Document]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, allow_nan=False), encoding="utf-8")
        os.replace(tmp_path, self._path)

    async def ping(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if self._path.exists():
            json.loads(self._path.read_text(encoding="utf-8"))

    async def describe(self) -> dict[str, Any]:
        return {"backend": self.backend, "path": str(self._path.resolve())}

    async def collection_names(self) -> list[str]:
        return sorted(self.data)

    async def drop_all(self) -> None:
        self.write({})
        self.data = {}
        self._unique = {}


def create_store(config: Config) -> DocumentStore:
    """Build the store selected by configuration."""
    if config.storage == "mongo":
        return MongoStore(config.database_url)
    return JsonStore(config.json_db_path)
