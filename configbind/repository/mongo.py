"""Configuration store for MongoDB."""

import asyncio
import threading
from collections.abc import Iterable
from typing import Any

from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from configbind.database.mongo import MongoDbClient
from configbind.domain.config import ConfigEntry
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param
from configbind.repository.base import ConfigStore, check_lookup, check_scope, prepare_batch
from configbind.repository.validation import MONGO_COLLECTION_MAX, validate_identifier

INDEX_NAME = "ux_configbind_key_scope"

_PROJECTION = {"_id": 0, "key": 1, "value": 1, "scope": 1}


def _to_entry(doc: dict[str, Any]) -> ConfigEntry:
    return ConfigEntry(key=doc["key"], value=doc.get("value") or "", scope=doc.get("scope"))


class MongoConfigStore(ConfigStore):
    """
    Store backed by a MongoDB collection of {key, value, scope} documents.

    Unscoped entries are stored with ``scope: null``; a filter on null matches
    only those documents. A batch is written entry by entry, in order and
    without a session transaction, so a failure mid-batch keeps earlier writes.
    """

    atomic_upsert = False

    def __init__(
        self,
        mongo_client: MongoDbClient,
        collection: str | None = None,
        auto_create: bool | None = None,
    ) -> None:
        """
        Initialize MongoConfigStore.

        Args:
            mongo_client: MongoDB client instance
            collection: Collection name, defaults to the client config
            auto_create: Create the unique (key, scope) index on first use

        Raises:
            IdentifierValidationError: If collection is not a safe identifier
        """
        config = mongo_client.config
        self.collection_name = validate_identifier(
            collection or config.collection, "collection", MONGO_COLLECTION_MAX
        )
        self.auto_create = config.auto_create if auto_create is None else auto_create
        self.mongo = mongo_client
        self.logger = get_logger().with_category(Category.MONGO)

        self._initialized = False
        self._init_lock = threading.Lock()

    @property
    def collection(self):
        return self.mongo.get_collection(self.collection_name)

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        await asyncio.to_thread(self._initialize)

    def _initialize(self) -> None:
        with self._init_lock:
            if self._initialized:
                return
            if self.auto_create:
                self._create_index()
            self._initialized = True

    def _create_index(self) -> None:
        try:
            self.collection.create_index(
                [("key", ASCENDING), ("scope", ASCENDING)], unique=True, name=INDEX_NAME
            )
        except PyMongoError as e:
            self.logger.error(
                "Failed to create config index", e, param("collection", self.collection_name)
            )
            raise

        self.logger.info("Config index ensured", param("collection", self.collection_name))

    async def get(self, key: str, scope: str | None = None) -> ConfigEntry | None:
        """
        Get configuration entry by key and scope.

        Args:
            key: Configuration key
            scope: Scope, None matches only unscoped documents

        Returns:
            ConfigEntry or None if not found
        """
        key, scope = check_lookup(key, scope)
        await self._ensure_initialized()
        doc = await asyncio.to_thread(
            self.collection.find_one, {"key": key, "scope": scope}, _PROJECTION
        )
        if doc is None:
            return None
        return _to_entry(doc)

    async def get_all(self, scope: str | None = None) -> dict[str, ConfigEntry]:
        """
        Get all configuration entries of a scope.

        Args:
            scope: Scope, None matches only unscoped documents

        Returns:
            Entries keyed by configuration key
        """
        scope = check_scope(scope)
        await self._ensure_initialized()
        docs = await asyncio.to_thread(self._find_all, scope)
        return {doc["key"]: _to_entry(doc) for doc in docs}

    def _find_all(self, scope: str | None) -> list[dict[str, Any]]:
        return list(self.collection.find({"scope": scope}, _PROJECTION))

    async def upsert(self, entries: Iterable[ConfigEntry], scope: str | None = None) -> None:
        """
        Insert or update configuration entries one document at a time.

        Args:
            entries: Entries to write; blank keys are skipped
            scope: Scope overriding the scope carried by each entry
        """
        batch = prepare_batch(entries, scope)
        if not batch:
            return
        await self._ensure_initialized()

        try:
            await asyncio.to_thread(self._upsert, batch)
        except PyMongoError as e:
            self.logger.error(
                "Failed to upsert config entries",
                e,
                param("collection", self.collection_name),
                param("count", len(batch)),
            )
            raise

        self.logger.debug(
            "Config entries upserted",
            param("collection", self.collection_name),
            param("count", len(batch)),
        )

    def _upsert(self, batch: list[ConfigEntry]) -> None:
        collection = self.collection
        for entry in batch:
            collection.update_one(
                {"key": entry.key, "scope": entry.scope},
                {"$set": {"value": entry.value}},
                upsert=True,
            )

    async def close(self) -> None:
        await asyncio.to_thread(self.mongo.close)
