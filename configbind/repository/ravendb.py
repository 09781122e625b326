"""Configuration store for RavenDB."""

import asyncio
import hashlib
from collections.abc import Iterable

from configbind.database.ravendb import RavenDbClient
from configbind.domain.config import ConfigEntry
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param
from configbind.repository.base import ConfigStore, check_lookup, check_scope, prepare_batch
from configbind.repository.validation import PREFIX_MAX, validate_identifier

NULL_SCOPE_SEGMENT = "null"


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def scope_segment(scope: str | None) -> str:
    """
    Id segment of a scope.

    RavenDB ids compare case-insensitively, so a named scope is stored as the
    lower-case hex SHA-256 of its exact text; it never contains ``/`` and never
    equals the unscoped segment.
    """
    if scope is None:
        return NULL_SCOPE_SEGMENT
    return _digest(scope)


class ConfigDocument:
    """Document persisted for one configuration entry."""

    def __init__(
        self,
        key: str = "",
        value: str = "",
        scope: str | None = None,
        scope_segment: str = NULL_SCOPE_SEGMENT,
    ) -> None:
        self.key = key
        self.value = value
        self.scope = scope
        self.scope_segment = scope_segment

    def to_entry(self) -> ConfigEntry:
        return ConfigEntry(key=self.key, value=self.value or "", scope=self.scope)


class RavenDbConfigStore(ConfigStore):
    """
    Store backed by RavenDB documents with id ``{prefix}/{scope}/{key}``.

    Scope and key enter the id as SHA-256 hex digests; the exact key and scope
    are kept on the document. A batch is written in one session and committed
    by a single save_changes(), which the server applies as one transaction.
    """

    atomic_upsert = True

    def __init__(self, ravendb_client: RavenDbClient, key_prefix: str | None = None) -> None:
        """
        Initialize RavenDbConfigStore.

        Args:
            ravendb_client: RavenDB client instance
            key_prefix: Document id prefix, defaults to the client config

        Raises:
            IdentifierValidationError: If key_prefix is not a safe identifier
        """
        self.key_prefix = validate_identifier(
            key_prefix or ravendb_client.config.key_prefix, "key prefix", PREFIX_MAX
        )
        self.ravendb = ravendb_client
        self.logger = get_logger().with_category(Category.RAVENDB)

    def document_id(self, key: str, scope: str | None) -> str:
        return f"{self.key_prefix}/{scope_segment(scope)}/{_digest(key)}"

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
        return await asyncio.to_thread(self._get, key, scope)

    def _get(self, key: str, scope: str | None) -> ConfigEntry | None:
        with self.ravendb.get_store().open_session() as session:
            doc = session.load(self.document_id(key, scope), ConfigDocument)
        if doc is None:
            return None
        return doc.to_entry()

    async def get_all(self, scope: str | None = None) -> dict[str, ConfigEntry]:
        """
        Get all configuration entries of a scope.

        Args:
            scope: Scope, None matches only unscoped documents

        Returns:
            Entries keyed by configuration key
        """
        scope = check_scope(scope)
        return await asyncio.to_thread(self._get_all, scope)

    def _get_all(self, scope: str | None) -> dict[str, ConfigEntry]:
        with self.ravendb.get_store().open_session() as session:
            docs = list(
                session.query(object_type=ConfigDocument)
                .where_equals("scope_segment", scope_segment(scope))
                .wait_for_non_stale_results()
            )
        return {doc.key: doc.to_entry() for doc in docs}

    async def upsert(self, entries: Iterable[ConfigEntry], scope: str | None = None) -> None:
        """
        Insert or update configuration entries in one session.

        Args:
            entries: Entries to write; blank keys are skipped
            scope: Scope overriding the scope carried by each entry
        """
        batch = prepare_batch(entries, scope)
        if not batch:
            return
        try:
            await asyncio.to_thread(self._upsert, batch)
        except Exception as e:
            self.logger.error(
                "Failed to upsert config entries",
                e,
                param("prefix", self.key_prefix),
                param("count", len(batch)),
            )
            raise

        self.logger.debug(
            "Config entries upserted",
            param("prefix", self.key_prefix),
            param("count", len(batch)),
        )

    def _upsert(self, batch: list[ConfigEntry]) -> None:
        by_id = {self.document_id(entry.key, entry.scope): entry for entry in batch}
        with self.ravendb.get_store().open_session() as session:
            # один запрос на все документы пачки
            existing = session.load(list(by_id), ConfigDocument)
            for doc_id, entry in by_id.items():
                doc = existing.get(doc_id)
                if doc is None:
                    session.store(
                        ConfigDocument(
                            key=entry.key,
                            value=entry.value,
                            scope=entry.scope,
                            scope_segment=scope_segment(entry.scope),
                        ),
                        doc_id,
                    )
                else:
                    doc.value = entry.value
            session.save_changes()

    async def close(self) -> None:
        await asyncio.to_thread(self.ravendb.close)
