"""RavenDB client for configbind."""

import threading
from typing import TYPE_CHECKING

from ravendb import DocumentStore

if TYPE_CHECKING:
    from configbind.config.settings import RavenDbConfig


class RavenDbClient:
    """Holder of one initialized DocumentStore, created on first use."""

    def __init__(self, config: "RavenDbConfig", store: DocumentStore | None = None) -> None:
        """
        Initialize RavenDB client.

        Args:
            config: RavenDB configuration with urls and database
            store: Existing initialized DocumentStore to reuse
        """
        self.config = config
        self.store = store
        self._owns_store = store is None
        self._lock = threading.Lock()

    def get_store(self) -> DocumentStore:
        """
        Get the document store, initializing it on first use.

        Returns:
            Initialized DocumentStore
        """
        if self.store is None:
            with self._lock:
                if self.store is None:
                    store = DocumentStore(urls=self.config.urls, database=self.config.database)
                    store.initialize()
                    self.store = store
        return self.store

    def close(self) -> None:
        """Close the document store if this instance created it."""
        with self._lock:
            if self.store is not None and self._owns_store:
                self.store.close()
                self.store = None
