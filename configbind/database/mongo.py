"""MongoDB client for configbind."""

import threading
from typing import TYPE_CHECKING

from pymongo import MongoClient
from pymongo.collection import Collection

if TYPE_CHECKING:
    from configbind.config.settings import MongoConfig


class MongoDbClient:
    """Lazily created pymongo client; pymongo pools connections itself."""

    def __init__(self, config: "MongoConfig", client: MongoClient | None = None) -> None:
        """
        Initialize MongoDB client.

        Args:
            config: MongoDB configuration with url, database and collection
            client: Existing pymongo client to reuse
        """
        self.config = config
        self.client = client
        self._owns_client = client is None
        self._lock = threading.Lock()

    def get_collection(self, name: str | None = None) -> Collection:
        """
        Get a collection of the configured database, connecting on first use.

        Args:
            name: Collection name, defaults to the configured collection

        Returns:
            pymongo Collection
        """
        if self.client is None:
            with self._lock:
                if self.client is None:
                    self.client = MongoClient(self.config.url)
        return self.client[self.config.database][name or self.config.collection]

    def close(self) -> None:
        """Close the pymongo client if this instance created it."""
        with self._lock:
            if self.client is not None and self._owns_client:
                self.client.close()
                self.client = None
