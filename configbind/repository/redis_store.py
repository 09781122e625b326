"""Configuration store for Redis."""

from collections.abc import Iterable

from configbind.database.redis_client import RedisClient
from configbind.domain.config import ConfigEntry
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param
from configbind.repository.base import ConfigStore, check_lookup, check_scope, prepare_batch
from configbind.repository.validation import PREFIX_MAX, validate_identifier

NULL_SCOPE_SEGMENT = "__null__"
SCOPE_SEGMENT_PREFIX = "s:"


class RedisConfigStore(ConfigStore):
    """
    Store backed by one Redis hash per scope.

    The hash ``{prefix}:s:{scope}`` maps configuration keys to values; unscoped
    entries live under ``{prefix}:__null__``. Every named scope carries the
    ``s:`` marker, so no scope name can reach the unscoped hash. Writes of one scope go out
    as a single HSET, and scopes of a batch are pipelined without MULTI, so a
    batch spanning scopes is not atomic.
    """

    atomic_upsert = False

    def __init__(self, redis_client: RedisClient, key_prefix: str | None = None) -> None:
        """
        Initialize RedisConfigStore.

        Args:
            redis_client: Redis client instance
            key_prefix: Hash name prefix, defaults to the client config

        Raises:
            IdentifierValidationError: If key_prefix is not a safe identifier
        """
        self.key_prefix = validate_identifier(
            key_prefix or redis_client.config.key_prefix, "key prefix", PREFIX_MAX
        )
        self.redis_client = redis_client
        self.logger = get_logger().with_category(Category.REDIS)

    def _hash_name(self, scope: str | None) -> str:
        if scope is None:
            return f"{self.key_prefix}:{NULL_SCOPE_SEGMENT}"
        return f"{self.key_prefix}:{SCOPE_SEGMENT_PREFIX}{scope}"

    async def get(self, key: str, scope: str | None = None) -> ConfigEntry | None:
        """
        Get configuration entry by key and scope.

        Args:
            key: Configuration key
            scope: Scope, None matches only unscoped entries

        Returns:
            ConfigEntry or None if not found
        """
        key, scope = check_lookup(key, scope)
        redis = await self.redis_client.get_redis()
        value = await redis.hget(self._hash_name(scope), key)  # type: ignore[misc]
        if value is None:
            return None
        return ConfigEntry(key=key, value=value, scope=scope)

    async def get_all(self, scope: str | None = None) -> dict[str, ConfigEntry]:
        """
        Get all configuration entries of a scope.

        Args:
            scope: Scope, None matches only unscoped entries

        Returns:
            Entries keyed by configuration key
        """
        scope = check_scope(scope)
        redis = await self.redis_client.get_redis()
        values = await redis.hgetall(self._hash_name(scope))  # type: ignore[misc]
        return {
            key: ConfigEntry(key=key, value=value, scope=scope) for key, value in values.items()
        }

    async def upsert(self, entries: Iterable[ConfigEntry], scope: str | None = None) -> None:
        """
        Insert or update configuration entries.

        Args:
            entries: Entries to write; blank keys are skipped
            scope: Scope overriding the scope carried by each entry
        """
        batch = prepare_batch(entries, scope)
        if not batch:
            return

        by_hash: dict[str, dict[str, str]] = {}
        for entry in batch:
            by_hash.setdefault(self._hash_name(entry.scope), {})[entry.key] = entry.value

        redis = await self.redis_client.get_redis()
        try:
            async with redis.pipeline(transaction=False) as pipe:
                for name, mapping in by_hash.items():
                    pipe.hset(name, mapping=mapping)
                await pipe.execute()
        except Exception as e:
            self.logger.error(
                "Failed to upsert config entries",
                e,
                param("hashes", len(by_hash)),
                param("count", len(batch)),
            )
            raise

        self.logger.debug(
            "Config entries upserted",
            param("hashes", len(by_hash)),
            param("count", len(batch)),
        )

    async def close(self) -> None:
        await self.redis_client.close()
