"""
TTL-bounded revocation ledger keyed by token identifier.
"""

from contextlib import nullcontext
from typing import Optional

from shared.errors import RevocationStoreError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .cache import CacheBackend, PrefixDeletingCache

DEFAULT_PREFIX = "jwt_blacklist:"


class RevocationStore:
    """Set of revoked ``jti`` values with per-entry TTL.

    Each entry lives under ``<prefix><jti>`` and holds the timestamp at which
    the revocation lapses. Entries are never stored without a TTL.
    """

    def __init__(
        self,
        cache: CacheBackend,
        prefix: str = DEFAULT_PREFIX,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.cache = cache
        self.prefix = prefix
        self.metrics = metrics
        self.logger = get_logger("tokens.revocation")

    def key_for(self, jti: str) -> str:
        return f"{self.prefix}{jti}"

    def _timed(self, operation: str):
        if self.metrics is None:
            return nullcontext()
        return self.metrics.time_operation("revocation_store_duration_seconds", operation=operation)

    async def add(self, jti: str, ttl_seconds: int, expires_at: Optional[int] = None) -> None:
        """Revoke ``jti`` for ``ttl_seconds``.

        A TTL of zero or less removes any existing entry instead of storing
        one. ``expires_at`` is the value recorded for the entry.
        """
        key = self.key_for(jti)
        try:
            with self._timed("add"):
                if ttl_seconds <= 0:
                    await self.cache.delete(key)
                    self.logger.debug("Revocation TTL not positive, entry dropped", jti=jti, ttl=ttl_seconds)
                    return
                await self.cache.set(key, str(expires_at if expires_at is not None else ""), int(ttl_seconds))
        except Exception as e:
            self.logger.error("Failed to add revocation entry", jti=jti, error=str(e))
            raise RevocationStoreError(
                "Unable to record token revocation",
                details={"operation": "add", "error": str(e)},
            ) from e

        self.logger.info("Token revoked", jti=jti, ttl=ttl_seconds)

    async def has(self, jti: str) -> bool:
        try:
            with self._timed("has"):
                return bool(await self.cache.has(self.key_for(jti)))
        except Exception as e:
            self.logger.error("Failed to check revocation entry", jti=jti, error=str(e))
            raise RevocationStoreError(
                "Unable to check token revocation",
                details={"operation": "has", "error": str(e)},
            ) from e

    async def remove(self, jti: str) -> bool:
        """Best-effort removal; returns whether an entry was deleted."""
        try:
            with self._timed("remove"):
                return bool(await self.cache.delete(self.key_for(jti)))
        except Exception as e:
            self.logger.warning("Failed to remove revocation entry", jti=jti, error=str(e))
            return False

    async def clear(self) -> bool:
        """Drop every entry under this store's prefix.

        Only backends implementing ``delete_prefix`` can do this without
        touching unrelated keys; for any other backend nothing is deleted and
        ``False`` is returned.
        """
        if not isinstance(self.cache, PrefixDeletingCache):
            self.logger.warning(
                "Revocation store clear not supported by cache backend",
                backend=type(self.cache).__name__,
            )
            return False

        try:
            with self._timed("clear"):
                removed = await self.cache.delete_prefix(self.prefix)
        except Exception as e:
            self.logger.error("Failed to clear revocation store", error=str(e))
            return False

        self.logger.info("Revocation store cleared", removed=removed)
        return True
