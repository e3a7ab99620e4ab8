"""TTL-bounded secret cache.

This module provides the SecretStore class, which resolves named secrets from
a configuration source on first use and keeps them in memory for a fixed
time-to-live so repeated tool calls do not hit the backing store.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from image_workshop_core.credentials import ConfigurationSource

# Get logger for this module
logger = structlog.get_logger(__name__)

CACHE_TTL_SECONDS = 5 * 60

STABILITY_API_KEY = "STABILITY_API_KEY"
BFL_API_KEY = "BFL_API_KEY"
HMAC_SECRET = "IMAGE_WORKSHOP_HMAC_SECRET"


@dataclass(frozen=True)
class Credential:
    """A cached secret value and the monotonic time it expires at."""

    name: str
    value: str
    expires_at: float


class SecretStore:
    """Cached, TTL-bounded access to named secrets.

    The store is owned by whoever builds the application; there is no
    module-level cache. Entries are only ever cleared as a whole.
    """

    def __init__(
        self,
        source: ConfigurationSource,
        *,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the secret store.

        Args:
            source: Configuration source used to resolve missing or expired entries.
            ttl_seconds: Lifetime of a cached entry in seconds.
            clock: Monotonic clock, injectable for tests.
        """
        self._source = source
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._cache: dict[str, Credential] = {}
        # Requests may be served from several threads, each with its own loop.
        self._lock = threading.Lock()

    def _get_cached(self, name: str) -> str | None:
        with self._lock:
            entry = self._cache.get(name)
            if entry is None:
                return None
            if self._clock() > entry.expires_at:
                del self._cache[name]
                return None
            return entry.value

    def _set_cached(self, name: str, value: str) -> None:
        with self._lock:
            self._cache[name] = Credential(
                name=name, value=value, expires_at=self._clock() + self._ttl_seconds
            )

    async def get_secret(self, name: str) -> str:
        """Get a secret, resolving it from the configuration source on a miss.

        Args:
            name: Name of the secret (e.g., "BFL_API_KEY").

        Returns:
            The secret value.

        Raises:
            MissingConfigurationError: When the secret is not configured.
        """
        cached = self._get_cached(name)
        if cached is not None:
            logger.debug("SECRET_CACHE_HIT", name=name)
            return cached

        logger.debug("SECRET_CACHE_MISS", name=name)
        value = await self._source.resolve(name, required=True)
        self._set_cached(name, value)
        return value

    def clear_cache(self) -> None:
        """Discard every cached entry; later calls resolve again."""
        with self._lock:
            self._cache.clear()
        logger.debug("SECRET_CACHE_CLEARED")

    async def get_stability_api_key(self) -> str:
        return await self.get_secret(STABILITY_API_KEY)

    async def get_bfl_api_key(self) -> str:
        return await self.get_secret(BFL_API_KEY)

    async def get_hmac_secret(self) -> str:
        return await self.get_secret(HMAC_SECRET)
