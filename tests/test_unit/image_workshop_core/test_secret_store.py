"""Tests for the TTL-bounded secret store."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from image_workshop_core.exceptions import MissingConfigurationError
from image_workshop_core.secret_store import CACHE_TTL_SECONDS, SecretStore


class TestSecretStore:
    """Test secret caching and expiry."""

    @pytest.fixture
    def store(self, config_source, fake_clock) -> SecretStore:
        """Create a secret store over the static configuration source."""
        return SecretStore(config_source, clock=fake_clock)

    def test_ttl_is_five_minutes(self) -> None:
        """Test the cache lifetime constant."""
        assert CACHE_TTL_SECONDS == 300

    @pytest.mark.asyncio
    async def test_resolves_on_first_call(self, store, config_source) -> None:
        """Test that a miss resolves from the configuration source."""
        assert await store.get_secret("BFL_API_KEY") == "bfl-test-key"
        assert config_source.calls == ["BFL_API_KEY"]

    @pytest.mark.asyncio
    async def test_repeated_calls_within_ttl_hit_cache(
        self, store, config_source, fake_clock
    ) -> None:
        """Test that calls within five minutes do not re-resolve."""
        await store.get_secret("BFL_API_KEY")
        fake_clock.advance(CACHE_TTL_SECONDS - 1)
        config_source.values["BFL_API_KEY"] = "rotated"

        assert await store.get_secret("BFL_API_KEY") == "bfl-test-key"
        assert config_source.calls == ["BFL_API_KEY"]

    @pytest.mark.asyncio
    async def test_expired_entry_is_resolved_again(
        self, store, config_source, fake_clock
    ) -> None:
        """Test that a call after five minutes re-resolves."""
        await store.get_secret("BFL_API_KEY")
        fake_clock.advance(CACHE_TTL_SECONDS + 1)
        config_source.values["BFL_API_KEY"] = "rotated"

        assert await store.get_secret("BFL_API_KEY") == "rotated"
        assert config_source.calls == ["BFL_API_KEY", "BFL_API_KEY"]

    @pytest.mark.asyncio
    async def test_clear_cache_forces_resolution(self, store, config_source) -> None:
        """Test that clear_cache drops every entry."""
        await store.get_secret("BFL_API_KEY")
        await store.get_secret("STABILITY_API_KEY")
        store.clear_cache()

        await store.get_secret("BFL_API_KEY")
        await store.get_secret("STABILITY_API_KEY")
        assert config_source.calls.count("BFL_API_KEY") == 2
        assert config_source.calls.count("STABILITY_API_KEY") == 2

    @pytest.mark.asyncio
    async def test_missing_secret_raises(self, store) -> None:
        """Test that an unset secret raises MissingConfigurationError."""
        with pytest.raises(MissingConfigurationError) as exc_info:
            await store.get_secret("UNKNOWN_KEY")
        assert exc_info.value.name == "UNKNOWN_KEY"

    @pytest.mark.asyncio
    async def test_failed_resolution_is_not_cached(self, store, config_source) -> None:
        """Test that a failure does not poison the cache."""
        with pytest.raises(MissingConfigurationError):
            await store.get_secret("LATE_KEY")

        config_source.values["LATE_KEY"] = "now-set"
        assert await store.get_secret("LATE_KEY") == "now-set"

    @pytest.mark.asyncio
    async def test_named_accessors(self, store) -> None:
        """Test the well-known secret accessors."""
        assert await store.get_bfl_api_key() == "bfl-test-key"
        assert await store.get_stability_api_key() == "stability-test-key"
        assert await store.get_hmac_secret() == "hmac-test-secret"

    def test_concurrent_threads_share_the_cache(self, store, config_source) -> None:
        """Test readers on several threads, each with its own event loop."""
        names = ("BFL_API_KEY", "STABILITY_API_KEY")
        expected = {name: config_source.values[name] for name in names}
        start = threading.Barrier(8)

        def reader(index: int) -> list[tuple[str, str]]:
            start.wait()
            seen = []
            for i in range(50):
                name = names[(index + i) % len(names)]
                seen.append((name, asyncio.run(store.get_secret(name))))
                if index == 0 and i % 10 == 0:
                    store.clear_cache()
            return seen

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(reader, range(8)))

        for seen in results:
            assert all(value == expected[name] for name, value in seen)
        assert set(config_source.calls) <= set(names)

        resolved = len(config_source.calls)
        for name in names:
            assert asyncio.run(store.get_secret(name)) == expected[name]
        assert len(config_source.calls) == resolved
