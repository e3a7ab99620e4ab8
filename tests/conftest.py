"""PyTest configuration and shared test fixtures.

This module provides fake clocks, a fake sleep, an in-memory
configuration source and scripted tool services shared by the unit tests.
"""

import asyncio
import base64

import httpx
import pytest

from image_workshop_core.exceptions import MissingConfigurationError
from image_workshop_core.secret_store import SecretStore
from image_workshop_providers.async_jobs import AsyncJobClient
from image_workshop_providers.factory import create_stability_client
from image_workshop_providers.provider_config import bfl_provider_config
from image_workshop_tools import ToolServices


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Sleep replacement that advances a FakeClock and records each call."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)
        # Yield so cancellation can be delivered between polls
        await asyncio.sleep(0)


class StaticConfigurationSource:
    """Configuration source serving values from a dict and counting lookups."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values = dict(values or {})
        self.calls: list[str] = []

    async def resolve(self, name: str, *, required: bool = True) -> str:
        self.calls.append(name)
        if name in self.values:
            return self.values[name]
        if required:
            raise MissingConfigurationError(name)
        return ""


@pytest.fixture
def fake_clock() -> FakeClock:
    """Create a fake monotonic clock."""
    return FakeClock()


@pytest.fixture
def fake_sleep(fake_clock: FakeClock) -> FakeSleep:
    """Create a fake sleep bound to the fake clock."""
    return FakeSleep(fake_clock)


@pytest.fixture
def config_source() -> StaticConfigurationSource:
    """Create a configuration source with every well-known secret set."""
    return StaticConfigurationSource(
        {
            "BFL_API_KEY": "bfl-test-key",
            "STABILITY_API_KEY": "stability-test-key",
            "IMAGE_WORKSHOP_HMAC_SECRET": "hmac-test-secret",
        }
    )


class ArtifactStore:
    """In-memory blob endpoint serving GETs and recording PUTs."""

    def __init__(self, blobs: dict[str, bytes]) -> None:
        self.blobs = blobs
        self.puts: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            self.puts.append(request)
            return httpx.Response(200)
        url = str(request.url)
        if url in self.blobs:
            return httpx.Response(200, content=self.blobs[url])
        return httpx.Response(404)


@pytest.fixture
def services(config_source, fake_sleep, fake_clock) -> ToolServices:
    """Build tool services whose HTTP calls are all scripted.

    The BFL job is ready on the first poll with seed 11 and its sample at
    https://delivery.bfl.test/sample.png. Stability returns the bytes
    ``STABILITY`` with seed 5. Recorded requests are exposed as
    ``bfl_requests``, ``stability_requests`` and ``artifacts.puts``.
    """
    bfl_requests: list[httpx.Request] = []
    stability_requests: list[httpx.Request] = []

    def bfl(request: httpx.Request) -> httpx.Response:
        bfl_requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, json={"id": "job-1"})
        return httpx.Response(
            200,
            json={
                "id": "job-1",
                "status": "Ready",
                "result": {"sample": "https://delivery.bfl.test/sample.png", "seed": 11},
            },
        )

    def stability(request: httpx.Request) -> httpx.Response:
        stability_requests.append(request)
        return httpx.Response(
            200,
            json={
                "image": base64.b64encode(b"STABILITY").decode(),
                "seed": 5,
                "finish_reason": "SUCCESS",
            },
        )

    artifacts = ArtifactStore(
        {
            "https://delivery.bfl.test/sample.png": b"FLUXIMAGE",
            "https://blob.test/in/image.png": b"INPUT",
            "https://blob.test/in/mask.png": b"MASK",
        }
    )
    built = ToolServices(
        secret_store=SecretStore(config_source, clock=fake_clock),
        job_client=AsyncJobClient(
            bfl_provider_config(),
            transport=httpx.MockTransport(bfl),
            sleep=fake_sleep,
            clock=fake_clock,
        ),
        stability_client=create_stability_client(
            transport=httpx.MockTransport(stability)
        ),
        artifact_transport=httpx.MockTransport(artifacts),
    )
    built.bfl_requests = bfl_requests
    built.stability_requests = stability_requests
    built.artifacts = artifacts
    return built
