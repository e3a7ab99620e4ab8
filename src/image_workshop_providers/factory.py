"""Factory functions for creating provider clients."""

import httpx

from image_workshop_providers.async_jobs import (
    DEFAULT_POLL_PATH,
    POLL_INTERVAL_SECONDS,
    AsyncJobClient,
)
from image_workshop_providers.provider_config import (
    BFL_API_HOST,
    STABILITY_API_HOST,
    bfl_provider_config,
    stability_provider_config,
)
from image_workshop_providers.stability import StabilityClient


def create_bfl_job_client(
    base_url: str = BFL_API_HOST,
    timeout: float = 30.0,
    poll_interval: float = POLL_INTERVAL_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncJobClient:
    """Create a job client for the Black Forest Labs FLUX API.

    Args:
        base_url: API host. Defaults to the public BFL host.
        timeout: Per-request HTTP timeout in seconds.
        poll_interval: Seconds between status reads.
        transport: Optional httpx transport, mainly for tests.

    Returns:
        New AsyncJobClient instance.
    """
    return AsyncJobClient(
        bfl_provider_config(base_url=base_url, timeout=timeout),
        poll_path=DEFAULT_POLL_PATH,
        poll_interval=poll_interval,
        artifact_field="sample",
        transport=transport,
    )


def create_stability_client(
    base_url: str = STABILITY_API_HOST,
    timeout: float = 120.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StabilityClient:
    """Create a Stability AI client.

    Args:
        base_url: API host. Defaults to the public Stability host.
        timeout: Per-request HTTP timeout in seconds.
        transport: Optional httpx transport, mainly for tests.

    Returns:
        New StabilityClient instance.
    """
    return StabilityClient(
        stability_provider_config(base_url=base_url, timeout=timeout),
        transport=transport,
    )
