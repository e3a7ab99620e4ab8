"""Clients for the remote image providers."""

from .artifacts import content_type_for, fetch_artifact, put_artifact
from .async_jobs import (
    DEFAULT_TIMEOUT_SECONDS,
    POLL_INTERVAL_SECONDS,
    AsyncJob,
    AsyncJobClient,
    JobOutcome,
    JobResult,
    JobStatus,
)
from .factory import create_bfl_job_client, create_stability_client
from .provider_config import (
    BFL_API_HOST,
    STABILITY_API_HOST,
    ProviderConfig,
    bfl_provider_config,
    stability_provider_config,
)
from .stability import StabilityClient, StabilityImage, UploadFile

__all__ = [
    "BFL_API_HOST",
    "DEFAULT_TIMEOUT_SECONDS",
    "POLL_INTERVAL_SECONDS",
    "STABILITY_API_HOST",
    "AsyncJob",
    "AsyncJobClient",
    "JobOutcome",
    "JobResult",
    "JobStatus",
    "ProviderConfig",
    "StabilityClient",
    "StabilityImage",
    "UploadFile",
    "bfl_provider_config",
    "content_type_for",
    "create_bfl_job_client",
    "create_stability_client",
    "fetch_artifact",
    "put_artifact",
    "stability_provider_config",
]
