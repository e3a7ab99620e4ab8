"""Core building blocks: configuration sources, secret store, errors and codecs."""

from .encoding import from_crockford_base32, is_valid_crockford_base32, to_crockford_base32
from .exceptions import (
    ArtifactTransferError,
    ConfigurationError,
    ContentModeratedError,
    ImageWorkshopError,
    JobError,
    JobFailedError,
    JobTimeoutError,
    MissingArgumentError,
    MissingArtifactError,
    MissingConfigurationError,
    ProviderError,
    ProviderPollError,
    ProviderSubmitError,
    UnauthorizedError,
)
from .secret_store import CACHE_TTL_SECONDS, Credential, SecretStore

__all__ = [
    "CACHE_TTL_SECONDS",
    "ArtifactTransferError",
    "ConfigurationError",
    "ContentModeratedError",
    "Credential",
    "ImageWorkshopError",
    "JobError",
    "JobFailedError",
    "JobTimeoutError",
    "MissingArgumentError",
    "MissingArtifactError",
    "MissingConfigurationError",
    "ProviderError",
    "ProviderPollError",
    "ProviderSubmitError",
    "SecretStore",
    "UnauthorizedError",
    "from_crockford_base32",
    "is_valid_crockford_base32",
    "to_crockford_base32",
]
