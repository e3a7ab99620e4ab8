"""Standardized exceptions for the image workshop.

This module provides the error taxonomy shared by the secret store, the
request verifier, the provider clients and the tools built on top of them.
"""


class ImageWorkshopError(Exception):
    """Base exception for all image workshop errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """Initialize the error with a message and optional error code.

        Args:
            message: Human-readable error message.
            error_code: Optional error code for programmatic handling.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConfigurationError(ImageWorkshopError):
    """Raised when there are configuration-related errors."""

    def __init__(self, message: str, component: str | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message describing the configuration issue.
            component: Optional component name where the error occurred.
        """
        super().__init__(message, "CONFIG_ERROR")
        self.component = component


class MissingConfigurationError(ConfigurationError):
    """Raised when a required configuration value is not set."""

    def __init__(self, name: str, reason: str | None = None) -> None:
        """Initialize missing configuration error.

        Args:
            name: The configuration key that could not be resolved.
            reason: Optional detail from the configuration source.
        """
        message = f"Required configuration '{name}' is not set"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, "configuration_source")
        self.error_code = "MISSING_CONFIGURATION"
        self.name = name


class MissingArgumentError(ImageWorkshopError):
    """Raised when a tool is invoked without one of its required arguments."""

    def __init__(self, argument: str) -> None:
        super().__init__(f"Missing argument: {argument}", "MISSING_ARGUMENT")
        self.argument = argument


class UnauthorizedError(ImageWorkshopError):
    """Raised when an inbound request fails authentication."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason, "UNAUTHORIZED")
        self.reason = reason


class ProviderError(ImageWorkshopError):
    """Raised when a call to a remote provider fails or gets an unusable answer."""

    def __init__(
        self,
        message: str,
        status_code: int | None,
        body: str,
        error_code: str = "PROVIDER_ERROR",
    ) -> None:
        """Initialize provider error.

        Args:
            message: Error message describing the failed call.
            status_code: HTTP status code returned by the provider, or None when
                no response was received.
            body: Raw response body returned by the provider.
            error_code: Error code for programmatic handling.
        """
        super().__init__(message, error_code)
        self.status_code = status_code
        self.body = body


class ProviderSubmitError(ProviderError):
    """Raised when submitting a request to a provider fails."""

    def __init__(
        self, status_code: int | None, body: str, provider: str = "provider"
    ) -> None:
        if status_code is None:
            message = f"{provider} API request failed: {body}"
        else:
            message = f"{provider} API error: {status_code} - {body}"
        super().__init__(
            message,
            status_code,
            body,
            "PROVIDER_SUBMIT_ERROR",
        )
        self.provider = provider


class ProviderPollError(ProviderError):
    """Raised when reading the status of a remote job fails."""

    def __init__(
        self,
        status_code: int | None,
        body: str,
        job_id: str,
        provider: str = "provider",
    ) -> None:
        if status_code is None:
            message = f"{provider} get_result request failed: {body}"
        else:
            message = f"{provider} get_result error: {status_code} - {body}"
        super().__init__(
            message,
            status_code,
            body,
            "PROVIDER_POLL_ERROR",
        )
        self.job_id = job_id
        self.provider = provider


class JobError(ImageWorkshopError):
    """Base class for terminal failures of a remote job."""

    def __init__(
        self,
        message: str,
        job_id: str,
        status: str | None = None,
        error_code: str = "JOB_ERROR",
    ) -> None:
        """Initialize job error.

        Args:
            message: Error message describing the failure.
            job_id: Provider-assigned identifier of the job.
            status: Last status reported by the provider, if any.
            error_code: Error code for programmatic handling.
        """
        super().__init__(message, error_code)
        self.job_id = job_id
        self.status = status


class JobFailedError(JobError):
    """Raised when the provider reports the job as failed."""

    def __init__(self, job_id: str, status: str = "Error") -> None:
        super().__init__(
            f"Task {job_id} failed with status: {status}",
            job_id,
            status,
            "JOB_FAILED",
        )


class ContentModeratedError(JobError):
    """Raised when the provider refused the job on policy grounds."""

    def __init__(self, job_id: str, status: str) -> None:
        super().__init__(
            f"Task {job_id} content moderated: {status}",
            job_id,
            status,
            "CONTENT_MODERATED",
        )


class JobTimeoutError(JobError, TimeoutError):
    """Raised when a job does not reach a terminal state before its deadline."""

    def __init__(
        self, job_id: str, elapsed: float, status: str | None = None
    ) -> None:
        super().__init__(
            f"Task {job_id} timed out after {elapsed:.1f}s",
            job_id,
            status,
            "JOB_TIMEOUT",
        )
        self.elapsed = elapsed


class MissingArtifactError(JobError):
    """Raised when a successful result carries no artifact reference."""

    def __init__(self, job_id: str, detail: str = "No image URL in result") -> None:
        super().__init__(detail, job_id, "Ready", "MISSING_ARTIFACT")


class ArtifactTransferError(ImageWorkshopError):
    """Raised when fetching or writing an artifact over HTTP fails."""

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        """Initialize artifact transfer error.

        Args:
            message: Error message describing the transfer failure.
            url: URL of the artifact. Only the scheme, host and path are kept.
            status_code: HTTP status code, if a response was received.
        """
        super().__init__(message, "ARTIFACT_TRANSFER_ERROR")
        self.url = url
        self.status_code = status_code
