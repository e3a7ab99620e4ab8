"""Asynchronous job client for submit-then-poll providers.

A job is submitted with a single POST, then its status is read with a GET
every ``poll_interval`` seconds until the provider reports a terminal status
or the overall timeout elapses. Nothing here retries: a failed submit or poll
is reported to the caller, who may submit again as a new job.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx
import structlog

from image_workshop_core.exceptions import (
    ContentModeratedError,
    JobFailedError,
    JobTimeoutError,
    MissingArtifactError,
    ProviderPollError,
    ProviderSubmitError,
)
from image_workshop_providers.provider_config import ProviderConfig, json_object

# Get logger for this module
logger = structlog.get_logger(__name__)

POLL_INTERVAL_SECONDS = 1.0
DEFAULT_TIMEOUT_SECONDS = 5 * 60.0
DEFAULT_POLL_PATH = "/v1/get_result"


class JobStatus(str, Enum):
    """Statuses reported by the provider for a job."""

    PENDING = "Pending"
    READY = "Ready"
    ERROR = "Error"
    REQUEST_MODERATED = "Request Moderated"
    CONTENT_MODERATED = "Content Moderated"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PENDING

    @property
    def is_moderated(self) -> bool:
        return self in (JobStatus.REQUEST_MODERATED, JobStatus.CONTENT_MODERATED)


@dataclass(frozen=True)
class JobResult:
    """Payload of a ready job."""

    artifact_ref: str | None = None
    seed: int | None = None


@dataclass
class AsyncJob:
    """Latest known state of a remote job.

    ``status`` holds the provider's raw status text; ``job_status`` maps it to
    a known JobStatus, or None for statuses this client does not recognise.
    """

    id: str
    status: str
    submitted_at: float
    result: JobResult | None = None

    @property
    def job_status(self) -> JobStatus | None:
        try:
            return JobStatus(self.status)
        except ValueError:
            return None


@dataclass(frozen=True)
class JobOutcome:
    """Result of running a job to completion."""

    job_id: str
    artifact_ref: str
    seed: int | None = None


class AsyncJobClient:
    """Drives a provider job through submit, poll and classification."""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        poll_path: str = DEFAULT_POLL_PATH,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        artifact_field: str = "sample",
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the job client.

        Args:
            config: Provider connection settings.
            poll_path: Path of the status endpoint, queried with ``?id=<job id>``.
            poll_interval: Seconds to wait between status reads. Fixed, no backoff.
            artifact_field: Key of the artifact reference in the result payload.
            transport: Optional httpx transport, mainly for tests.
            sleep: Coroutine used to wait between polls, injectable for tests.
            clock: Monotonic clock, injectable for tests.
        """
        self.config = config
        self.poll_path = poll_path
        self.poll_interval = poll_interval
        self.artifact_field = artifact_field
        self._transport = transport
        self._sleep = sleep
        self._clock = clock

    def _client(self) -> httpx.AsyncClient:
        # One client per call: concurrent jobs may run on different event loops.
        return httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)

    async def submit(
        self, endpoint: str, credential: str, payload: dict[str, Any]
    ) -> str:
        """Submit a job and return the provider-assigned job id.

        Raises:
            ProviderSubmitError: On a transport failure, a non-success status, or
                a response that is not a JSON object with an id.
        """
        url = self.config.url(endpoint)
        headers = {
            **self.config.auth_headers(credential),
            "Content-Type": "application/json",
        }
        try:
            async with self._client() as client:
                response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.warning(
                "JOB_SUBMIT_FAILED",
                provider=self.config.name,
                endpoint=endpoint,
                error=type(e).__name__,
            )
            raise ProviderSubmitError(None, str(e), self.config.name) from e

        if not response.is_success:
            logger.warning(
                "JOB_SUBMIT_FAILED",
                provider=self.config.name,
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise ProviderSubmitError(
                response.status_code, response.text, self.config.name
            )

        data = json_object(response)
        job_id = data.get("id") if data is not None else None
        if not job_id:
            raise ProviderSubmitError(
                response.status_code, response.text, self.config.name
            )

        logger.info(
            "JOB_SUBMITTED", provider=self.config.name, endpoint=endpoint, job_id=job_id
        )
        return str(job_id)

    async def poll(
        self, job_id: str, credential: str, submitted_at: float | None = None
    ) -> AsyncJob:
        """Read the current status of a job once.

        Raises:
            ProviderPollError: On a transport failure, a non-success status, or a
                response that is not a JSON object.
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    self.config.url(self.poll_path),
                    headers=self.config.auth_headers(credential),
                    params={"id": job_id},
                )
        except httpx.HTTPError as e:
            logger.warning(
                "JOB_POLL_FAILED",
                provider=self.config.name,
                job_id=job_id,
                error=type(e).__name__,
            )
            raise ProviderPollError(None, str(e), job_id, self.config.name) from e

        if not response.is_success:
            logger.warning(
                "JOB_POLL_FAILED",
                provider=self.config.name,
                job_id=job_id,
                status_code=response.status_code,
            )
            raise ProviderPollError(
                response.status_code, response.text, job_id, self.config.name
            )

        data = json_object(response)
        if data is None:
            raise ProviderPollError(
                response.status_code, response.text, job_id, self.config.name
            )

        raw_result = data.get("result")
        result = None
        if isinstance(raw_result, dict):
            result = JobResult(
                artifact_ref=raw_result.get(self.artifact_field),
                seed=raw_result.get("seed"),
            )

        return AsyncJob(
            id=str(data.get("id") or job_id),
            status=str(data.get("status", "")),
            submitted_at=submitted_at if submitted_at is not None else self._clock(),
            result=result,
        )

    async def wait_for_result(
        self,
        job_id: str,
        credential: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        *,
        deadline: float | None = None,
        submitted_at: float | None = None,
    ) -> JobResult:
        """Poll a job until it is ready, fails, or the timeout elapses.

        Args:
            job_id: Provider-assigned job id.
            credential: API credential for the provider.
            timeout: Overall limit in seconds, measured from ``submitted_at``.
            deadline: Optional absolute limit on the client's clock, e.g. an
                upstream request deadline. The earlier of the two applies.
            submitted_at: Clock reading at submission; defaults to now.

        Returns:
            The payload of the ready job.

        Raises:
            JobFailedError: The provider reported ``Error``.
            ContentModeratedError: The provider refused the job on policy grounds.
            JobTimeoutError: No terminal status before the limit.
            ProviderPollError: A status read failed.
        """
        started = submitted_at if submitted_at is not None else self._clock()
        limit = timeout
        if deadline is not None:
            limit = min(limit, deadline - started)

        last_status: str | None = None
        try:
            while self._clock() - started < limit:
                job = await self.poll(job_id, credential, submitted_at=started)
                last_status = job.status
                status = job.job_status

                if status is JobStatus.READY:
                    logger.info(
                        "JOB_READY",
                        provider=self.config.name,
                        job_id=job_id,
                        elapsed=self._clock() - started,
                    )
                    return job.result or JobResult()

                if status is JobStatus.ERROR:
                    logger.warning(
                        "JOB_FAILED", provider=self.config.name, job_id=job_id
                    )
                    raise JobFailedError(job_id, job.status)

                if status is not None and status.is_moderated:
                    logger.warning(
                        "JOB_MODERATED",
                        provider=self.config.name,
                        job_id=job_id,
                        status=job.status,
                    )
                    raise ContentModeratedError(job_id, job.status)

                logger.debug(
                    "JOB_PENDING",
                    provider=self.config.name,
                    job_id=job_id,
                    status=job.status,
                )
                await self._sleep(self.poll_interval)
        except asyncio.CancelledError:
            logger.warning(
                "JOB_WAIT_CANCELLED",
                provider=self.config.name,
                job_id=job_id,
                last_status=last_status,
            )
            raise

        elapsed = self._clock() - started
        logger.warning(
            "JOB_TIMEOUT",
            provider=self.config.name,
            job_id=job_id,
            elapsed=elapsed,
            last_status=last_status,
        )
        raise JobTimeoutError(job_id, elapsed, last_status)

    async def run(
        self,
        endpoint: str,
        credential: str,
        payload: dict[str, Any],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        *,
        deadline: float | None = None,
    ) -> JobOutcome:
        """Submit a job and wait for its artifact.

        Raises:
            MissingArtifactError: The ready result has no artifact reference.
        """
        job_id = await self.submit(endpoint, credential, payload)
        submitted_at = self._clock()
        result = await self.wait_for_result(
            job_id,
            credential,
            timeout,
            deadline=deadline,
            submitted_at=submitted_at,
        )

        if not result.artifact_ref:
            raise MissingArtifactError(job_id)

        return JobOutcome(job_id=job_id, artifact_ref=result.artifact_ref, seed=result.seed)
