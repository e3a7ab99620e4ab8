"""Stability AI client for synchronous image endpoints.

Stability answers in a single request: the generated image comes back inline,
base64 encoded, together with the seed and a finish reason.
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from image_workshop_core.exceptions import MissingArtifactError, ProviderSubmitError
from image_workshop_providers.artifacts import content_type_for
from image_workshop_providers.provider_config import ProviderConfig, json_object

# Get logger for this module
logger = structlog.get_logger(__name__)

FINISH_REASONS = ("SUCCESS", "CONTENT_FILTERED", "ERROR")


@dataclass(frozen=True)
class StabilityImage:
    """An image returned by Stability."""

    image: str  # base64
    mime_type: str
    seed: int
    finish_reason: str


@dataclass(frozen=True)
class UploadFile:
    """A file part for a multipart request."""

    content: bytes
    filename: str


def _normalize_finish_reason(value: object) -> str:
    reason = str(value) if value else "SUCCESS"
    return reason if reason in FINISH_REASONS else "SUCCESS"


class StabilityClient:
    """Calls Stability v2beta (multipart) and v1 (JSON) endpoints."""

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)

    async def call_multipart(
        self,
        endpoint: str,
        credential: str,
        fields: dict[str, Any],
        files: dict[str, UploadFile | None],
        output_format: str = "png",
    ) -> StabilityImage:
        """Call a v2beta endpoint with a multipart form body.

        Fields and files whose value is None are left out of the form.
        """
        data = {
            key: str(value)
            for key, value in {**fields, "output_format": output_format}.items()
            if value is not None
        }
        upload = {
            key: (file.filename, file.content, "application/octet-stream")
            for key, file in files.items()
            if file is not None
        }

        response = await self._post(
            endpoint,
            headers=self.config.auth_headers(credential),
            data=data,
            files=upload or None,
        )
        return self._parse(endpoint, response, output_format)

    async def call_json(
        self,
        endpoint: str,
        credential: str,
        body: dict[str, Any],
        output_format: str = "png",
    ) -> StabilityImage:
        """Call a v1 endpoint with a JSON body."""
        response = await self._post(
            endpoint,
            headers={
                **self.config.auth_headers(credential),
                "Content-Type": "application/json",
            },
            json=body,
        )
        return self._parse(endpoint, response, output_format)

    async def _post(self, endpoint: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.post(self.config.url(endpoint), **kwargs)
        except httpx.HTTPError as e:
            logger.warning(
                "STABILITY_REQUEST_FAILED", endpoint=endpoint, error=type(e).__name__
            )
            raise ProviderSubmitError(None, str(e), self.config.name) from e

    def _parse(
        self, endpoint: str, response: httpx.Response, output_format: str
    ) -> StabilityImage:
        if not response.is_success:
            logger.warning(
                "STABILITY_REQUEST_FAILED",
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise ProviderSubmitError(
                response.status_code, response.text, self.config.name
            )

        data = json_object(response)
        if data is None:
            raise ProviderSubmitError(
                response.status_code, response.text, self.config.name
            )

        artifacts = data.get("artifacts")
        artifact = artifacts[0] if isinstance(artifacts, list) and artifacts else data
        if not isinstance(artifact, dict):
            artifact = {}

        image = artifact.get("base64") or artifact.get("image")
        if not image:
            raise MissingArtifactError(
                endpoint, "No image data in Stability API response"
            )

        finish_reason = _normalize_finish_reason(
            artifact.get("finish_reason") or artifact.get("finishReason")
        )
        logger.info(
            "STABILITY_REQUEST_COMPLETED", endpoint=endpoint, finish_reason=finish_reason
        )
        return StabilityImage(
            image=image,
            mime_type=content_type_for(output_format),
            seed=artifact.get("seed") or 0,
            finish_reason=finish_reason,
        )
