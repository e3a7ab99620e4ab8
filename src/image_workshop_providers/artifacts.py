"""Fetching input artifacts and writing output artifacts over HTTP.

Tools receive presigned URLs: inputs are read with a GET, outputs are
written with a PUT that carries an explicit content type.
"""

from urllib.parse import urlsplit

import httpx
import structlog

from image_workshop_core.exceptions import ArtifactTransferError

# Get logger for this module
logger = structlog.get_logger(__name__)

_CONTENT_TYPES = {
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "webp": "image/webp",
}


def content_type_for(output_format: str) -> str:
    """Map an output format name to its MIME type, defaulting to PNG."""
    return _CONTENT_TYPES.get(output_format.lower(), "image/png")


def _redact(url: str) -> str:
    # Presigned URLs carry credentials in the query string
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


async def fetch_artifact(client: httpx.AsyncClient, url: str) -> bytes:
    """Download an artifact.

    Raises:
        ArtifactTransferError: On a transport failure or a non-success status.
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning("ARTIFACT_FETCH_FAILED", url=_redact(url), error=type(e).__name__)
        raise ArtifactTransferError(
            f"Failed to fetch image: {type(e).__name__}", _redact(url)
        ) from e
    if not response.is_success:
        logger.warning(
            "ARTIFACT_FETCH_FAILED", url=_redact(url), status_code=response.status_code
        )
        raise ArtifactTransferError(
            f"Failed to fetch image: {response.status_code}",
            _redact(url),
            response.status_code,
        )
    return response.content


async def put_artifact(
    client: httpx.AsyncClient, url: str, data: bytes, content_type: str
) -> None:
    """Upload an artifact with an explicit content type.

    Raises:
        ArtifactTransferError: On a transport failure or a non-success status.
    """
    try:
        response = await client.put(
            url, content=data, headers={"Content-Type": content_type}
        )
    except httpx.HTTPError as e:
        logger.warning("ARTIFACT_PUT_FAILED", url=_redact(url), error=type(e).__name__)
        raise ArtifactTransferError(
            f"Failed to write artifact: {type(e).__name__}", _redact(url)
        ) from e
    if not response.is_success:
        logger.warning(
            "ARTIFACT_PUT_FAILED", url=_redact(url), status_code=response.status_code
        )
        raise ArtifactTransferError(
            f"Failed to write artifact: {response.status_code}",
            _redact(url),
            response.status_code,
        )
    logger.debug("ARTIFACT_WRITTEN", url=_redact(url), size=len(data))
