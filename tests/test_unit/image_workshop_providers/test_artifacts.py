"""Tests for artifact transfer helpers and provider configuration."""

import httpx
import pytest

from image_workshop_core.exceptions import ArtifactTransferError
from image_workshop_providers.artifacts import content_type_for, fetch_artifact, put_artifact
from image_workshop_providers.provider_config import (
    ProviderConfig,
    bfl_provider_config,
    stability_provider_config,
)


class TestContentTypeFor:
    """Test output format to MIME type mapping."""

    @pytest.mark.parametrize(
        ("fmt", "expected"),
        [
            ("png", "image/png"),
            ("jpeg", "image/jpeg"),
            ("JPG", "image/jpeg"),
            ("webp", "image/webp"),
            ("tiff", "image/png"),
        ],
    )
    def test_mapping(self, fmt, expected) -> None:
        """Test each known format and the PNG default."""
        assert content_type_for(fmt) == expected


class TestArtifactTransfer:
    """Test fetching and writing artifacts."""

    @pytest.mark.asyncio
    async def test_fetch(self) -> None:
        """Test downloading an artifact."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"bytes")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            assert await fetch_artifact(client, "https://blob/in.png") == b"bytes"

    @pytest.mark.asyncio
    async def test_fetch_failure_redacts_query(self) -> None:
        """Test that a failed fetch raises without the presigned query."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ArtifactTransferError) as exc_info:
                await fetch_artifact(client, "https://blob/in.png?sig=secret")

        assert exc_info.value.status_code == 403
        assert exc_info.value.url == "https://blob/in.png"
        assert "secret" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_put_sends_content_type(self) -> None:
        """Test that the upload carries the given content type."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await put_artifact(client, "https://blob/out.png", b"img", "image/webp")

        assert seen[0].method == "PUT"
        assert seen[0].headers["Content-Type"] == "image/webp"
        assert seen[0].content == b"img"

    @pytest.mark.asyncio
    async def test_put_failure(self) -> None:
        """Test that a failed upload raises."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ArtifactTransferError):
                await put_artifact(client, "https://blob/out.png", b"img", "image/png")

    @pytest.mark.asyncio
    async def test_fetch_transport_error(self) -> None:
        """Test that a connection failure is a transfer error without the query."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ArtifactTransferError) as exc_info:
                await fetch_artifact(client, "https://blob/in.png?sig=secret")

        assert exc_info.value.status_code is None
        assert exc_info.value.url == "https://blob/in.png"
        assert "secret" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_put_transport_error(self) -> None:
        """Test that a failed upload connection is a transfer error."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.WriteTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ArtifactTransferError) as exc_info:
                await put_artifact(client, "https://blob/out.png", b"img", "image/png")

        assert exc_info.value.status_code is None

class TestProviderConfig:
    """Test provider configuration helpers."""

    def test_url_joining(self) -> None:
        """Test that endpoints join onto a base URL with a trailing slash."""
        config = ProviderConfig(
            name="Test", base_url="https://api.test/", credential_header="x-key"
        )
        assert config.url("/v1/a") == "https://api.test/v1/a"
        assert config.url("https://other/v1/get_result") == "https://other/v1/get_result"

    def test_bfl_headers(self) -> None:
        """Test the BFL credential header."""
        headers = bfl_provider_config().auth_headers("k1")
        assert headers["x-key"] == "k1"
        assert headers["User-Agent"] == "ImageWorkshop/1.0"

    def test_stability_headers(self) -> None:
        """Test the Stability bearer header."""
        config = stability_provider_config()
        assert config.auth_headers("k2")["Authorization"] == "Bearer k2"
        assert config.timeout == 120.0
