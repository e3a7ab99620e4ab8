"""WSGI application serving the image tools.

Routes:

- ``GET /health``: liveness and the registered tool names (public).
- ``GET /tools``: registered tools with their descriptions.
- ``POST /tools/<name>``: invoke a tool. The JSON body carries ``args`` and
  ``blobs`` (``{"input": {...}, "output": {...}}`` presigned URLs).

Everything except the public paths goes through the HMAC middleware.
"""

import asyncio
import json
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog

import image_workshop_tools
from image_workshop_app.cli_config import ServeConfig
from image_workshop_auth import HmacAuthMiddleware, HmacVerifier
from image_workshop_core.credentials import create_configuration_source
from image_workshop_core.exceptions import (
    ArtifactTransferError,
    ConfigurationError,
    ContentModeratedError,
    ImageWorkshopError,
    JobError,
    JobTimeoutError,
    MissingArgumentError,
    MissingConfigurationError,
    ProviderError,
)
from image_workshop_core.observability import log_bind
from image_workshop_core.secret_store import SecretStore
from image_workshop_providers import create_bfl_job_client, create_stability_client
from image_workshop_tools import ToolContext, ToolServices

if TYPE_CHECKING:
    from wsgiref.types import StartResponse, WSGIApplication, WSGIEnvironment

# Get logger for this module
logger = structlog.get_logger(__name__)

PORTAL_NAME = "image-workshop"

_STATUS_LINES = {
    200: "200 OK",
    400: "400 Bad Request",
    404: "404 Not Found",
    405: "405 Method Not Allowed",
    422: "422 Unprocessable Entity",
    500: "500 Internal Server Error",
    502: "502 Bad Gateway",
    504: "504 Gateway Timeout",
}


def create_services(config: ServeConfig) -> ToolServices:
    """Build the secret store and provider clients from a ServeConfig."""
    source = create_configuration_source(
        source_type=config.config_source,
        aws_region=config.aws_region,
        aws_endpoint_url=config.aws_endpoint_url,
        env_prefix=config.env_prefix,
    )
    return ToolServices(
        secret_store=SecretStore(source),
        job_client=create_bfl_job_client(
            base_url=config.bfl_api_host, poll_interval=config.poll_interval
        ),
        stability_client=create_stability_client(base_url=config.stability_api_host),
        job_timeout=config.job_timeout,
    )


def _json_response(
    start_response: "StartResponse", status: int, payload: object
) -> list[bytes]:
    body = json.dumps(payload).encode("utf-8")
    start_response(
        _STATUS_LINES[status],
        [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
    )
    return [body]


def _error_status(error: ImageWorkshopError) -> int:
    if isinstance(error, JobTimeoutError):
        return 504
    if isinstance(error, ContentModeratedError):
        return 422
    if isinstance(error, JobError | ProviderError | ArtifactTransferError):
        return 502
    if isinstance(error, MissingConfigurationError):
        return 500
    if isinstance(error, ConfigurationError | MissingArgumentError):
        return 400
    return 500


def _object_field(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{name}' must be a JSON object")  # noqa: TRY004
    return dict(value)


class ToolApplication:
    """Routes requests to the tool registry."""

    def __init__(self, services: ToolServices) -> None:
        self.services = services

    def __call__(
        self, environ: "WSGIEnvironment", start_response: "StartResponse"
    ) -> Iterable[bytes]:
        method = environ.get("REQUEST_METHOD", "GET").upper()
        path = environ.get("PATH_INFO") or "/"

        if path in ("/", "/health"):
            tools = image_workshop_tools.list_tools()
            return _json_response(
                start_response,
                200,
                {
                    "status": "healthy",
                    "portal": PORTAL_NAME,
                    "tools": tools,
                    "toolCount": len(tools),
                },
            )

        if path == "/tools":
            if method != "GET":
                return _json_response(start_response, 405, {"error": "method_not_allowed"})
            return _json_response(
                start_response,
                200,
                {
                    "tools": [
                        {"name": tool.name, "description": tool.description}
                        for tool in map(
                            image_workshop_tools.get_tool,
                            image_workshop_tools.list_tools(),
                        )
                    ]
                },
            )

        if path.startswith("/tools/"):
            if method != "POST":
                return _json_response(start_response, 405, {"error": "method_not_allowed"})
            return self._invoke(path.removeprefix("/tools/"), environ, start_response)

        return _json_response(start_response, 404, {"error": "not_found"})

    def _invoke(
        self, name: str, environ: "WSGIEnvironment", start_response: "StartResponse"
    ) -> list[bytes]:
        try:
            tool = image_workshop_tools.get_tool(name)
        except ConfigurationError as e:
            return _json_response(
                start_response, 404, {"error": "not_found", "error_description": e.message}
            )

        try:
            request = self._read_json(environ)
            blobs = _object_field(request, "blobs")
            context = ToolContext(
                input_urls=_object_field(blobs, "input"),
                output_urls=_object_field(blobs, "output"),
            )
            args = _object_field(request, "args")
        except ValueError as e:
            return _json_response(
                start_response, 400, {"error": "bad_request", "error_description": str(e)}
            )

        # Bind the tool name to every log line of this invocation
        with log_bind(tool_name=tool.name):
            try:
                result = asyncio.run(tool.invoke(args, context, self.services))
            except MissingArgumentError as e:
                logger.info("TOOL_ARGUMENT_MISSING", argument=e.argument)
                return _json_response(
                    start_response,
                    400,
                    {"error": "bad_request", "error_description": e.message},
                )
            except ImageWorkshopError as e:
                logger.exception("TOOL_INVOCATION_FAILED", error_code=e.error_code)
                return _json_response(
                    start_response,
                    _error_status(e),
                    {"error": (e.error_code or "error").lower(), "error_description": e.message},
                )
            except Exception:
                logger.exception("TOOL_INVOCATION_FAILED", error_code="INTERNAL_ERROR")
                return _json_response(
                    start_response,
                    500,
                    {"error": "internal_error", "error_description": "Internal server error"},
                )

            logger.info("TOOL_INVOCATION_COMPLETED")
        return _json_response(start_response, 200, result)

    @staticmethod
    def _read_json(environ: "WSGIEnvironment") -> dict[str, Any]:
        try:
            content_length = int(environ.get("CONTENT_LENGTH") or 0)
        except ValueError:
            content_length = 0
        raw = environ["wsgi.input"].read(content_length) if content_length > 0 else b""
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON body: {e.msg}") from e
        if not isinstance(data, dict):
            raise ValueError("Request body must be a JSON object")  # noqa: TRY004
        return data


def create_app(
    services: ToolServices, verifier: HmacVerifier | None = None
) -> "WSGIApplication":
    """Create the WSGI application wrapped in HMAC authentication.

    Args:
        services: Collaborators passed to each tool.
        verifier: Request verifier. Defaults to one keyed by the HMAC secret
            in the services' secret store.
    """
    if verifier is None:
        verifier = HmacVerifier(services.secret_store.get_hmac_secret)
    return HmacAuthMiddleware(ToolApplication(services), verifier)
