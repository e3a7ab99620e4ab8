"""WSGI middleware gating every request behind HMAC verification."""

import asyncio
import io
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any
from urllib.parse import quote, urlsplit

import structlog

from image_workshop_auth.hmac_verifier import (
    HmacVerifier,
    SignedRequest,
    unauthorized_response,
)
from image_workshop_core.exceptions import UnauthorizedError

if TYPE_CHECKING:
    from wsgiref.types import StartResponse, WSGIApplication, WSGIEnvironment

# Get logger for this module
logger = structlog.get_logger(__name__)

_STATUS_TEXT = {401: "401 Unauthorized"}

# RFC 3986 path characters a client leaves unescaped
_PATH_SAFE = "/!$&'()*+,;=:@"


def _read_body(environ: "WSGIEnvironment") -> bytes:
    """Read the whole request body and put an identical stream back in place."""
    try:
        content_length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        content_length = 0
    stream = environ.get("wsgi.input")
    body = stream.read(content_length) if stream is not None and content_length > 0 else b""
    environ["wsgi.input"] = io.BytesIO(body)
    return body


def _headers_from_environ(environ: "WSGIEnvironment") -> dict[str, str]:
    headers: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            headers[key[5:].replace("_", "-").title()] = value
    if environ.get("CONTENT_TYPE"):
        headers["Content-Type"] = environ["CONTENT_TYPE"]
    return headers


def _raw_path(environ: "WSGIEnvironment") -> str:
    """Return the request path as the client sent it on the wire.

    PATH_INFO is already percent-decoded, so prefer the raw request URI when
    the server provides one and otherwise re-escape PATH_INFO.
    """
    raw_uri = environ.get("RAW_URI") or environ.get("REQUEST_URI")
    if raw_uri:
        return urlsplit(raw_uri).path or "/"
    path = environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")
    return quote(path.encode("latin-1"), safe=_PATH_SAFE) or "/"


def request_from_environ(environ: "WSGIEnvironment") -> SignedRequest:
    """Build a SignedRequest from a WSGI environ without consuming the body."""
    return SignedRequest(
        method=environ.get("REQUEST_METHOD", "GET").upper(),
        path=_raw_path(environ),
        headers=_headers_from_environ(environ),
        body=_read_body(environ),
    )


class HmacAuthMiddleware:
    """Reject unsigned or badly signed requests before they reach the app."""

    def __init__(
        self,
        app: "WSGIApplication",
        verifier: HmacVerifier,
        run: Callable[[Any], Any] = asyncio.run,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: Downstream WSGI application.
            verifier: Verifier deciding whether each request is authorized.
            run: Runner used to drive the verifier coroutine to completion.
        """
        self.app = app
        self.verifier = verifier
        self._run = run

    def __call__(
        self, environ: "WSGIEnvironment", start_response: "StartResponse"
    ) -> Iterable[bytes]:
        request = request_from_environ(environ)
        try:
            self._run(self.verifier.authenticate(request))
        except UnauthorizedError as e:
            status, headers, body = unauthorized_response(e.reason)
            start_response(_STATUS_TEXT[status], headers)
            return [body]

        return self.app(environ, start_response)
