"""HMAC signed-request verification.

Inbound tool calls carry two headers:

- ``X-HMAC-Timestamp``: decimal Unix seconds at signing time.
- ``X-HMAC-Signature``: hex HMAC-SHA256 keyed by the shared secret over
  ``timestamp + "." + method + "." + path + "." + body``.

The body is signed exactly as received. Requests older or newer than
``MAX_CLOCK_SKEW`` seconds are rejected, which bounds replay without storing
nonces server side.
"""

import hashlib
import hmac
import json
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field

import structlog

from image_workshop_core.exceptions import UnauthorizedError

# Get logger for this module
logger = structlog.get_logger(__name__)

MAX_CLOCK_SKEW = 300

PUBLIC_PATHS: frozenset[str] = frozenset({"/health", "/"})

SIGNATURE_HEADER = "X-HMAC-Signature"
TIMESTAMP_HEADER = "X-HMAC-Timestamp"

ERROR_MISSING_HEADERS = "Missing HMAC headers"
ERROR_TIMESTAMP_EXPIRED = "Request timestamp expired"
ERROR_INVALID_SIGNATURE = "Invalid signature"
ERROR_INVALID_SIGNATURE_FORMAT = "Invalid signature format"


@dataclass
class SignedRequest:
    """An inbound request as seen by the verifier."""

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def get_header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lower_name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lower_name:
                return value
        return None


@dataclass(frozen=True)
class AuthResult:
    """Outcome of verifying a request."""

    authorized: bool
    error: str | None = None


def compute_signature(
    secret: str, timestamp: str, method: str, path: str, body: bytes | str
) -> str:
    """Compute the hex HMAC-SHA256 signature for a request.

    Args:
        secret: Shared secret.
        timestamp: Decimal Unix seconds, exactly as sent in the header.
        method: HTTP method.
        path: Request path without query string.
        body: Raw request body.

    Returns:
        Lowercase hex digest.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    payload = f"{timestamp}.{method}.{path}.".encode() + body
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


class HmacVerifier:
    """Decides whether an inbound request is authorized."""

    def __init__(
        self,
        get_secret: Callable[[], Awaitable[str]],
        *,
        public_paths: frozenset[str] = PUBLIC_PATHS,
        max_clock_skew: int = MAX_CLOCK_SKEW,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the verifier.

        Args:
            get_secret: Coroutine function returning the current shared secret,
                typically ``SecretStore.get_hmac_secret``.
            public_paths: Paths that are served without a signature.
            max_clock_skew: Allowed difference in seconds between signer and verifier.
            clock: Wall clock returning Unix seconds, injectable for tests.
        """
        self._get_secret = get_secret
        self.public_paths = public_paths
        self.max_clock_skew = max_clock_skew
        self._clock = clock

    async def verify(self, request: SignedRequest) -> AuthResult:
        """Verify the HMAC signature and timestamp of a request."""
        if request.path in self.public_paths:
            return AuthResult(authorized=True)

        signature = request.get_header(SIGNATURE_HEADER)
        timestamp = request.get_header(TIMESTAMP_HEADER)
        if not signature or not timestamp:
            return self._reject(request, ERROR_MISSING_HEADERS)

        if not (timestamp.isascii() and timestamp.isdigit()):
            return self._reject(request, ERROR_TIMESTAMP_EXPIRED)
        now = int(self._clock())
        if abs(now - int(timestamp)) > self.max_clock_skew:
            return self._reject(request, ERROR_TIMESTAMP_EXPIRED)

        secret = await self._get_secret()
        expected = compute_signature(
            secret, timestamp, request.method, request.path, request.body
        )

        try:
            signature_bytes = bytes.fromhex(signature)
        except ValueError:
            return self._reject(request, ERROR_INVALID_SIGNATURE_FORMAT)
        expected_bytes = bytes.fromhex(expected)

        if len(signature_bytes) != len(expected_bytes):
            return self._reject(request, ERROR_INVALID_SIGNATURE)
        if not hmac.compare_digest(signature_bytes, expected_bytes):
            return self._reject(request, ERROR_INVALID_SIGNATURE)

        return AuthResult(authorized=True)

    async def authenticate(self, request: SignedRequest) -> None:
        """Verify a request, raising if it is not authorized.

        Raises:
            UnauthorizedError: The request failed verification. ``reason`` holds
                the short rejection reason.
        """
        result = await self.verify(request)
        if not result.authorized:
            raise UnauthorizedError(result.error or "Authentication required")

    def _reject(self, request: SignedRequest, reason: str) -> AuthResult:
        logger.info(
            "HMAC_AUTH_REJECTED", method=request.method, path=request.path, reason=reason
        )
        return AuthResult(authorized=False, error=reason)


def unauthorized_response(error: str | None) -> tuple[int, list[tuple[str, str]], bytes]:
    """Build the 401 response for a rejected request.

    Returns:
        Tuple of status code, header list and JSON body.
    """
    body = json.dumps(
        {
            "error": "unauthorized",
            "error_description": error or "Authentication required",
        }
    ).encode("utf-8")
    headers = [
        ("Content-Type", "application/json"),
        ("WWW-Authenticate", "HMAC"),
        ("Content-Length", str(len(body))),
    ]
    return 401, headers, body
