"""Inbound request authentication."""

from .hmac_verifier import (
    MAX_CLOCK_SKEW,
    PUBLIC_PATHS,
    SIGNATURE_HEADER,
    TIMESTAMP_HEADER,
    AuthResult,
    HmacVerifier,
    SignedRequest,
    compute_signature,
    unauthorized_response,
)
from .middleware import HmacAuthMiddleware, request_from_environ

__all__ = [
    "MAX_CLOCK_SKEW",
    "PUBLIC_PATHS",
    "SIGNATURE_HEADER",
    "TIMESTAMP_HEADER",
    "AuthResult",
    "HmacAuthMiddleware",
    "HmacVerifier",
    "SignedRequest",
    "compute_signature",
    "request_from_environ",
    "unauthorized_response",
]
