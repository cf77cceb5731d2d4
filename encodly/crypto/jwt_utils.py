"""
JWT decoding, encoding and HMAC verification.

Tokens are handled structurally: header and payload are base64url JSON
segments, the signature is opaque unless verified against a shared secret.
Only the HMAC family (HS256 / HS384 / HS512) is supported for signing and
verification.
"""

from __future__ import annotations

import json
import logging
import math
import re
import time
import uuid
import warnings
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Union

from jwt import PyJWS, PyJWTError
from jwt.utils import base64url_decode as _b64url_decode_bytes
from jwt.utils import base64url_encode as _b64url_encode_bytes

from encodly.crypto.hashing import hmac_sign_bytes

logger = logging.getLogger(__name__)

_JWS = PyJWS()


class JWTError(ValueError):
    """Base error for JWT operations."""


class JWTEncodeError(JWTError):
    """Raised when a token cannot be built or signed."""


# JWT algorithm -> HMAC digest name
HMAC_ALGORITHMS = {
    "HS256": "sha256",
    "HS384": "sha384",
    "HS512": "sha512",
}

SUPPORTED_ALGORITHMS = [
    {"value": "HS256", "label": "HS256 (HMAC SHA-256)"},
    {"value": "HS384", "label": "HS384 (HMAC SHA-384)"},
    {"value": "HS512", "label": "HS512 (HMAC SHA-512)"},
]

DEFAULT_HEADER = {"alg": "HS256", "typ": "JWT"}

COMMON_CLAIMS = {
    "iss": {"name": "Issuer", "description": "The issuer of the token"},
    "sub": {"name": "Subject", "description": "The subject of the token (usually user ID)"},
    "aud": {"name": "Audience", "description": "The intended audience for the token"},
    "exp": {"name": "Expiration Time", "description": "When the token expires (Unix timestamp)"},
    "nbf": {"name": "Not Before", "description": "Token is not valid before this time"},
    "iat": {"name": "Issued At", "description": "When the token was issued (Unix timestamp)"},
    "jti": {"name": "JWT ID", "description": "Unique identifier for the token"},
}

COMMON_HEADER_CLAIMS = {
    "alg": {"name": "Algorithm", "description": "Signing algorithm used"},
    "typ": {"name": "Type", "description": 'Type of token (usually "JWT")'},
    "kid": {"name": "Key ID", "description": "Key identifier for signature verification"},
}

_BEARER_PREFIX = re.compile(r"^Bearer\s+", re.IGNORECASE)
_BEARER_TOKEN = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)
_AUTH_HEADER_TOKEN = re.compile(r"^Authorization:\s*Bearer\s+(.+)$", re.IGNORECASE)
_EMBEDDED_TOKEN = re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")


@dataclass(slots=True)
class JWTDecoded:
    """Structurally decoded token."""

    header: Any
    payload: Any
    signature: str
    is_valid: bool
    error: Optional[str] = None


@dataclass(slots=True)
class JWTValidation:
    """Claims-level information about a decoded token."""

    is_valid_structure: bool
    is_expired: Optional[bool]
    expiration_time: Optional[datetime]
    time_until_expiry: Optional[int]  # milliseconds
    algorithm: Optional[str]
    is_signature_verified: Optional[bool] = None  # None = not checked
    error: Optional[str] = None


@dataclass(slots=True)
class JSONParseResult:
    is_valid: bool
    data: Any = None
    error: Optional[str] = None


def to_json(obj: Any) -> str:
    """Serialize compactly in insertion order, keeping non-ASCII text."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def base64url_encode(value: Union[str, bytes]) -> str:
    """
    Encode as unpadded base64url.

    Args:
        value: Text (UTF-8 encoded first) or raw bytes

    Returns:
        Base64url string without ``=`` padding
    """
    if isinstance(value, str):
        value = value.encode("utf-8")
    return _b64url_encode_bytes(value).decode("ascii")


def base64url_decode(value: str) -> str:
    """
    Decode unpadded base64url into UTF-8 text.

    Raises:
        ValueError: If the input is not valid base64url or not UTF-8
    """
    return _b64url_decode_bytes(value).decode("utf-8")


def decode_jwt(token: str) -> JWTDecoded:
    """
    Split a token and decode its header and payload.

    A leading ``Bearer`` prefix is ignored. The signature is left as-is.

    Args:
        token: Encoded JWT

    Returns:
        JWTDecoded; ``is_valid`` is False with an ``error`` message when the
        token is malformed
    """
    clean_token = _BEARER_PREFIX.sub("", token.strip()).strip()
    parts = clean_token.split(".")

    if len(parts) != 3:
        return JWTDecoded(
            header=None,
            payload=None,
            signature="",
            is_valid=False,
            error="Invalid JWT format. JWT must have exactly 3 parts separated by dots.",
        )

    try:
        header = json.loads(base64url_decode(parts[0]))
        payload = json.loads(base64url_decode(parts[1]))
    except ValueError as e:
        logger.debug(f"JWT segment decode failed: {e}")
        return JWTDecoded(
            header=None,
            payload=None,
            signature=parts[2],
            is_valid=False,
            error="Failed to decode JWT parts. Invalid base64 encoding.",
        )

    return JWTDecoded(header=header, payload=payload, signature=parts[2], is_valid=True)


def validate_jwt(decoded: JWTDecoded, now: Optional[int] = None) -> JWTValidation:
    """
    Extract expiry and algorithm information from a decoded token.

    Args:
        decoded: Result of :func:`decode_jwt`
        now: Current Unix time in seconds (defaults to the clock)

    Returns:
        JWTValidation
    """
    if not decoded.is_valid:
        return JWTValidation(
            is_valid_structure=False,
            is_expired=None,
            expiration_time=None,
            time_until_expiry=None,
            algorithm=None,
            error=decoded.error,
        )

    now = get_current_timestamp() if now is None else now
    payload = decoded.payload if isinstance(decoded.payload, dict) else {}
    header = decoded.header if isinstance(decoded.header, dict) else {}
    exp = payload.get("exp")

    is_expired = None
    expiration_time = None
    time_until_expiry = None

    # bool is an int subclass but never a timestamp
    if exp and isinstance(exp, (int, float)) and not isinstance(exp, bool) and math.isfinite(exp):
        is_expired = now > exp
        time_until_expiry = 0 if is_expired else int((exp - now) * 1000)
        try:
            expiration_time = datetime.fromtimestamp(exp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug(f"JWT exp {exp} is outside the datetime range")

    return JWTValidation(
        is_valid_structure=True,
        is_expired=is_expired,
        expiration_time=expiration_time,
        time_until_expiry=time_until_expiry,
        algorithm=header.get("alg") or None,
    )


def _sign(signing_input: str, secret: str, algorithm: str) -> str:
    digest = hmac_sign_bytes(
        signing_input.encode("utf-8"),
        secret.encode("utf-8"),
        HMAC_ALGORITHMS[algorithm],
    )
    return base64url_encode(digest)


def verify_jwt_signature(token: str, secret: str) -> bool:
    """
    Check an HMAC-signed token against a shared secret.

    Args:
        token: Encoded JWT
        secret: Shared secret

    Returns:
        True only if the header names an HS algorithm and PyJWT accepts
        the signature over the received bytes
    """
    if not secret or not secret.strip():
        return False

    try:
        with warnings.catch_warnings():
            # Short secrets are common in examples; PyJWT warns about them
            warnings.simplefilter("ignore", UserWarning)
            _JWS.decode(token.strip(), secret, algorithms=list(HMAC_ALGORITHMS))
    except PyJWTError as e:
        logger.debug(f"JWT signature rejected: {e}")
        return False
    return True


def encode_jwt(
    header: Any,
    payload: Any,
    secret: str,
    algorithm: str = "HS256",
) -> str:
    """
    Build and sign a token.

    The header's ``alg`` is always set to ``algorithm`` and ``typ`` defaults
    to ``JWT``. Segments are serialized the way browsers' ``JSON.stringify``
    does, so tokens match those produced by other tools byte for byte.

    Args:
        header: Header claims
        payload: Payload claims
        secret: Shared secret
        algorithm: HS256, HS384 or HS512

    Returns:
        Encoded token

    Raises:
        JWTEncodeError: On invalid input or unsupported algorithm

    Example:
        >>> encode_jwt({"alg": "HS256", "typ": "JWT"}, {"sub": "1"}, "secret")
        'eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...'
    """
    if not isinstance(header, dict):
        raise JWTEncodeError("Header must be a valid JSON object")
    if not isinstance(payload, dict):
        raise JWTEncodeError("Payload must be a valid JSON object")
    if not isinstance(secret, str) or not secret.strip():
        raise JWTEncodeError("Secret key is required for signing")
    if algorithm not in HMAC_ALGORITHMS:
        raise JWTEncodeError(f"Unsupported algorithm: {algorithm}")

    final_header = dict(header)
    final_header["alg"] = algorithm
    if not final_header.get("typ"):
        final_header["typ"] = "JWT"

    try:
        signing_input = f"{base64url_encode(to_json(final_header))}.{base64url_encode(to_json(payload))}"
    except (TypeError, ValueError) as e:
        raise JWTEncodeError(f"Failed to encode JWT token: {e}") from e

    return f"{signing_input}.{_sign(signing_input, secret, algorithm)}"


def extract_jwt_token(text: str) -> str:
    """Pull a token out of a Bearer value, an Authorization header or free text."""
    trimmed = text.strip()

    for pattern in (_BEARER_TOKEN, _AUTH_HEADER_TOKEN):
        match = pattern.match(trimmed)
        if match:
            return match.group(1)

    if len(trimmed.split(".")) == 3:
        return trimmed

    match = _EMBEDDED_TOKEN.search(trimmed)
    if match:
        return match.group(0)

    return trimmed


def format_time_until_expiry(milliseconds: int) -> str:
    if milliseconds <= 0:
        return "Expired"

    seconds = milliseconds // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def validate_and_parse_json(text: str) -> JSONParseResult:
    """Parse user-supplied JSON, reporting problems instead of raising."""
    if not text.strip():
        return JSONParseResult(is_valid=False, error="JSON cannot be empty")

    try:
        return JSONParseResult(is_valid=True, data=json.loads(text))
    except json.JSONDecodeError as e:
        return JSONParseResult(is_valid=False, error=str(e))


def format_json(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def get_current_timestamp() -> int:
    return int(time.time())


def get_future_timestamp(seconds_from_now: int) -> int:
    return get_current_timestamp() + seconds_from_now


def format_timestamp(timestamp: Union[int, float]) -> str:
    """Render a Unix timestamp as a UTC date string."""
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
    except (OverflowError, OSError, ValueError):
        return "Invalid timestamp"


def default_payload(now: Optional[int] = None) -> dict[str, Any]:
    """Starter payload: a subject issued now, expiring in one hour."""
    now = get_current_timestamp() if now is None else now
    return {"sub": "1234567890", "name": "John Doe", "iat": now, "exp": now + 3600}


PAYLOAD_TEMPLATE_NAMES = {
    "basic": "Basic User Token",
    "admin": "Admin Token",
    "api": "API Access Token",
    "refresh": "Refresh Token",
}


def payload_template(name: str, now: Optional[int] = None) -> dict[str, Any]:
    """
    Build one of the preset payloads with fresh timestamps.

    Args:
        name: basic, admin, api or refresh
        now: Issue time (defaults to the clock)

    Raises:
        KeyError: For an unknown template name
    """
    now = get_current_timestamp() if now is None else now

    if name == "basic":
        return {"sub": "1234567890", "name": "John Doe", "iat": now, "exp": now + 3600}
    if name == "admin":
        return {
            "sub": "admin-001",
            "name": "Admin User",
            "role": "admin",
            "permissions": ["read", "write", "delete"],
            "iat": now,
            "exp": now + 7200,
        }
    if name == "api":
        return {
            "sub": "api-client-123",
            "aud": "api.example.com",
            "scope": "read write",
            "client_id": "web-app",
            "iat": now,
            "exp": now + 1800,
        }
    if name == "refresh":
        return {
            "sub": "1234567890",
            "jti": str(uuid.uuid4()),
            "type": "refresh",
            "iat": now,
            "exp": now + 2592000,  # 30 days
        }
    raise KeyError(f"Unknown payload template: {name}")
