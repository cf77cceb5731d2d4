"""Pydantic schema models for structured (--json) command output."""

from .common import (
    ErrorResponse,
    FileWrittenResponse,
    MessageResponse,
)
from .crypto import (
    HashComparisonResponse,
    HashListResponse,
    HashResponse,
    JWTDecodeResponse,
    JWTEncodeResponse,
    JWTVerifyResponse,
)
from .tools import (
    Base64Response,
    QRResponse,
    URLConversionResponse,
    UUIDInfoResponse,
    UUIDListResponse,
    UUIDValidationResponse,
)

__all__ = [
    # Hash / JWT schemas
    "HashResponse",
    "HashListResponse",
    "HashComparisonResponse",
    "JWTDecodeResponse",
    "JWTEncodeResponse",
    "JWTVerifyResponse",
    # Tool schemas
    "UUIDListResponse",
    "UUIDValidationResponse",
    "UUIDInfoResponse",
    "QRResponse",
    "Base64Response",
    "URLConversionResponse",
    # Common schemas
    "ErrorResponse",
    "MessageResponse",
    "FileWrittenResponse",
]
