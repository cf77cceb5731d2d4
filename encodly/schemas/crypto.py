"""Hash and JWT Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

HASH_ALGORITHM_NAMES = Literal["SHA-1", "SHA-256", "SHA-384", "SHA-512"]
JWT_ALGORITHM_NAMES = Literal["HS256", "HS384", "HS512"]


class HashResponse(BaseModel):
    """A computed digest."""

    algorithm: HASH_ALGORITHM_NAMES = Field(..., description="Digest algorithm")
    hash: str = Field(..., description="Hex digest (formatted for display)")
    input_type: Literal["text", "file"] = Field("text", description="What was hashed")
    strength: int = Field(..., ge=0, le=100, description="Relative strength score")
    recommendation: str = Field(..., description="Security recommendation")


class HashListResponse(BaseModel):
    """Digests of one input under several algorithms."""

    items: list[HashResponse] = Field(..., description="One entry per algorithm")


class HashComparisonResponse(BaseModel):
    """Result of comparing a digest against an expected value."""

    hash1: str
    hash2: str
    algorithm: str
    matches: bool


class JWTDecodeResponse(BaseModel):
    """Decoded token with validation details."""

    header: Any = Field(None, description="Decoded header JSON")
    payload: Any = Field(None, description="Decoded payload JSON")
    signature: str = Field("", description="Raw base64url signature")
    is_valid: bool = Field(..., description="Whether the token decoded")
    is_expired: Optional[bool] = Field(None, description="Expiry state, when exp is present")
    expiration_time: Optional[datetime] = Field(None, description="exp as a UTC datetime")
    time_until_expiry: Optional[str] = Field(None, description="Human readable time to expiry")
    algorithm: Optional[str] = Field(None, description="alg header claim")
    is_signature_verified: Optional[bool] = Field(
        None, description="Signature check result; null when no secret was given"
    )
    error: Optional[str] = Field(None, description="Decode or validation error")


class JWTEncodeResponse(BaseModel):
    """An encoded token."""

    token: str = Field(..., description="Compact JWS")
    algorithm: JWT_ALGORITHM_NAMES


class JWTVerifyResponse(BaseModel):
    """Signature verification result."""

    token: str
    is_signature_verified: bool
