"""UUID, QR, Base64 and URL Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class UUIDListResponse(BaseModel):
    """Generated UUIDs."""

    version: str = Field(..., description="UUID version (v1, v3, v4, v5, v6, v7)")
    count: int = Field(..., ge=1, description="Number of UUIDs")
    uuids: list[str] = Field(..., description="Formatted UUIDs")
    collision_probability: Optional[float] = Field(
        None, ge=0, le=1, description="Estimated chance of any collision in this batch"
    )
    recommendation: Optional[str] = None


class UUIDValidationResponse(BaseModel):
    """Validation of a UUID string."""

    value: str
    is_valid: bool
    version: Optional[int] = None
    format: str = Field(..., description="standard, compact or invalid")
    errors: list[str] = Field(default_factory=list)


class UUIDInfoResponse(BaseModel):
    """Fields decoded from a UUID."""

    value: str
    version: Optional[int] = None
    variant: str
    is_nil: bool
    is_max: bool
    timestamp: Optional[str] = Field(None, description="Raw timestamp bits as hex")
    clock_sequence: Optional[str] = None
    node: Optional[str] = None
    created_at: Optional[datetime] = None


class QRResponse(BaseModel):
    """A rendered QR code."""

    path: str = Field(..., description="Destination path")
    format: str = Field(..., description="png, svg or pdf")
    content_type: str = Field(..., description="url or text")
    bytes_written: int = Field(..., ge=0)
    options: dict = Field(default_factory=dict, description="Options used for rendering")


class Base64Response(BaseModel):
    """Encode or decode output."""

    operation: str = Field(..., description="encode or decode")
    mime_type: str
    size: int = Field(..., ge=0, description="Size of the raw data in bytes")
    is_image: bool = False
    base64: Optional[str] = None
    text: Optional[str] = None
    formats: dict[str, str] = Field(default_factory=dict)


class URLConversionResponse(BaseModel):
    """URL encode or decode output."""

    input: str
    output: str
    operation: Optional[str] = None
    error: Optional[str] = None
