"""Common Pydantic models used across the command line output."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error output format."""

    error: str = Field(..., description="Error message")
    code: Optional[str] = Field(None, description="Error code for programmatic handling")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error details")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Invalid JWT format. JWT must have 3 parts separated by dots.",
                "code": "JWT_ERROR",
            }
        }
    )


class MessageResponse(BaseModel):
    """Standard success message output."""

    message: str = Field(..., description="Success message")


class FileWrittenResponse(BaseModel):
    """Output written to a file."""

    path: str = Field(..., description="Destination path")
    format: str = Field(..., description="Output format")
    bytes_written: int = Field(..., ge=0, description="Size of the written file")
