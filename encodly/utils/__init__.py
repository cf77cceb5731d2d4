"""
Utils module - Identifier and encoding helpers.

Provides:
- uuid_utils: UUID generation (v1/v3/v4/v5/v6/v7), validation, parsing and export
- base64_codec: Base64 with standard, URL-safe and custom alphabets
- url_codec: URI component encoding with auto-detection
"""

from encodly.utils.uuid_utils import (
    generate_uuid,
    generate_bulk_uuids,
    validate_uuid,
    format_uuid,
    parse_uuid,
    extract_timestamp,
    calculate_collision_probability,
    export_uuids,
    UUIDVersion,
    UUIDInfo,
    UUIDValidation,
    NIL_UUID,
    MAX_UUID,
)

from encodly.utils.base64_codec import (
    encode_text,
    encode_bytes,
    encode_file,
    decode,
    detect_mime_type,
    is_valid_base64,
    Base64Error,
    Base64Options,
    BatchProcessor,
    ProcessingResult,
)

from encodly.utils.url_codec import (
    encode_uri_component,
    decode_uri_component,
    detect_operation,
    process_input,
    ConversionResult,
    URLDecodeError,
    URLEncodeError,
)

__all__ = [
    # UUID
    "generate_uuid",
    "generate_bulk_uuids",
    "validate_uuid",
    "format_uuid",
    "parse_uuid",
    "extract_timestamp",
    "calculate_collision_probability",
    "export_uuids",
    "UUIDVersion",
    "UUIDInfo",
    "UUIDValidation",
    "NIL_UUID",
    "MAX_UUID",
    # Base64
    "encode_text",
    "encode_bytes",
    "encode_file",
    "decode",
    "detect_mime_type",
    "is_valid_base64",
    "Base64Error",
    "Base64Options",
    "BatchProcessor",
    "ProcessingResult",
    # URL
    "encode_uri_component",
    "decode_uri_component",
    "detect_operation",
    "process_input",
    "ConversionResult",
    "URLDecodeError",
    "URLEncodeError",
]
