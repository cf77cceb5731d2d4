"""
Crypto module - Digest and token utilities.

Provides:
- hashing: SHA digests of text and files, HMAC helpers
- jwt_utils: JWT decode / encode / HMAC verification
"""

from encodly.crypto.hashing import (
    generate_text_hash,
    generate_file_hash,
    generate_all_hashes,
    compare_hashes,
    validate_hash_format,
    get_hash_strength,
    get_security_recommendation,
    format_hash_display,
    export_hash_results,
    generate_test_data,
    hmac_sign,
    hmac_sign_bytes,
    hmac_verify,
    HashAlgorithm,
    HashComparison,
    HashGenerationError,
    HashResult,
    HASH_ALGORITHMS,
    HASH_LENGTHS,
)

from encodly.crypto.jwt_utils import (
    base64url_encode,
    base64url_decode,
    decode_jwt,
    validate_jwt,
    verify_jwt_signature,
    encode_jwt,
    extract_jwt_token,
    format_time_until_expiry,
    validate_and_parse_json,
    payload_template,
    default_payload,
    JWTDecoded,
    JWTValidation,
    JWTError,
    JWTEncodeError,
    DEFAULT_HEADER,
    SUPPORTED_ALGORITHMS,
)

__all__ = [
    # Hashing
    "generate_text_hash",
    "generate_file_hash",
    "generate_all_hashes",
    "compare_hashes",
    "validate_hash_format",
    "get_hash_strength",
    "get_security_recommendation",
    "format_hash_display",
    "export_hash_results",
    "generate_test_data",
    "hmac_sign",
    "hmac_sign_bytes",
    "hmac_verify",
    "HashAlgorithm",
    "HashComparison",
    "HashGenerationError",
    "HashResult",
    "HASH_ALGORITHMS",
    "HASH_LENGTHS",
    # JWT
    "base64url_encode",
    "base64url_decode",
    "decode_jwt",
    "validate_jwt",
    "verify_jwt_signature",
    "encode_jwt",
    "extract_jwt_token",
    "format_time_until_expiry",
    "validate_and_parse_json",
    "payload_template",
    "default_payload",
    "JWTDecoded",
    "JWTValidation",
    "JWTError",
    "JWTEncodeError",
    "DEFAULT_HEADER",
    "SUPPORTED_ALGORITHMS",
]
