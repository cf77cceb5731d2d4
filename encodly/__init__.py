"""
Encodly - developer tools for hashing, tokens, identifiers and encodings.

Subpackages:
- crypto: SHA digests, HMAC helpers and JWT decode / encode / verify
- utils: UUID, Base64 and URL component utilities
- services: QR code generation with a styled renderer
- schemas: Pydantic models for structured command output
"""

__version__ = "1.0.0"
