"""
Hash generation utilities.

Provides:
- SHA-1 / SHA-256 / SHA-384 / SHA-512 digests of text and files
- Hash comparison and format validation
- Display formatting and plain-text export
- HMAC signing helpers (used for JWT signatures)
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import os
import re
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import BinaryIO, Optional, Union

from encodly.config import Config

logger = logging.getLogger(__name__)


class HashGenerationError(RuntimeError):
    """Raised when a digest cannot be computed."""


class HashAlgorithm(str, Enum):
    """Supported digest algorithms."""

    SHA1 = "SHA-1"
    SHA256 = "SHA-256"
    SHA384 = "SHA-384"
    SHA512 = "SHA-512"

    @property
    def hashlib_name(self) -> str:
        return self.value.replace("-", "").lower()

    @classmethod
    def parse(cls, value: Union[str, HashAlgorithm]) -> HashAlgorithm:
        """Accept ``SHA-256``, ``sha256`` or ``SHA256`` style names."""
        if isinstance(value, cls):
            return value
        normalized = str(value).upper().replace("_", "").replace("-", "")
        for algorithm in cls:
            if algorithm.value.replace("-", "") == normalized:
                return algorithm
        raise ValueError(f"Unsupported algorithm: {value}")


HASH_ALGORITHMS = [
    {"value": HashAlgorithm.SHA1, "label": "SHA-1", "description": "160-bit hash (legacy)"},
    {"value": HashAlgorithm.SHA256, "label": "SHA-256", "description": "256-bit hash (recommended)"},
    {"value": HashAlgorithm.SHA384, "label": "SHA-384", "description": "384-bit hash"},
    {"value": HashAlgorithm.SHA512, "label": "SHA-512", "description": "512-bit hash (most secure)"},
]

# Hex digest length per algorithm
HASH_LENGTHS = {
    HashAlgorithm.SHA1: 40,
    HashAlgorithm.SHA256: 64,
    HashAlgorithm.SHA384: 96,
    HashAlgorithm.SHA512: 128,
}

HASH_STRENGTHS = {
    HashAlgorithm.SHA1: 60,
    HashAlgorithm.SHA256: 95,
    HashAlgorithm.SHA384: 90,
    HashAlgorithm.SHA512: 98,
}

SECURITY_RECOMMENDATIONS = {
    HashAlgorithm.SHA1: "Deprecated for cryptographic use. Use SHA-256 or higher.",
    HashAlgorithm.SHA256: "Excellent choice for most applications. Widely adopted and secure.",
    HashAlgorithm.SHA384: "Very secure, good for high-security applications.",
    HashAlgorithm.SHA512: "Maximum security, ideal for critical applications.",
}

_HEX_PATTERN = re.compile(r"^[a-f0-9]+$")


@dataclass(slots=True, frozen=True)
class HashResult:
    """A computed digest."""

    algorithm: HashAlgorithm
    hash: str
    input_type: str = "text"  # "text" or "file"
    timestamp: float = field(default_factory=time.time)


@dataclass(slots=True, frozen=True)
class HashComparison:
    """Result of comparing two digests."""

    hash1: str
    hash2: str
    algorithm: str
    matches: bool


def _new_digest(algorithm: HashAlgorithm):
    try:
        return hashlib.new(algorithm.hashlib_name)
    except ValueError as e:
        raise HashGenerationError(f"Digest {algorithm.value} unavailable: {e}") from e


def generate_text_hash(text: str, algorithm: Union[str, HashAlgorithm]) -> str:
    """
    Hash text with the given algorithm.

    Args:
        text: Input text (UTF-8 encoded before hashing)
        algorithm: Digest algorithm

    Returns:
        Lowercase hex digest, or an empty string for empty input

    Raises:
        ValueError: If the algorithm is not supported
        HashGenerationError: If the digest cannot be computed

    Example:
        >>> generate_text_hash("Hello World", "SHA-1")
        '0a4d55a8d778e5022fab701977c5d840bbc486d0'
    """
    algorithm = HashAlgorithm.parse(algorithm)
    if not text:
        return ""

    digest = _new_digest(algorithm)
    try:
        digest.update(text.encode("utf-8"))
    except UnicodeEncodeError as e:
        raise HashGenerationError(f"Hash generation failed: {e}") from e
    return digest.hexdigest()


def generate_file_hash(
    source: Union[str, os.PathLike, BinaryIO],
    algorithm: Union[str, HashAlgorithm],
    chunk_size: int = Config.HASH_FILE_CHUNK_SIZE,
) -> str:
    """
    Hash a file's bytes.

    Args:
        source: Path to a file, or an open binary file object
        algorithm: Digest algorithm
        chunk_size: Read size in bytes

    Returns:
        Lowercase hex digest

    Raises:
        HashGenerationError: If the file cannot be read
    """
    algorithm = HashAlgorithm.parse(algorithm)
    digest = _new_digest(algorithm)

    try:
        if hasattr(source, "read"):
            _update_from_stream(digest, source, chunk_size)
        else:
            with open(source, "rb") as file_obj:
                _update_from_stream(digest, file_obj, chunk_size)
    except OSError as e:
        logger.warning(f"Failed to read file for hashing: {e}")
        raise HashGenerationError("Failed to read file") from e

    return digest.hexdigest()


def _update_from_stream(digest, stream: BinaryIO, chunk_size: int) -> None:
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        digest.update(chunk)


def generate_all_hashes(
    text: str, max_workers: int = Config.HASH_WORKERS
) -> dict[HashAlgorithm, str]:
    """
    Compute every supported digest of text concurrently.

    Args:
        text: Input text
        max_workers: Thread pool size

    Returns:
        Mapping of algorithm to hex digest
    """
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            info["value"]: executor.submit(generate_text_hash, text, info["value"])
            for info in HASH_ALGORITHMS
        }
        return {algorithm: future.result() for algorithm, future in futures.items()}


def compare_hashes(
    hash1: str, hash2: str, algorithm: Optional[Union[str, HashAlgorithm]] = None
) -> HashComparison:
    """Compare two hex digests, ignoring case and surrounding whitespace."""
    clean1 = hash1.lower().strip()
    clean2 = hash2.lower().strip()
    if algorithm is None:
        label = "Unknown"
    else:
        label = HashAlgorithm.parse(algorithm).value
    return HashComparison(hash1=clean1, hash2=clean2, algorithm=label, matches=clean1 == clean2)


def validate_hash_format(hash_str: str, algorithm: Union[str, HashAlgorithm]) -> bool:
    """Check that a digest is hex of the length the algorithm produces."""
    if not hash_str:
        return False

    clean = hash_str.lower().strip()
    if not _HEX_PATTERN.match(clean):
        return False

    return len(clean) == HASH_LENGTHS[HashAlgorithm.parse(algorithm)]


def get_hash_strength(algorithm: Union[str, HashAlgorithm]) -> int:
    """Relative strength score (0-100) shown next to each algorithm."""
    try:
        return HASH_STRENGTHS[HashAlgorithm.parse(algorithm)]
    except ValueError:
        return 0


def get_security_recommendation(algorithm: Union[str, HashAlgorithm]) -> str:
    try:
        return SECURITY_RECOMMENDATIONS[HashAlgorithm.parse(algorithm)]
    except ValueError:
        return "Unknown algorithm"


def format_hash_display(hash_str: str, display_format: str = "default") -> str:
    """
    Format a digest for display.

    Args:
        hash_str: Hex digest
        display_format: ``default``, ``spaced`` (groups of 8) or ``chunked`` (lines of 16)

    Returns:
        Formatted digest
    """
    if not hash_str:
        return ""

    if display_format == "spaced":
        return " ".join(hash_str[i:i + 8] for i in range(0, len(hash_str), 8))
    if display_format == "chunked":
        return "\n".join(hash_str[i:i + 16] for i in range(0, len(hash_str), 16))
    return hash_str


def export_hash_results(
    results: dict[HashAlgorithm, str],
    input_text: str,
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render digests as a plain-text report.

    Args:
        results: Mapping of algorithm to hex digest
        input_text: The hashed input (previewed, truncated to 50 characters)
        generated_at: Report timestamp (defaults to now, UTC)

    Returns:
        Report text
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    preview = input_text[:50] + "..." if len(input_text) > 50 else input_text

    lines = [
        "Hash Generation Results",
        f"Generated: {generated_at.isoformat()}",
        f"Input: {preview}",
        f"Input Length: {len(input_text)} characters",
        "",
    ]
    for algorithm, digest in results.items():
        if digest:
            label = algorithm.value if isinstance(algorithm, HashAlgorithm) else str(algorithm)
            lines.extend([f"{label}:", digest, ""])

    return "\n".join(lines) + "\n"


def generate_test_data() -> list[str]:
    """Sample inputs for trying the hash generator."""
    return [
        "Hello World",
        "The quick brown fox jumps over the lazy dog",
        "Lorem ipsum dolor sit amet, consectetur adipiscing elit.",
        '{"name": "test", "value": 12345}',
        "password123",
        "https://example.com/api/endpoint",
        "user@example.com",
        "2024-01-15T10:30:00Z",
    ]


_HMAC_DIGESTS = {
    "sha256": hashlib.sha256,
    "sha384": hashlib.sha384,
    "sha512": hashlib.sha512,
}


def hmac_sign_bytes(data: bytes, key: bytes, algorithm: str = "sha256") -> bytes:
    """
    Create a raw HMAC digest.

    Args:
        data: Data to sign
        key: Secret key
        algorithm: sha256, sha384 or sha512

    Returns:
        Raw digest bytes
    """
    try:
        digestmod = _HMAC_DIGESTS[algorithm]
    except KeyError:
        raise ValueError(f"Unsupported algorithm: {algorithm}") from None
    return hmac.new(key, data, digestmod).digest()


def hmac_sign(data: bytes, key: bytes, algorithm: str = "sha256") -> str:
    """
    Create an HMAC signature for data.

    Example:
        >>> hmac_sign(b"message", b"secret_key")
        '4a5e3c...'
    """
    return hmac_sign_bytes(data, key, algorithm).hex()


def hmac_verify(data: bytes, key: bytes, signature: str, algorithm: str = "sha256") -> bool:
    """Verify a hex HMAC signature in constant time."""
    expected = hmac_sign(data, key, algorithm)
    return hmac.compare_digest(expected, signature.lower())
