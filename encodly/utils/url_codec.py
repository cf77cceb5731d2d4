"""
URL component encoding and decoding.

Follows the browser's encodeURIComponent / decodeURIComponent rules:
unreserved characters ``A-Z a-z 0-9 - _ . ! ~ * ' ( )`` pass through and
everything else is percent-encoded as UTF-8. Decoding is strict.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)

# Characters quote() must leave alone in addition to its own unreserved set
URI_COMPONENT_SAFE = "-_.!~*'()"

ENCODE_ERROR = "Failed to encode URL. Please check your input."
DECODE_ERROR = "Failed to decode URL. The input may not be properly encoded."
EMPTY_ENCODE_ERROR = "Please enter a URL to encode"
EMPTY_DECODE_ERROR = "Please enter an encoded URL to decode"

OPERATIONS = ("encode", "decode")

_ESCAPE = re.compile(r"%[0-9A-Fa-f]{2}")
_ESCAPE_RUN = re.compile(r"(?:%[0-9A-Fa-f]{2})+")
_STRAY_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


class URLEncodeError(ValueError):
    """Raised when text cannot be percent-encoded (e.g. lone surrogates)."""


class URLDecodeError(ValueError):
    """Raised on a malformed escape or an escape run that is not UTF-8."""


@dataclass(slots=True, frozen=True)
class ConversionResult:
    """Outcome of one URL conversion."""

    output: str
    operation: Optional[str] = None  # "encode" / "decode"; None for blank input
    error: Optional[str] = None

    @property
    def is_valid(self) -> Optional[bool]:
        if self.operation is None:
            return None
        return self.error is None


def encode_uri_component(text: str) -> str:
    """
    Percent-encode text as a URI component.

    Raises:
        URLEncodeError: If text contains unpaired surrogates

    Example:
        >>> encode_uri_component("a b&c=d")
        'a%20b%26c%3Dd'
    """
    try:
        return quote(text, safe=URI_COMPONENT_SAFE, encoding="utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise URLEncodeError(f"Cannot encode text: {e.reason}") from e


def _decode_run(match: re.Match) -> str:
    raw = bytes.fromhex(match.group(0).replace("%", ""))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise URLDecodeError(f"Escape sequence {match.group(0)} is not valid UTF-8") from e


def decode_uri_component(text: str) -> str:
    """
    Decode percent-escapes. ``+`` is left as is.

    Raises:
        URLDecodeError: On a ``%`` not followed by two hex digits, or on
            escapes that do not form valid UTF-8
    """
    stray = _STRAY_PERCENT.search(text)
    if stray:
        raise URLDecodeError(f"Malformed escape at position {stray.start()}")
    return _ESCAPE_RUN.sub(_decode_run, text)


def detect_operation(text: str) -> str:
    """Return ``decode`` when text holds escapes that decode to something new."""
    if not _ESCAPE.search(text):
        return "encode"
    try:
        decoded = decode_uri_component(text)
    except URLDecodeError:
        return "encode"
    return "decode" if decoded != text else "encode"


def process_input(text: str, operation: Optional[str] = None) -> ConversionResult:
    """
    Convert text, auto-detecting the direction unless one is given.

    Args:
        text: Input (surrounding whitespace is ignored)
        operation: ``encode``, ``decode`` or None to auto-detect

    Returns:
        ConversionResult; errors are reported in the result, not raised
    """
    if operation is not None and operation not in OPERATIONS:
        raise ValueError(f"Unknown operation: {operation}")

    stripped = text.strip()
    if not stripped:
        if operation == "encode":
            return ConversionResult(output="", operation=operation, error=EMPTY_ENCODE_ERROR)
        if operation == "decode":
            return ConversionResult(output="", operation=operation, error=EMPTY_DECODE_ERROR)
        return ConversionResult(output="")

    operation = operation or detect_operation(stripped)
    try:
        if operation == "encode":
            output = encode_uri_component(stripped)
        else:
            output = decode_uri_component(stripped)
    except (URLEncodeError, URLDecodeError) as e:
        logger.debug(f"URL {operation} failed: {e}")
        message = ENCODE_ERROR if operation == "encode" else DECODE_ERROR
        return ConversionResult(output="", operation=operation, error=message)

    return ConversionResult(output=output, operation=operation)
