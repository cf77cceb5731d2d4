"""
Base64 encoding and decoding.

Provides:
- Standard, URL-safe and custom 64-character alphabets
- Text, bytes and file encoding with ready-made output formats
- Decoding with MIME sniffing
- A bounded-concurrency batch processor for files
- JSON / HTML / CSS export templates
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import mimetypes
import os
import re
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from encodly.config import Config

logger = logging.getLogger(__name__)

STANDARD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
URL_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"

ALPHABETS = {
    "standard": STANDARD_ALPHABET,
    "url": URL_ALPHABET,
}

DEFAULT_CHUNK_SIZE = 76

_DATA_URI_PREFIX = re.compile(r"^data:[^,]*;base64,", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

_MAGIC_NUMBERS = [
    (b"\x89PNG", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF", "image/gif"),
    (b"%PDF", "application/pdf"),
]

_TEXT_BYTES = frozenset(range(32, 127)) | {9, 10, 13}


class Base64Error(ValueError):
    """Raised when input cannot be encoded or decoded."""


def resolve_alphabet(alphabet: str) -> str:
    """
    Resolve ``standard``, ``url`` or a literal 64-character alphabet.

    Raises:
        ValueError: If a custom alphabet is not 64 distinct characters
    """
    if alphabet in ALPHABETS:
        return ALPHABETS[alphabet]
    if len(alphabet) != 64 or len(set(alphabet)) != 64:
        raise ValueError("Custom alphabet must contain 64 distinct characters")
    if "=" in alphabet:
        raise ValueError("Custom alphabet cannot contain the padding character '='")
    return alphabet


@dataclass(slots=True)
class Base64Options:
    """Encoding options."""

    alphabet: str = "standard"
    chunked: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        resolve_alphabet(self.alphabet)
        if self.chunk_size < 4:
            self.chunk_size = DEFAULT_CHUNK_SIZE


@dataclass(slots=True)
class ProcessingResult:
    """Outcome of an encode or decode."""

    id: str
    mime_type: str
    size: int
    is_image: bool
    base64: Optional[str] = None
    data: Optional[bytes] = None
    text: Optional[str] = None
    formats: dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


def _translate(value: str, source: str, target: str) -> str:
    if source == target:
        return value
    return value.translate(str.maketrans(source, target))


def _chunk(value: str, width: int) -> str:
    return "\n".join(value[i:i + width] for i in range(0, len(value), width))


def b64_encode(data: bytes, options: Optional[Base64Options] = None) -> str:
    """
    Encode bytes with the configured alphabet.

    The URL alphabet omits padding; the others pad with ``=``.
    """
    options = options or Base64Options()
    alphabet = resolve_alphabet(options.alphabet)
    encoded = _translate(base64.b64encode(data).decode("ascii"), STANDARD_ALPHABET, alphabet)
    if alphabet == URL_ALPHABET:
        encoded = encoded.rstrip("=")
    if options.chunked:
        encoded = _chunk(encoded, options.chunk_size)
    return encoded


def b64_decode(text: str, options: Optional[Base64Options] = None) -> bytes:
    """
    Decode Base64 text to bytes.

    Whitespace and a ``data:...;base64,`` prefix are ignored; missing
    padding is restored.

    Raises:
        Base64Error: If the text is not valid for the alphabet
    """
    options = options or Base64Options()
    alphabet = resolve_alphabet(options.alphabet)
    cleaned = _DATA_URI_PREFIX.sub("", _WHITESPACE.sub("", text))

    body = cleaned.rstrip("=")
    invalid = set(body) - set(alphabet)
    if invalid:
        raise Base64Error(f"Decoding failed: invalid character {sorted(invalid)[0]!r}")
    if len(body) % 4 == 1:
        raise Base64Error("Decoding failed: truncated input")

    standard = _translate(body, alphabet, STANDARD_ALPHABET)
    standard += "=" * (-len(standard) % 4)
    try:
        return base64.b64decode(standard, validate=True)
    except binascii.Error as e:
        raise Base64Error(f"Decoding failed: {e}") from e


def detect_mime_type(data: bytes) -> str:
    """Sniff PNG/JPEG/GIF/PDF magic numbers, then printable text."""
    if len(data) >= 4:
        for magic, mime_type in _MAGIC_NUMBERS:
            if data.startswith(magic):
                return mime_type

    if all(byte in _TEXT_BYTES for byte in data[:1024]):
        return "text/plain"
    return "application/octet-stream"


def generate_formats(encoded: str, mime_type: str) -> dict[str, str]:
    """Copy-ready snippets for an encoded payload."""
    data_uri = f"data:{mime_type};base64,{encoded}"
    formats = {
        "raw": encoded,
        "data_uri": data_uri,
    }

    if mime_type.startswith("image/"):
        formats["html_img"] = f'<img src="{data_uri}" alt="Base64 Image" />'
        formats["css_background"] = f"background-image: url('{data_uri}');"
        formats["markdown"] = f"![Base64 Image]({data_uri})"

    if mime_type.startswith("text/"):
        formats["html_embed"] = f'<embed src="{data_uri}" type="{mime_type}" />'

    return formats


def encode_bytes(
    data: bytes,
    mime_type: Optional[str] = None,
    options: Optional[Base64Options] = None,
) -> ProcessingResult:
    """Encode bytes; MIME type is sniffed when not given."""
    mime_type = mime_type or detect_mime_type(data)
    encoded = b64_encode(data, options)
    return ProcessingResult(
        id=_new_id(),
        base64=encoded,
        mime_type=mime_type,
        size=len(data),
        is_image=mime_type.startswith("image/"),
        formats=generate_formats(encoded.replace("\n", ""), mime_type),
    )


def encode_text(text: str, options: Optional[Base64Options] = None) -> ProcessingResult:
    """
    Encode text as UTF-8.

    Example:
        >>> encode_text("Hello").base64
        'SGVsbG8='
    """
    try:
        data = text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise Base64Error(f"Encoding failed: {e}") from e
    return encode_bytes(data, "text/plain", options)


def encode_file(path: Union[str, os.PathLike], options: Optional[Base64Options] = None) -> ProcessingResult:
    """
    Encode a file's contents.

    The MIME type comes from the file extension, falling back to sniffing.

    Raises:
        Base64Error: If the file cannot be read
    """
    try:
        with open(path, "rb") as file_obj:
            data = file_obj.read()
    except OSError as e:
        logger.warning(f"Failed to read {path}: {e}")
        raise Base64Error("File reading failed") from e

    mime_type, _ = mimetypes.guess_type(os.fspath(path))
    return encode_bytes(data, mime_type, options)


def decode(text: str, options: Optional[Base64Options] = None) -> ProcessingResult:
    """
    Decode Base64 text.

    Returns:
        ProcessingResult with ``data``; ``text`` is set for text/* payloads

    Raises:
        Base64Error: If the input is not valid Base64
    """
    data = b64_decode(text, options)
    mime_type = detect_mime_type(data)
    decoded_text = None
    if mime_type.startswith("text/"):
        decoded_text = data.decode("utf-8", errors="replace")

    return ProcessingResult(
        id=_new_id(),
        data=data,
        text=decoded_text,
        mime_type=mime_type,
        size=len(data),
        is_image=mime_type.startswith("image/"),
    )


def is_valid_base64(text: str, alphabet: str = "standard") -> bool:
    try:
        b64_decode(text, Base64Options(alphabet=alphabet))
    except Base64Error:
        return False
    return bool(text.strip())


@dataclass(slots=True)
class QueueItem:
    """A file waiting in (or finished by) the batch processor."""

    id: str
    path: str
    size: int
    status: str = "pending"  # pending, processing, completed, error
    progress: float = 0.0
    result: Optional[ProcessingResult] = None
    error: Optional[str] = None


class BatchProcessor:
    """Encodes queued files, a bounded number at a time."""

    def __init__(
        self,
        options: Optional[Base64Options] = None,
        max_file_size: int = Config.BATCH_MAX_FILE_SIZE,
        max_concurrent: int = Config.BATCH_MAX_CONCURRENT,
    ):
        self.options = options or Base64Options(chunked=True)
        self.max_file_size = max_file_size
        self.max_concurrent = max_concurrent
        self._queue: list[QueueItem] = []

    def add_files(self, paths: list[Union[str, os.PathLike]]) -> list[str]:
        """
        Queue files for encoding.

        Files over the size limit (or that cannot be stat'ed) are skipped
        with a warning.

        Returns:
            IDs of the queued items
        """
        ids = []
        for path in paths:
            path = os.fspath(path)
            try:
                size = os.path.getsize(path)
            except OSError as e:
                logger.warning(f"Skipping {path}: {e}")
                continue

            if size > self.max_file_size:
                logger.warning(f"File {path} exceeds {self.max_file_size // (1024 * 1024)}MB limit")
                continue

            item = QueueItem(id=_new_id(), path=path, size=size)
            self._queue.append(item)
            ids.append(item.id)
        return ids

    def process(self) -> list[QueueItem]:
        """Encode every pending item and return the queue."""
        pending = [item for item in self._queue if item.status == "pending"]
        if pending:
            with ThreadPoolExecutor(max_workers=self.max_concurrent) as executor:
                list(executor.map(self._process_item, pending))
        return self.get_queue_status()

    def _process_item(self, item: QueueItem) -> None:
        item.status = "processing"
        try:
            item.result = encode_file(item.path, self.options)
        except Base64Error as e:
            item.status = "error"
            item.error = str(e)
            return
        item.status = "completed"
        item.progress = 1.0

    def get_queue_status(self) -> list[QueueItem]:
        return list(self._queue)

    def remove_item(self, item_id: str) -> None:
        self._queue = [item for item in self._queue if item.id != item_id]

    def clear_completed(self) -> None:
        """Drop finished items (completed or failed)."""
        self._queue = [item for item in self._queue if item.status not in ("completed", "error")]

    def clear_all(self) -> None:
        self._queue = []


def _export_json(items: list[ProcessingResult]) -> str:
    return json.dumps(
        [
            {
                "mime_type": item.mime_type,
                "size": item.size,
                "base64": item.base64,
                "is_image": item.is_image,
            }
            for item in items
        ],
        indent=2,
    )


def _export_html(items: list[ProcessingResult]) -> str:
    content = "\n".join(
        f"""<div class="base64-item">
    <h3>Image ({item.mime_type})</h3>
    <img src="data:{item.mime_type};base64,{item.base64}" alt="Base64 Image" style="max-width: 300px;" />
    <details>
      <summary>Base64 Data</summary>
      <pre>{item.base64}</pre>
    </details>
  </div>"""
        for item in items
        if item.is_image
    )
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>Base64 Export</title>
  <style>
    .base64-item {{ margin: 20px 0; padding: 20px; border: 1px solid #ccc; }}
    pre {{ background: #f5f5f5; padding: 10px; overflow-x: auto; }}
  </style>
</head>
<body>
  <h1>Base64 Export Results</h1>
  {content}
</body>
</html>"""


def _export_css(items: list[ProcessingResult]) -> str:
    images = [item for item in items if item.is_image]
    return "\n\n".join(
        f""".base64-image-{index} {{
  background-image: url('data:{item.mime_type};base64,{item.base64}');
  background-size: cover;
  background-repeat: no-repeat;
}}"""
        for index, item in enumerate(images, start=1)
    )


EXPORT_TEMPLATES: dict[str, Callable[[list[ProcessingResult]], str]] = {
    "json": _export_json,
    "html": _export_html,
    "css": _export_css,
}
