"""
Local key/value storage.

Remembers each tool's last inputs and settings in a single JSON object file.
"""

from __future__ import annotations

import json
import logging
import os
import pathlib
import tempfile
from typing import Any, Optional

from encodly.config import Config, get_config

logger = logging.getLogger(__name__)

# Keys used by the tools
HASH_INPUT = "hash-generator-input"
HASH_ALGORITHM = "hash-generator-algorithm"
JWT_DECODER_TOKEN = "jwt-decoder-token"
JWT_ENCODER_SECRET = "jwt-encoder-secret"
JWT_ENCODER_ALGORITHM = "jwt-encoder-algorithm"
UUID_VERSION = "uuid-generator-version"
QR_OPTIONS = "qr-generator-options"
URL_INPUT = "url-converter-input"
URL_AUTO_CONVERT = "url-converter-auto-convert"
BASE64_ALPHABET = "base64-converter-alphabet"

STORAGE_KEYS = (
    HASH_INPUT,
    HASH_ALGORITHM,
    JWT_DECODER_TOKEN,
    JWT_ENCODER_SECRET,
    JWT_ENCODER_ALGORITHM,
    UUID_VERSION,
    QR_OPTIONS,
    URL_INPUT,
    URL_AUTO_CONVERT,
    BASE64_ALPHABET,
)


class LocalStorage:
    """JSON-file backed storage.

    Reads never fail: a missing, unreadable or corrupt file reads as empty.
    Writes replace the file atomically and re-raise on failure.
    """

    def __init__(self, path: Optional[str] = None, config: type[Config] | None = None):
        config = config or get_config()
        self.path = pathlib.Path(path or config.STORAGE_PATH)

    def _load(self) -> dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as file_obj:
                data = json.load(file_obj)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load saved data from {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring saved data in {self.path}: not a JSON object")
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=str(self.path.parent), delete=False, suffix=".tmp"
            ) as tmp:
                json.dump(data, tmp, indent=2, ensure_ascii=False)
                tmp.flush()
                os.fsync(tmp.fileno())
                name = tmp.name
            os.replace(name, self.path)
        except OSError as e:
            logger.warning(f"Failed to save data to {self.path}: {e}")
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        self._save({})

    def items(self) -> dict[str, Any]:
        return self._load()
