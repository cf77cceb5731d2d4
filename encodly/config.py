"""
Encodly Configuration.

Environment-driven settings for logging, local storage and tool limits.
"""

from __future__ import annotations

import os
import tempfile


class Config:
    """Base configuration."""

    DEBUG = os.getenv("ENCODLY_DEBUG", "false").lower() == "true"

    # Logging
    LOG_LEVEL = os.getenv("ENCODLY_LOG_LEVEL", "WARNING")
    LOG_FORMAT = os.getenv(
        "ENCODLY_LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Local storage (last-used inputs and settings per tool)
    STORAGE_PATH = os.getenv(
        "ENCODLY_STORAGE_PATH",
        os.path.join(os.path.expanduser("~"), ".encodly", "storage.json"),
    )

    # Hash generator
    HASH_WORKERS = int(os.getenv("ENCODLY_HASH_WORKERS", "4"))
    HASH_FILE_CHUNK_SIZE = 64 * 1024

    # QR generator
    QR_DEFAULT_SIZE = int(os.getenv("ENCODLY_QR_SIZE", "256"))
    QR_SUPERSAMPLE = int(os.getenv("ENCODLY_QR_SUPERSAMPLE", "4"))
    QR_MAX_INPUT_LENGTH = 2000
    QR_BRANDING_TEXT = "Generated by Encodly"

    # UUID generator
    UUID_MAX_BULK_COUNT = int(os.getenv("ENCODLY_UUID_MAX_BULK", "10000"))

    # Base64 batch processing
    BATCH_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
    BATCH_MAX_CONCURRENT = int(os.getenv("ENCODLY_BATCH_CONCURRENCY", "3"))


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DEBUG = True
    LOG_LEVEL = "DEBUG"

    STORAGE_PATH = os.path.join(tempfile.gettempdir(), "encodly-test-storage.json")

    # Pixel-exact rendering in tests
    QR_SUPERSAMPLE = 1


def get_config() -> type[Config]:
    """Get configuration based on environment."""
    env = os.getenv("ENCODLY_ENV", "production").lower()
    config_map = {
        "development": DevelopmentConfig,
        "production": Config,
        "testing": TestingConfig,
    }
    return config_map.get(env, Config)
