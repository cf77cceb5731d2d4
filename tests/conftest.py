"""Pytest configuration and fixtures for encodly tests."""

from __future__ import annotations

import os

import pytest

# Set testing environment before encodly reads its configuration
os.environ["ENCODLY_ENV"] = "testing"


@pytest.fixture
def storage_path(tmp_path, monkeypatch):
    """Point the testing configuration at a throwaway storage file."""
    from encodly.config import TestingConfig

    path = tmp_path / "storage.json"
    monkeypatch.setattr(TestingConfig, "STORAGE_PATH", str(path))
    return path


@pytest.fixture
def canonical_jwt():
    """The widely published HS256 example token and its inputs."""
    return {
        "header": {"alg": "HS256", "typ": "JWT"},
        "payload": {"sub": "1234567890", "name": "John Doe", "iat": 1516239022},
        "secret": "your-256-bit-secret",
        "token": (
            "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9"
            ".eyJzdWIiOiIxMjM0NTY3ODkwIiwibmFtZSI6IkpvaG4gRG9lIiwiaWF0IjoxNTE2MjM5MDIyfQ"
            ".SflKxwRJSMeKKF2QT4fwpMeJf36POk6yJV_adQssw5c"
        ),
    }
