"""Shared fixtures for calexpr tests."""

import os
from datetime import datetime, timezone

import pytest

from calexpr.infrastructure.config import reset_config
from calexpr.infrastructure.logging import reset_logging


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep CALEXPR_* variables and global state from leaking between tests."""
    for key in list(os.environ):
        if key.startswith("CALEXPR_"):
            monkeypatch.delenv(key)
    reset_config()
    reset_logging()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def utc():
    """Build an aware UTC datetime."""

    def _utc(*args: int) -> datetime:
        return datetime(*args, tzinfo=timezone.utc)

    return _utc
