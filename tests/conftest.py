"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest


@pytest.fixture(autouse=True)
def reset_davsync_logger() -> Generator[None, None, None]:
    """Undo the CLI logging setup so caplog sees davsync records."""
    yield
    davsync_logger = logging.getLogger("davsync")
    davsync_logger.handlers.clear()
    davsync_logger.setLevel(logging.NOTSET)
    davsync_logger.propagate = True
