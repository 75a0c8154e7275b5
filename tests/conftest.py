"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest
import structlog

from testscope.config import get_settings

if TYPE_CHECKING:
    from collections.abc import Generator

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from TESTSCOPE_* variables and the settings cache."""
    for name in list(os.environ):
        if name.startswith("TESTSCOPE_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop logging configuration (and any captured stream) after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def sample_report_path() -> Path:
    """Path to the sample Playwright report fixture."""
    return FIXTURES_DIR / "playwright_report.json"


@pytest.fixture
def sample_report(sample_report_path: Path) -> dict[str, Any]:
    """Sample report decoded as a dict."""
    return json.loads(sample_report_path.read_text(encoding="utf-8"))
