"""Shared test fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    """Skip throttles, rate limits and retry backoff."""
    monkeypatch.setattr("time.sleep", lambda _seconds: None)
