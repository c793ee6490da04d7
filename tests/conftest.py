"""Shared pytest fixtures."""

from __future__ import annotations

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every BROKENLINKS_* variable from the process environment."""
    import os

    for name in list(os.environ):
        if name.startswith("BROKENLINKS_"):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch
