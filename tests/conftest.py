"""Global pytest fixtures for deterministic test environment."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_runtime_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear local runtime env that can leak into tests on developer machines."""
    for key in list(os.environ):
        if key.startswith("CAREEROS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
