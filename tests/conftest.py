from __future__ import annotations

import pytest

from bench_history.cli import COMMIT_ENV_VAR
from bench_history.config import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CI-provided settings from leaking into tests."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv(COMMIT_ENV_VAR, raising=False)
