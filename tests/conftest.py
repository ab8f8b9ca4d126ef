"""Pytest configuration for test isolation.

The import workflow reads ``BTC_RECONCILE_AUTO_THRESHOLD`` and the logging
setup reads ``BTC_RECONCILE_LOG_LEVEL``. A developer shell that exports
either would change classification outcomes, so an autouse fixture clears
both for every test. Tests that exercise the overrides set them explicitly
through ``monkeypatch``.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `btc_reconcile` is importable
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BTC_RECONCILE_AUTO_THRESHOLD", raising=False)
    monkeypatch.delenv("BTC_RECONCILE_LOG_LEVEL", raising=False)
