"""Shared fixtures for PanelKit tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import logger as panel_logger


@pytest.fixture(autouse=True)
def isolated_logger(tmp_path, monkeypatch):
    """Route the global logger into the test's temporary directory."""
    log_dir = tmp_path / "logs"
    monkeypatch.setenv(panel_logger.LOG_DIR_ENV, str(log_dir))
    instance = panel_logger.setup_logger(log_dir=log_dir)
    yield instance
    instance.close()


@pytest.fixture()
def read_log(isolated_logger):
    """Return a callable giving the main log file contents so far."""

    def _read() -> str:
        for handler in isolated_logger.logger.handlers:
            handler.flush()
        log_file = isolated_logger.log_dir / f"{isolated_logger.name}.log"
        return log_file.read_text(encoding="utf-8")

    return _read
