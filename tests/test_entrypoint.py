"""Smoke tests for the PanelKit entrypoint module."""

from __future__ import annotations

import builtins
import importlib.util
import io
import json
import sys
import types
from contextlib import redirect_stdout
from pathlib import Path

import pytest


def load_entrypoint_module():
    """Load the project entrypoint module without running it as ``__main__``."""

    module_path = Path(__file__).resolve().parents[1] / "__main__.py"
    spec = importlib.util.spec_from_file_location("panelkit_entry", module_path)
    module = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(module)
    return module


@pytest.fixture()
def entry_module():
    return load_entrypoint_module()


@pytest.fixture()
def logger_document(tmp_path):
    document = {
        "nodes": [{"path": "Plant/Oven/Temperature", "type": "Double"}],
        "logger": {
            "name": "OvenLogger",
            "sampling_period_ms": 1000,
            "store": {"name": "OvenDb", "filename": "oven"},
            "variables": [
                {"name": "Temperature", "type": "BaseDataType", "link": "Plant/Oven/Temperature"},
                {"name": "Recipe", "type": "String"},
            ],
        },
    }
    path = tmp_path / "oven.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


def run_main(entry_module, argv):
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        exit_code = entry_module.main(argv)
    return exit_code, buffer.getvalue()


def test_parse_arguments_defaults(entry_module):
    args = entry_module.parse_arguments([])

    assert not args.check_deps
    assert args.estimate_space is None
    assert args.app_dir == "."


def test_check_dependencies_reports_missing_required(entry_module, monkeypatch):
    """check_dependencies should fail gracefully when PySide6 is unavailable."""

    real_import = builtins.__import__

    def fake_import(name, globals=None, locals=None, fromlist=(), level=0):  # noqa: D401
        if name.startswith("PySide6"):
            raise ImportError("No module named PySide6")
        return real_import(name, globals, locals, fromlist, level)

    monkeypatch.setattr(builtins, "__import__", fake_import)

    buffer = io.StringIO()
    with redirect_stdout(buffer):
        result = entry_module.check_dependencies()

    output = buffer.getvalue()
    assert result is False
    assert "Missing required dependencies" in output
    assert "PySide6" in output


def test_check_dependencies_succeeds_with_pyside(entry_module):
    pytest.importorskip("PySide6.QtWidgets")

    buffer = io.StringIO()
    with redirect_stdout(buffer):
        result = entry_module.check_dependencies()

    assert result is True
    assert "OK PySide6" in buffer.getvalue()


def test_main_reports_missing_dependencies(entry_module, monkeypatch, tmp_path):
    """The main function should exit early when dependencies are missing."""

    monkeypatch.setattr(entry_module, "check_dependencies", lambda: False)
    monkeypatch.setitem(sys.modules, "main", types.ModuleType("main"))

    exit_code, output = run_main(entry_module, ["--check-deps", "--log-dir", str(tmp_path / "logs")])

    assert exit_code == 1
    assert "Some dependencies are missing" in output


def test_main_refuses_to_start_without_dependencies(entry_module, monkeypatch, tmp_path):
    monkeypatch.setattr(entry_module, "check_dependencies", lambda: False)

    exit_code, output = run_main(entry_module, ["--log-dir", str(tmp_path / "logs")])

    assert exit_code == 1
    assert "Use --force" in output


def test_estimate_space_command(entry_module, logger_document, tmp_path):
    exit_code, output = run_main(
        entry_module,
        ["--estimate-space", str(logger_document), "--log-dir", str(tmp_path / "logs")],
    )

    assert exit_code == 0
    assert "Logger: OvenLogger" in output
    # Double + Timestamp + ID
    assert "Bytes per record: 43" in output
    assert "Per hour: 154800 bytes" in output
    assert "'Recipe' skipped" in output


def test_estimate_space_with_bad_document(entry_module, tmp_path):
    exit_code, output = run_main(
        entry_module,
        ["--estimate-space", str(tmp_path / "missing.json"), "--log-dir", str(tmp_path / "logs")],
    )

    assert exit_code == 1
    assert "ERROR Unable to read logger document" in output


def test_database_info_command(entry_module, logger_document, tmp_path):
    app_dir = tmp_path / "data"
    app_dir.mkdir()
    (app_dir / "oven.sqlite").write_bytes(b"\0" * 4096)
    (app_dir / "oven.sqlite-wal").write_bytes(b"")

    exit_code, output = run_main(
        entry_module,
        [
            "--database-info", str(logger_document),
            "--app-dir", str(app_dir),
            "--log-dir", str(tmp_path / "logs"),
        ],
    )

    assert exit_code == 0
    assert "Relative path: oven.sqlite" in output
    assert "Size: 4096 bytes (4 KB, 0 MB)" in output
    assert "In use: yes" in output


def test_database_info_without_file_reports_size_unavailable(entry_module, logger_document, tmp_path):
    exit_code, output = run_main(
        entry_module,
        [
            "--database-info", str(logger_document),
            "--app-dir", str(tmp_path / "empty"),
            "--log-dir", str(tmp_path / "logs"),
        ],
    )

    assert exit_code == 0
    assert "Size: unavailable" in output
    assert "In use: no" in output
