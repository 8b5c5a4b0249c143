"""Tests for the :mod:`awkts.__main__` entrypoint."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from awkts.__main__ import main


def test_main_invokes_cli(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("AWKTS_LOG_LEVEL", "error")
    monkeypatch.delenv("AWKTS_LOG_DIR", raising=False)
    monkeypatch.setattr(sys, "argv", ["awkts", "features", "--level", "1"])

    configured: dict[str, object] = {}

    def fake_configure_logging(*, level: str, log_dir=None, console=None) -> None:
        configured["level"] = level
        configured["log_dir"] = log_dir

    monkeypatch.setattr("awkts.cli.configure_logging", fake_configure_logging)

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 0
    assert configured == {"level": "ERROR", "log_dir": None}
    assert "  - comment (level 1): enabled" in capsys.readouterr().out
