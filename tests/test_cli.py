from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

from comfyctl import main as cli
from comfyctl.local.console import handler
from comfyctl.local.config import Settings
from comfyctl.local.external import commands


@pytest.fixture
def cli_env(base_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("BASE_DIR", str(base_dir))
    monkeypatch.setattr(commands, "require_tools", lambda tools: None)
    return base_dir


@pytest.mark.basic
@pytest.mark.parametrize("argv", [[], ["-h"], ["--help"], ["help"]])
def test_help_prints_usage(argv: List[str], capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(argv) == 0
    out = capsys.readouterr().out
    assert "Usage:" in out
    assert "restart" in out and "BASE_DIR" in out


@pytest.mark.basic
def test_unknown_command_fails_without_side_effects(
    base_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("BASE_DIR", str(base_dir))

    assert cli.main(["frobnicate"]) == 1
    err = capsys.readouterr().err
    assert "[comfyui][ERROR] Unknown command: frobnicate" in err
    assert not base_dir.exists()


@pytest.mark.basic
@pytest.mark.parametrize("command", ["install", "update", "start", "stop", "restart", "status", "logs"])
def test_missing_tool_short_circuits_before_any_mutation(
    command: str, base_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("BASE_DIR", str(base_dir))
    monkeypatch.setenv("PYTHON_BIN", "definitely-not-a-python-binary")

    def _must_not_run(*args, **kwargs):
        raise AssertionError("no external command may run")

    monkeypatch.setattr(commands, "run_command", _must_not_run)

    assert cli.main([command]) == 1
    err = capsys.readouterr().err
    assert "Missing required command:" in err
    assert not base_dir.exists()


@pytest.mark.basic
def test_invalid_port_is_reported(cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.setenv("PORT", "eighty")
    assert cli.main(["status"]) == 1
    assert "PORT must be an integer" in capsys.readouterr().err


@pytest.mark.basic
def test_stop_with_nothing_running(cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["stop"]) == 0
    assert "Nothing to stop" in capsys.readouterr().out


@pytest.mark.basic
def test_status_when_stopped(cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["status"]) == 0
    assert "[comfyui] ComfyUI is NOT running." in capsys.readouterr().out


@pytest.mark.basic
def test_failed_update_exits_nonzero(
    cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    from comfyctl.local.exceptions import CommandError

    def _run(args, name, cwd=None, env=None):
        if list(args)[:2] == ["git", "pull"]:
            raise CommandError(args, 1)
        if list(args)[:2] == ["git", "clone"]:
            (Path(args[-1]) / ".git").mkdir(parents=True)

    monkeypatch.setattr(commands, "run_command", _run)

    assert cli.main(["update"]) == 1
    assert "Command 'git pull --rebase' failed with exit code 1" in capsys.readouterr().err


@pytest.mark.basic
def test_logs_touches_file_and_ends_cleanly_on_interrupt(
    cli_env: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    followed = []

    def _follow(path, *args, **kwargs):
        followed.append(path)
        raise KeyboardInterrupt

    monkeypatch.setattr(handler, "follow_log", _follow)

    assert cli.main(["logs"]) == 0
    log_file = cli_env / "logs" / "comfyui.log"
    assert followed == [log_file]
    assert log_file.exists()
    assert "Tailing logs:" in capsys.readouterr().out


@pytest.mark.integration
@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell venv shim")
def test_start_then_status_reports_port(
    cli_env: Path, fake_install, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], command_log: List[List[str]]
) -> None:
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("HOST", "127.0.0.1")

    try:
        assert cli.main(["start"]) == 0
        out = capsys.readouterr().out
        pid = fake_install.pid_file.read_text().strip()
        assert f"Started. PID={pid}" in out

        assert cli.main(["status"]) == 0
        out = capsys.readouterr().out
        assert "RUNNING" in out
        assert f"PID={pid}" in out
        assert "PORT=9000" in out
    finally:
        assert cli.main(["stop"]) == 0

    assert not fake_install.pid_file.exists()


@pytest.mark.basic
def test_commands_are_case_sensitive(cli_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["STATUS"]) == 1
    assert "[comfyui][ERROR] Unknown command: STATUS" in capsys.readouterr().err


@pytest.mark.basic
def test_start_with_empty_venv_reports_error(
    cli_env: Path, fake_install: Settings, capsys: pytest.CaptureFixture[str], command_log: List[List[str]]
) -> None:
    fake_install.venv_python.unlink()

    assert cli.main(["start"]) == 1
    err = capsys.readouterr().err
    assert f"[comfyui][ERROR] Could not run '{fake_install.venv_python} main.py" in err
    assert "Traceback" not in err
    assert not fake_install.pid_file.exists()


@pytest.mark.integration
@pytest.mark.skipif(sys.platform == "win32", reason="uses a POSIX shell venv shim")
def test_start_with_relative_base_dir(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
    command_log: List[List[str]],
    install_layout,
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BASE_DIR", "ws")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setattr(commands, "require_tools", lambda tools: None)
    settings = Settings.from_env()
    install_layout(settings)

    try:
        assert cli.main(["start"]) == 0
        pid = settings.pid_file.read_text().strip()
        assert f"Started. PID={pid}" in capsys.readouterr().out
        assert settings.pid_file == tmp_path / "ws" / "comfyui.pid"
    finally:
        assert cli.main(["stop"]) == 0

    assert not settings.pid_file.exists()
