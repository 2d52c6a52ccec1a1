from __future__ import annotations

import os
import sys
import stat
from pathlib import Path
from typing import List

import psutil
import pytest

from comfyctl.settings import ENV_VARS
from comfyctl.local.config import Settings
from comfyctl.local.external import commands
from comfyctl.local.supervisor import ProcessManager

FAKE_SERVER = """\
import sys, time
print("fake server args:", " ".join(sys.argv[1:]), flush=True)
while True:
    time.sleep(0.1)
"""

STUBBORN_SERVER = """\
import signal, sys, time
signal.signal(signal.SIGTERM, signal.SIG_IGN)
print("ready", flush=True)
while True:
    time.sleep(0.1)
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    return tmp_path / "workspace"


@pytest.fixture
def settings(base_dir: Path) -> Settings:
    return Settings.from_env({"BASE_DIR": str(base_dir), "PORT": "9000", "HOST": "127.0.0.1"})


@pytest.fixture
def command_log(monkeypatch: pytest.MonkeyPatch) -> List[List[str]]:
    """Replaces the external command runner with a recorder that always succeeds."""
    calls: List[List[str]] = []

    def _record(args, name, cwd=None, env=None):
        calls.append([str(a) for a in args])

    monkeypatch.setattr(commands, "run_command", _record)
    return calls


def make_fake_install(settings: Settings, server_source: str = FAKE_SERVER) -> None:
    """Lays out a checkout with a `.git` marker and a venv whose python runs the test interpreter."""
    (settings.comfy_dir / ".git").mkdir(parents=True, exist_ok=True)
    settings.entry_script.write_text(server_source)
    settings.requirements_file.write_text("")

    settings.venv_bin_dir.mkdir(parents=True, exist_ok=True)
    python = settings.venv_python
    python.write_text(f'#!/bin/sh\nexec "{sys.executable}" "$@"\n')
    python.chmod(python.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def install_layout():
    """Returns the helper that lays out a fake checkout and venv for a given Settings."""
    return make_fake_install


@pytest.fixture
def fake_install(settings: Settings) -> Settings:
    make_fake_install(settings)
    return settings


def _kill_recorded(settings: Settings) -> None:
    try:
        pid = int(settings.pid_file.read_text().strip())
    except (OSError, ValueError):
        return
    if pid > 0 and pid != os.getpid():
        try:
            psutil.Process(pid).kill()
        except psutil.Error:
            pass


@pytest.fixture
def manager(fake_install: Settings, command_log: List[List[str]]):
    mgr = ProcessManager(fake_install, shutdown_timeout=1.0)
    yield mgr
    _kill_recorded(fake_install)


@pytest.fixture
def stubborn_manager(settings: Settings, command_log: List[List[str]]):
    """A manager whose server ignores SIGTERM and prints 'ready' once that is in place."""
    make_fake_install(settings, STUBBORN_SERVER)
    mgr = ProcessManager(settings, shutdown_timeout=0.5)
    yield mgr
    _kill_recorded(settings)
