import os
import shutil
import logging
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from comfyctl.local.config import Settings
from comfyctl.local.exceptions import CommandError, MissingToolError
from comfyctl.settings import REQUIRED_TOOLS, TEMP_ENV_VARS

log = logging.getLogger(__name__)


#* --- Prerequisites ---
def require_tools(tools: Iterable[str]) -> None:
    """
    Verifies that every tool can be resolved on PATH.

    :param tools: Command names (or paths) to look up.
    :raises MissingToolError: On the first tool that cannot be found.
    """
    for tool in tools:
        if shutil.which(tool) is None:
            raise MissingToolError(tool)
        log.debug(f"Found required command: {tool}")


def required_tools(settings: Settings) -> List[str]:
    """Returns the external commands every real command depends on."""
    return [*REQUIRED_TOOLS, settings.python_bin]


#* --- Child environment ---
def child_environment(settings: Settings, use_venv: bool = False, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """
    Builds the environment for a child process.

    Temp-file variables always point at the configured tmp directory. With
    `use_venv`, the virtual environment is activated the way its `activate`
    script would do it.

    :param settings: The resolved settings.
    :param use_venv: Whether the child should run inside the virtual environment.
    :param base: The environment to start from (defaults to os.environ).
    :return: A new environment dictionary.
    """
    env = dict(os.environ if base is None else base)
    for key in TEMP_ENV_VARS:
        env[key] = str(settings.tmp_dir)

    if use_venv:
        env["VIRTUAL_ENV"] = str(settings.venv_dir)
        env["PATH"] = os.pathsep.join(p for p in (str(settings.venv_bin_dir), env.get("PATH", "")) if p)
        env.pop("PYTHONHOME", None)
    return env


#* --- Command execution ---
def run_command(args: Sequence[str], name: str, cwd: Optional[Path] = None, env: Optional[Mapping[str, str]] = None) -> None:
    """
    Runs an external command in the foreground, relaying its output line by line.

    Output is logged through the `proc.<name>` logger, which the console
    formatter prints verbatim.

    :param args: The argv to execute.
    :param name: Short label for the output logger (e.g. 'git', 'pip').
    :param cwd: Working directory for the command.
    :param env: Environment for the command.
    :raises CommandError: If the command cannot be started or exits non-zero.
    """
    argv = [str(a) for a in args]
    proc_logger = logging.getLogger(f"proc.{name}")
    log.debug(f"Running: {' '.join(argv)} (cwd={cwd})")

    try:
        process = subprocess.Popen(
            argv,
            cwd=str(cwd) if cwd else None,
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
        )
    except OSError as e:
        raise CommandError(argv, None, str(e)) from e

    with process.stdout:
        for line_bytes in iter(process.stdout.readline, b""):
            line = line_bytes.decode("utf-8", errors="replace").rstrip()
            if line:
                proc_logger.info(line)

    returncode = process.wait()
    if returncode != 0:
        raise CommandError(argv, returncode)
