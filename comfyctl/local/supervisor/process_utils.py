import sys
import time
import psutil
import logging
import subprocess
from typing import Any, Dict, List, Optional

from comfyctl.local.config import Settings
from comfyctl.local.exceptions import CommandError
from comfyctl.local.external import commands

log = logging.getLogger(__name__)


#* --- Process Status & Monitoring ---
def is_alive(pid: Optional[int]) -> bool:
    """
    The liveness probe: True if `pid` names an existing process that can still be signalled.
    Exited-but-unreaped (zombie) processes count as dead.
    """
    if not isinstance(pid, int) or pid <= 0:
        return False
    if not psutil.pid_exists(pid):
        return False
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        # The process exists but belongs to someone else; it is still alive.
        return True


def process_stats(pid: int) -> Optional[Dict[str, Any]]:
    """
    Collects resource usage for a running process.

    :param pid: The process ID.
    :return: A dict with cpu, memory and uptime figures, or None if unavailable.
    """
    try:
        p = psutil.Process(pid)
        return {
            "name": p.name(),
            "cpu_percent": p.cpu_percent(interval=0.1),
            "memory_mb": p.memory_info().rss / 1024 / 1024,
            "uptime_seconds": max(0.0, time.time() - p.create_time()),
        }
    except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
        return None


#* --- Process Creation ---
def _get_popen_creation_flags() -> Dict[str, Any]:
    """Returns platform-specific flags that detach the child from our terminal."""
    if sys.platform == "win32":
        return {"creationflags": subprocess.DETACHED_PROCESS | subprocess.CREATE_NEW_PROCESS_GROUP}
    return {"start_new_session": True}


def get_process_args(settings: Settings) -> List[str]:
    """Returns the command line that runs the ComfyUI server."""
    return [
        str(settings.venv_python),
        settings.entry_script.name,
        "--listen", settings.host,
        "--port", str(settings.port),
    ]


def launch_process(settings: Settings) -> int:
    """
    Starts the server detached from this process, appending its output to the log file.

    :param settings: The resolved settings.
    :return: The PID of the new process.
    :raises CommandError: If the server cannot be spawned.
    """
    args = get_process_args(settings)
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)
    log.debug(f"Launching: {' '.join(args)} (cwd={settings.comfy_dir})")

    with settings.log_file.open("ab", buffering=0) as log_handle:
        # The child keeps its own descriptor once spawned.
        try:
            p = subprocess.Popen(
                args,
                cwd=str(settings.comfy_dir),
                env=commands.child_environment(settings, use_venv=True),
                stdin=subprocess.DEVNULL,
                stdout=log_handle,
                stderr=subprocess.STDOUT,
                close_fds=True,
                **_get_popen_creation_flags(),
            )
        except OSError as e:
            raise CommandError(args, None, str(e)) from e
    return p.pid
