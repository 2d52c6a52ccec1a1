import logging
from typing import TYPE_CHECKING

from comfyctl.settings import APP_NAME
from comfyctl.local.supervisor import process_utils

if TYPE_CHECKING:
    from .supervisor import ProcessManager

log = logging.getLogger(__name__)


def ensure_dirs(manager: "ProcessManager") -> None:
    """Creates the base, log and tmp directories (and the log file's parent) if needed."""
    settings = manager.settings
    for directory in (settings.base_dir, settings.log_dir, settings.tmp_dir, settings.log_file.parent):
        directory.mkdir(parents=True, exist_ok=True)


def setup_initial_environment(manager: "ProcessManager") -> None:
    """
    Prepares everything the server needs: directories, checkout and virtual environment.

    :param manager: The ProcessManager instance.
    """
    ensure_dirs(manager)
    manager.dependency_manager.ensure_git_clone()
    manager.dependency_manager.ensure_venv()
    manager.dependency_manager.describe_environment()


def check_if_already_running(manager: "ProcessManager") -> bool:
    """
    Checks if the server is already running based on the PID file.

    :param manager: The ProcessManager instance.
    :return: True if already running, False otherwise.
    """
    pid = manager.get_running_pid()
    if pid is not None:
        log.info(f"{APP_NAME} already running (PID={pid}). Use: restart")
        return True
    return False


def start_server(manager: "ProcessManager") -> int:
    """
    Launches the server and records its PID.

    :param manager: The ProcessManager instance.
    :return: The new PID.
    """
    settings = manager.settings
    log.info(f"Starting {APP_NAME} on {settings.host}:{settings.port}")
    log.info(f"Logs: {settings.log_file}")

    pid = process_utils.launch_process(settings)
    manager.pid_file.write(pid)
    log.info(f"Started. PID={pid}")
    return pid
