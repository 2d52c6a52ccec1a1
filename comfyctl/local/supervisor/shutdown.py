import time
import psutil
import logging

from comfyctl.settings import APP_NAME
from comfyctl.local.supervisor.process_utils import is_alive

log = logging.getLogger(__name__)

KILL_WAIT_TIMEOUT = 1.0


def _send(pid: int, force: bool) -> None:
    """Sends SIGTERM (or SIGKILL with `force`) to a process, ignoring ones that are already gone."""
    try:
        proc = psutil.Process(pid)
        if force:
            proc.kill()
        else:
            proc.terminate()
    except psutil.NoSuchProcess:
        log.debug(f"Process {pid} no longer exists, skipping signal.")
    except psutil.AccessDenied:
        log.warning(f"Not permitted to signal process {pid}.")


def _wait_for_exit(pid: int, timeout: float) -> bool:
    end = time.monotonic() + timeout
    while time.monotonic() < end and is_alive(pid):
        time.sleep(0.05)
    return not is_alive(pid)


def graceful_shutdown_sequence(pid: int, timeout: float) -> bool:
    """
    Terminates a process, escalating to a kill if it outlives the grace period.

    :param pid: The process to stop.
    :param timeout: Seconds to wait after SIGTERM before sending SIGKILL.
    :return: True if the process is gone afterwards.
    """
    log.info(f"Stopping {APP_NAME} (PID={pid})")
    _send(pid, force=False)
    if _wait_for_exit(pid, timeout):
        return True

    log.info(f"Force stopping {APP_NAME} (PID={pid})")
    _send(pid, force=True)
    return _wait_for_exit(pid, KILL_WAIT_TIMEOUT)
