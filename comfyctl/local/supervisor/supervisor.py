import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from comfyctl.settings import APP_NAME, GRACEFUL_SHUTDOWN_TIMEOUT
from comfyctl.local.config import Settings
from comfyctl.local.external import DependencyManager
from comfyctl.local.supervisor import persistence, process_utils, shutdown, startup

log = logging.getLogger(__name__)


class ProcessState(enum.Enum):
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


@dataclass(frozen=True)
class StatusReport:
    state: ProcessState
    pid: Optional[int]
    port: int
    comfy_dir: str
    stats: Optional[Dict[str, Any]] = None

    @property
    def running(self) -> bool:
        return self.state is ProcessState.RUNNING


class ProcessManager:
    """
    Manages the lifecycle of the ComfyUI server process.

    The PID file is the only record of the managed process and every liveness
    decision goes through `get_running_pid`, which probes the recorded PID
    instead of trusting the file.
    """

    def __init__(self, settings: Settings, dependency_manager: Optional[DependencyManager] = None,
                 shutdown_timeout: float = GRACEFUL_SHUTDOWN_TIMEOUT) -> None:
        """Initializes the ProcessManager state."""
        self.settings = settings
        self.pid_file = persistence.PidFile(settings.pid_file)
        self.dependency_manager = dependency_manager or DependencyManager(settings)
        self.shutdown_timeout = shutdown_timeout

    def get_running_pid(self) -> Optional[int]:
        """
        Returns the PID of the managed process if it is alive.

        :return: The live PID, or None when the file is missing, malformed or stale.
        """
        pid = self.pid_file.read()
        if pid is not None and process_utils.is_alive(pid):
            return pid
        return None

    def state(self) -> ProcessState:
        return ProcessState.RUNNING if self.get_running_pid() is not None else ProcessState.STOPPED

    def install(self) -> None:
        """Clones the checkout and creates the venv when missing, then installs the requirements."""
        startup.setup_initial_environment(self)
        self.dependency_manager.install_requirements()
        log.info("Install complete.")

    def update(self) -> None:
        """Pulls the latest upstream changes (cloning first if needed)."""
        self.dependency_manager.update_checkout()

    def start(self) -> int:
        """
        Prepares the environment and starts the server in the background.

        :return: The PID of the running server (the existing one if already running).
        """
        startup.setup_initial_environment(self)

        if startup.check_if_already_running(self):
            return self.get_running_pid()

        return startup.start_server(self)

    def stop(self) -> bool:
        """
        Stops the server using the PID file. Always leaves the system STOPPED.

        The PID file is removed whether or not the recorded process was alive
        or could be signalled.

        :return: True if a live process was signalled, False otherwise.
        """
        if not self.pid_file.exists():
            log.info("No PID file found. Nothing to stop.")
            return False

        pid = self.get_running_pid()
        signalled = False
        if pid is not None:
            signalled = True
            if not shutdown.graceful_shutdown_sequence(pid, self.shutdown_timeout):
                log.warning(f"{APP_NAME} (PID={pid}) may still be running.")
        else:
            log.debug(f"PID file '{self.pid_file.path}' is stale; removing it.")

        self.pid_file.delete()
        return signalled

    def restart(self) -> int:
        self.stop()
        return self.start()

    def status(self, with_stats: bool = True) -> StatusReport:
        """
        Reports whether the server is running, with its PID, port and directory.

        :param with_stats: Include CPU/memory/uptime figures for a running server.
        """
        pid = self.get_running_pid()
        if pid is None:
            return StatusReport(ProcessState.STOPPED, None, self.settings.port, str(self.settings.comfy_dir))
        stats = process_utils.process_stats(pid) if with_stats else None
        return StatusReport(ProcessState.RUNNING, pid, self.settings.port, str(self.settings.comfy_dir), stats)
