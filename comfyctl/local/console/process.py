import logging
from typing import Callable, Dict

from comfyctl.local.exceptions import UnknownCommandError
from comfyctl.local.supervisor import ProcessManager
from comfyctl.local.console.handler import display_status, handle_logs_command

log = logging.getLogger(__name__)

HELP_COMMANDS = ("", "-h", "--help", "help")
COMMANDS = ("install", "update", "start", "stop", "restart", "status", "logs")


def command_map(manager: ProcessManager) -> Dict[str, Callable[[], object]]:
    """Maps every supervisor command to the action that runs it."""
    return {
        "install": manager.install,
        "update": manager.update,
        "start": manager.start,
        "stop": manager.stop,
        "restart": manager.restart,
        "status": lambda: display_status(manager),
        "logs": lambda: handle_logs_command(manager),
    }


def is_known_command(command: str) -> bool:
    return command in COMMANDS


def execute_command(command: str, manager: ProcessManager) -> None:
    """
    Executes a single supervisor command.

    :param command: The command string (e.g., 'start', 'status').
    :param manager: The ProcessManager to act on.
    :raises UnknownCommandError: If the command is not recognised.
    """
    log.debug(f"Executing command: {command}")
    actions = command_map(manager)
    if command not in actions:
        raise UnknownCommandError(command)
    actions[command]()
