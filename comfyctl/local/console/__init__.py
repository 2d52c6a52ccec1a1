"""
This module initializes the console package, exposing command execution,
status display, log tailing and the help text.
"""

from .process import execute_command, is_known_command, HELP_COMMANDS
from .handler import display_status, follow_log, print_help

__all__ = ["execute_command", "is_known_command", "HELP_COMMANDS", "display_status", "follow_log", "print_help"]
