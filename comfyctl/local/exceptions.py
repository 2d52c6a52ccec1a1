from typing import Optional, Sequence


class ComfyctlError(Exception):
    """Base exception for comfyctl. The CLI reports these as a single error line."""


class ConfigError(ComfyctlError, ValueError):
    """Raised when an environment variable holds an unusable value."""


class MissingToolError(ComfyctlError):
    """Raised when a required external command is not on PATH."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"Missing required command: {tool}")
        self.tool = tool


class CommandError(ComfyctlError, RuntimeError):
    """Raised when an external command cannot be executed or exits non-zero."""

    def __init__(self, args: Sequence[str], returncode: Optional[int], detail: str = "") -> None:
        self.argv = list(args)
        self.returncode = returncode
        command = " ".join(self.argv)
        if returncode is None:
            message = f"Could not run '{command}': {detail}"
        else:
            message = f"Command '{command}' failed with exit code {returncode}"
        super().__init__(message)


class InstallError(ComfyctlError):
    """Raised when every dependency install strategy has failed."""

    def __init__(self, message: str, last_error: Optional[CommandError] = None) -> None:
        super().__init__(message)
        self.last_error = last_error


class UnknownCommandError(ComfyctlError):
    """Raised for a command the CLI does not know."""

    def __init__(self, command: str) -> None:
        super().__init__(f"Unknown command: {command}. Use -h for help.")
        self.command = command
