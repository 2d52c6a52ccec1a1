import logging
import sys

from comfyctl.settings import LOG_PREFIX


class MaxLevelFilter(logging.Filter):
    """
    Passes only records strictly below a given level.
    Used to keep stdout free of warnings and errors, which go to stderr.
    """
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record):
        return record.levelno < self.max_level


class MainFormatter(logging.Formatter):
    """A custom formatter to handle regular logs and raw subprocess output."""

    def __init__(self, verbose: bool = False) -> None:
        super().__init__()
        self.verbose = verbose

    def format(self, record):
        # Output streamed from git/pip/venv is relayed untouched.
        if record.name.startswith('proc.'):
            return record.getMessage()

        tag = f"[{LOG_PREFIX}]"
        if record.levelno >= logging.WARNING:
            tag += f"[{record.levelname}]"

        original_format = self._style._fmt
        if self.verbose:
            self._style._fmt = f'%(asctime)s {tag} [%(name)s] %(message)s'
        else:
            self._style._fmt = f'{tag} %(message)s'
        formatted_message = super().format(record)
        self._style._fmt = original_format
        return formatted_message


def setup_logging(console_level: int = logging.INFO) -> None:
    """
    Configures the root logger for comfyctl.
    Informational output goes to stdout and warnings/errors to stderr,
    clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(console_level)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    formatter = MainFormatter(verbose=console_level <= logging.DEBUG)

    # --- Stdout Handler ---
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(console_level)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    # --- Stderr Handler ---
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)
