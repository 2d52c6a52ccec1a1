import sys
import logging
from typing import List, Optional

from comfyctl.log.setup import setup_logging
from comfyctl.local import console
from comfyctl.local.config import Settings
from comfyctl.local.exceptions import ComfyctlError, UnknownCommandError
from comfyctl.local.external import commands
from comfyctl.local.supervisor import ProcessManager

log = logging.getLogger("comfyctl")


def main(argv: Optional[List[str]] = None) -> int:
    """
    The command-line entry point.

    :param argv: Arguments after the program name (defaults to sys.argv[1:]).
    :return: The process exit code.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    verbose = "--verbose" in args
    if verbose:
        args = [a for a in args if a != "--verbose"]

    setup_logging(logging.DEBUG if verbose else logging.INFO)

    command = args[0] if args else ""
    if command in console.HELP_COMMANDS:
        console.print_help()
        return 0

    try:
        if not console.is_known_command(command):
            raise UnknownCommandError(args[0])

        settings = Settings.from_env()
        # Prerequisites are checked before anything touches the filesystem.
        commands.require_tools(commands.required_tools(settings))

        manager = ProcessManager(settings)
        console.execute_command(command, manager)
    except ComfyctlError as e:
        log.error(str(e))
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
