import logging
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)


class PidFile:
    """
    The on-disk record of the managed process.

    The file holds a single decimal PID followed by a newline, so that other
    tooling can read it with `cat`. Its presence alone never means the process
    is running; callers must probe the PID (see `process_utils.is_alive`).
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"PidFile({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> Optional[int]:
        """
        Reads the PID from disk.

        :return: The PID, or None if the file is missing, unreadable or malformed.
        """
        if not self.path.exists():
            return None
        try:
            raw = self.path.read_text().strip()
        except (IOError, OSError) as e:
            log.warning(f"Could not read PID file '{self.path}': {e}")
            return None
        try:
            return int(raw)
        except ValueError:
            log.debug(f"PID file '{self.path}' does not hold a PID: {raw!r}")
            return None

    def write(self, pid: int) -> None:
        """
        Atomically writes the PID to disk.

        :param pid: The process ID to record.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_pid_path = self.path.with_suffix(".tmp")
        try:
            temp_pid_path.write_text(f"{int(pid)}\n")
            temp_pid_path.replace(self.path)
        finally:
            temp_pid_path.unlink(missing_ok=True)

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)
        log.debug(f"Removed PID file '{self.path}'.")
