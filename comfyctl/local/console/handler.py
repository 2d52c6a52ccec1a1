import os
import sys
import time
import logging
import threading
from collections import deque
from pathlib import Path
from typing import Optional, TextIO

from comfyctl.settings import APP_NAME, LOG_HISTORY_COUNT, LOG_POLL_INTERVAL
from comfyctl.local.supervisor import ProcessManager

log = logging.getLogger(__name__)


def display_status(manager: ProcessManager) -> None:
    """Checks and displays whether the server is running, including resource usage."""
    report = manager.status()
    if not report.running:
        log.info(f"{APP_NAME} is NOT running.")
        return

    log.info(f"{APP_NAME} is RUNNING. PID={report.pid}  PORT={report.port}  DIR={report.comfy_dir}")
    if report.stats:
        stats = report.stats
        uptime = time.strftime('%H:%M:%S', time.gmtime(stats["uptime_seconds"]))
        log.info(f"CPU: {stats['cpu_percent']:.1f}% | MEM: {stats['memory_mb']:.1f} MB | Uptime: {uptime}")


#* --- Log tailing ---
def follow_log(path: Path, lines: int = LOG_HISTORY_COUNT, out: Optional[TextIO] = None,
               stop_event: Optional[threading.Event] = None, poll_interval: float = LOG_POLL_INTERVAL) -> None:
    """
    Prints the last `lines` lines of a file, then keeps printing appended content.

    Runs until `stop_event` is set or the caller is interrupted. A file that
    shrinks is treated as truncated and followed again from the start.
    Like `tail -f`, the open descriptor is followed, so a removed or renamed
    file keeps being read.

    :param path: The file to follow. It must exist.
    :param lines: How many trailing lines to print first.
    :param out: Stream to write to (defaults to sys.stdout).
    :param stop_event: Optional event that ends the follow loop.
    :param poll_interval: Seconds to sleep when no new data is available.
    """
    out = out or sys.stdout
    with path.open("r", encoding="utf-8", errors="replace") as f:
        # Reading the history leaves the handle at the end of the file.
        for line in deque(f, maxlen=lines):
            out.write(line)
        out.flush()

        while stop_event is None or not stop_event.is_set():
            line = f.readline()
            if line:
                out.write(line)
                out.flush()
                continue
            if os.fstat(f.fileno()).st_size < f.tell():
                log.debug(f"{path} was truncated; following from the start.")
                f.seek(0)
                continue
            time.sleep(poll_interval)


def handle_logs_command(manager: ProcessManager) -> None:
    """
    Handles the 'logs' command, providing a blocking log tail until Ctrl+C.
    """
    log_file = manager.settings.log_file
    log.info(f"Tailing logs: {log_file} (Ctrl+C to stop)")
    log_file.parent.mkdir(parents=True, exist_ok=True)
    log_file.touch(exist_ok=True)

    try:
        follow_log(log_file)
    except KeyboardInterrupt:
        log.info("Log tailing stopped.")


def usage_text(prog: str = "comfyctl") -> str:
    return f"""Usage: {prog} <command> [--verbose]

Commands:
  install     Clone {APP_NAME} (if missing), create venv, install requirements
  update      git pull {APP_NAME}
  start       Start {APP_NAME} (background) + write PID + log to $LOG_FILE
  stop        Stop {APP_NAME} using PID file
  restart     Stop then start
  status      Show running status
  logs        Tail logs

Environment overrides (optional):
  BASE_DIR=/workspace
  COMFY_DIR=$BASE_DIR/ComfyUI
  VENV_DIR=$COMFY_DIR/venv
  PORT=8188
  HOST=0.0.0.0
  LOG_DIR=$BASE_DIR/logs
  LOG_FILE=$LOG_DIR/comfyui.log
  TMP_DIR=$BASE_DIR/tmp
  PYTHON_BIN=python3
"""


def print_help(prog: str = "comfyctl") -> None:
    """Prints the main help text."""
    print(usage_text(prog))
