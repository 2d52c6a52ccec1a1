"""
This module contains the default configuration values for comfyctl.
It defines the environment variable names, their defaults, the upstream
repository and the constants used by the supervisor and the log follower.
Values are resolved into a `Settings` object by `comfyctl.local.config`.
"""

from dotenv import load_dotenv

# Load a .env file from the working directory without clobbering the real environment
load_dotenv(override=False)

#* --- Identity ---
APP_NAME = "ComfyUI"
LOG_PREFIX = "comfyui"
COMFY_REPO_URL = "https://github.com/comfyanonymous/ComfyUI.git"

#* --- Defaults (overridable via environment) ---
DEFAULT_BASE_DIR = "/workspace"
DEFAULT_PORT = 8188
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PYTHON_BIN = "python3"

# Relative names used to derive paths when the variable is not set
COMFY_DIR_NAME = "ComfyUI"
VENV_DIR_NAME = "venv"
LOGS_DIR_NAME = "logs"
TMP_DIR_NAME = "tmp"
LOG_FILE_NAME = "comfyui.log"
PID_FILE_NAME = "comfyui.pid"

#* --- Environment variable names ---
ENV_VARS = (
    "BASE_DIR",
    "COMFY_DIR",
    "VENV_DIR",
    "PORT",
    "HOST",
    "LOG_DIR",
    "LOG_FILE",
    "TMP_DIR",
    "PYTHON_BIN",
)

# Temp-file variables redirected to TMP_DIR for every child process
TEMP_ENV_VARS = ("TMPDIR", "TEMP", "TMP")

#* --- Supervisor Settings ---
GRACEFUL_SHUTDOWN_TIMEOUT = 1.0  # seconds between SIGTERM and SIGKILL
REQUIRED_TOOLS = ("git",)        # PYTHON_BIN is checked in addition

#* --- Dependency installation ---
REQUIREMENTS_FILE_NAME = "requirements.txt"
TOOLCHAIN_PACKAGES = ("pip", "wheel", "setuptools")

#* --- Log follower ---
LOG_HISTORY_COUNT = 200
LOG_POLL_INTERVAL = 0.2  # seconds
