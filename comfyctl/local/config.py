import os
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import Mapping, Optional

import comfyctl.settings as default_settings
from comfyctl.local.exceptions import ConfigError

log = logging.getLogger(__name__)


def _get(environ: Mapping[str, str], key: str) -> Optional[str]:
    """Returns a stripped environment value, treating empty strings as unset."""
    value = environ.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _path(value) -> Path:
    """Returns `value` as an absolute path with `~` expanded."""
    return Path(value).expanduser().resolve()


def _parse_port(raw: Optional[str]) -> int:
    if raw is None:
        return default_settings.DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got '{raw}'") from None
    if not 0 < port < 65536:
        raise ConfigError(f"PORT must be between 1 and 65535, got {port}")
    return port


@dataclass(frozen=True)
class Settings:
    """
    The resolved configuration for one comfyctl invocation.

    Built once at startup from the environment and handed explicitly to every
    component. Derived paths follow the same precedence as the defaults in
    `comfyctl.settings`: an explicit variable wins, otherwise the path is
    derived from its parent setting.
    """

    base_dir: Path
    comfy_dir: Path
    venv_dir: Path
    port: int
    host: str
    log_dir: Path
    log_file: Path
    tmp_dir: Path
    python_bin: str

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Resolves all settings from the given mapping (defaults to os.environ).

        :param environ: The environment to read from.
        :return: A fully populated Settings instance.
        :raises ConfigError: If a value cannot be used.
        """
        env = os.environ if environ is None else environ

        base_dir = _path(_get(env, "BASE_DIR") or default_settings.DEFAULT_BASE_DIR)
        comfy_dir = _path(_get(env, "COMFY_DIR") or base_dir / default_settings.COMFY_DIR_NAME)
        venv_dir = _path(_get(env, "VENV_DIR") or comfy_dir / default_settings.VENV_DIR_NAME)
        log_dir = _path(_get(env, "LOG_DIR") or base_dir / default_settings.LOGS_DIR_NAME)
        log_file = _path(_get(env, "LOG_FILE") or log_dir / default_settings.LOG_FILE_NAME)
        tmp_dir = _path(_get(env, "TMP_DIR") or base_dir / default_settings.TMP_DIR_NAME)

        settings = cls(
            base_dir=base_dir,
            comfy_dir=comfy_dir,
            venv_dir=venv_dir,
            port=_parse_port(_get(env, "PORT")),
            host=_get(env, "HOST") or default_settings.DEFAULT_HOST,
            log_dir=log_dir,
            log_file=log_file,
            tmp_dir=tmp_dir,
            python_bin=_get(env, "PYTHON_BIN") or default_settings.DEFAULT_PYTHON_BIN,
        )
        log.debug(f"Resolved settings: {settings}")
        return settings

    #* --- Derived paths ---
    @property
    def pid_file(self) -> Path:
        return self.base_dir / default_settings.PID_FILE_NAME

    @property
    def requirements_file(self) -> Path:
        return self.comfy_dir / default_settings.REQUIREMENTS_FILE_NAME

    @property
    def entry_script(self) -> Path:
        return self.comfy_dir / "main.py"

    @property
    def venv_bin_dir(self) -> Path:
        return self.venv_dir / ("Scripts" if os.name == "nt" else "bin")

    @property
    def venv_python(self) -> Path:
        return self.venv_bin_dir / ("python.exe" if os.name == "nt" else "python")
