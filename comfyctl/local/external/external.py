import shutil
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from comfyctl.local.config import Settings
from comfyctl.local.exceptions import CommandError, InstallError
from comfyctl.local.external import commands
from comfyctl.settings import APP_NAME, COMFY_REPO_URL, TOOLCHAIN_PACKAGES

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class InstallStrategy:
    """A named `pip install` invocation for the checkout's requirements file."""
    name: str
    pip_args: Tuple[str, ...]

    def argv(self, settings: Settings) -> List[str]:
        return [str(settings.venv_python), "-m", "pip", "install", *self.pip_args, "-r", str(settings.requirements_file)]


# Tried in order; the first one that succeeds ends the installation.
DEFAULT_INSTALL_STRATEGIES: Tuple[InstallStrategy, ...] = (
    InstallStrategy("prefer-binary", ("--no-cache-dir", "--prefer-binary")),
    InstallStrategy("plain", ("--no-cache-dir",)),
)


class DependencyManager:
    """Manages the ComfyUI checkout, its virtual environment and its Python dependencies."""

    def __init__(self, settings: Settings, strategies: Optional[Sequence[InstallStrategy]] = None) -> None:
        self.settings = settings
        self.strategies: Tuple[InstallStrategy, ...] = tuple(strategies or DEFAULT_INSTALL_STRATEGIES)

    #* --- Source checkout ---
    def has_checkout(self) -> bool:
        return (self.settings.comfy_dir / ".git").is_dir()

    def ensure_git_clone(self) -> bool:
        """
        Clones the upstream repository unless a checkout is already present.
        A directory without a `.git` marker is treated as a partial clone and removed first.

        :return: True if a clone was performed, False if the checkout already existed.
        """
        comfy_dir = self.settings.comfy_dir
        if self.has_checkout():
            log.info(f"{APP_NAME} repo exists: {comfy_dir}")
            return False

        log.info(f"Cloning {APP_NAME} into: {comfy_dir}")
        if comfy_dir.exists():
            log.debug(f"Removing partial checkout at '{comfy_dir}'.")
            shutil.rmtree(comfy_dir)
        comfy_dir.parent.mkdir(parents=True, exist_ok=True)
        commands.run_command(
            ["git", "clone", COMFY_REPO_URL, str(comfy_dir)],
            name="git",
            env=commands.child_environment(self.settings),
        )
        return True

    def update_checkout(self) -> None:
        """Pulls upstream changes into the checkout, rebasing local commits."""
        self.ensure_git_clone()
        log.info(f"Updating {APP_NAME} repo")
        commands.run_command(
            ["git", "pull", "--rebase"],
            name="git",
            cwd=self.settings.comfy_dir,
            env=commands.child_environment(self.settings),
        )
        log.info("Update complete.")

    #* --- Virtual environment ---
    def ensure_venv(self) -> bool:
        """
        Creates the virtual environment with the configured interpreter if it is missing.

        :return: True if the environment was created, False if it already existed.
        """
        venv_dir = self.settings.venv_dir
        if venv_dir.exists():
            log.info(f"venv exists: {venv_dir}")
            return False

        log.info(f"Creating venv: {venv_dir}")
        commands.run_command(
            [self.settings.python_bin, "-m", "venv", str(venv_dir)],
            name="venv",
            cwd=self.settings.comfy_dir,
            env=commands.child_environment(self.settings),
        )
        return True

    def describe_environment(self) -> None:
        """Reports the interpreter and pip versions of the virtual environment."""
        env = commands.child_environment(self.settings, use_venv=True)
        python = str(self.settings.venv_python)
        for args in ([python, "-V"], [python, "-m", "pip", "-V"]):
            try:
                commands.run_command(args, name="python", env=env)
            except CommandError as e:
                log.warning(f"Could not inspect the virtual environment: {e}")

    #* --- Requirements ---
    def upgrade_toolchain(self) -> None:
        log.info("Upgrading " + "/".join(TOOLCHAIN_PACKAGES))
        commands.run_command(
            [str(self.settings.venv_python), "-m", "pip", "install", "--upgrade", *TOOLCHAIN_PACKAGES],
            name="pip",
            cwd=self.settings.comfy_dir,
            env=commands.child_environment(self.settings, use_venv=True),
        )

    def install_requirements(self) -> InstallStrategy:
        """
        Upgrades the packaging toolchain, then installs the checkout's requirements.

        Each install strategy is tried in order until one succeeds.

        :return: The strategy that succeeded.
        :raises InstallError: If every strategy failed; carries the last failure.
        """
        self.upgrade_toolchain()

        log.info(f"Installing {APP_NAME} requirements")
        env = commands.child_environment(self.settings, use_venv=True)
        last_error: Optional[CommandError] = None
        for strategy in self.strategies:
            log.debug(f"Trying install strategy '{strategy.name}'.")
            try:
                commands.run_command(strategy.argv(self.settings), name="pip", cwd=self.settings.comfy_dir, env=env)
            except CommandError as e:
                log.warning(f"Install strategy '{strategy.name}' failed: {e}")
                last_error = e
                continue
            log.debug(f"Install strategy '{strategy.name}' succeeded.")
            return strategy

        raise InstallError(f"Could not install {APP_NAME} requirements: {last_error}", last_error)
