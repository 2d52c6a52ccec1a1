"""
This package wraps the external tooling comfyctl drives: git for the ComfyUI
checkout, the venv module for the virtual environment and pip for the
requirements. `DependencyManager` ties them together.
"""

from . import commands
from .external import DependencyManager, InstallStrategy, DEFAULT_INSTALL_STRATEGIES

__all__ = ["commands", "DependencyManager", "InstallStrategy", "DEFAULT_INSTALL_STRATEGIES"]
