"""
Local package for comfyctl.

This package provides the resolved configuration value (`Settings`) and the
exception hierarchy shared by the supervisor, the console and the external
tooling helpers.
"""

from .config import Settings
from .exceptions import ComfyctlError

__all__ = ["Settings", "ComfyctlError"]
