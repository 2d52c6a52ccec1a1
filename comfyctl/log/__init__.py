"""
Logging module for comfyctl.
This module provides the console logging setup shared by every command.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
