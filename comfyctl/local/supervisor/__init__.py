"""
The Supervisor package.
Manages the lifecycle of the ComfyUI server process.

This package contains the central ProcessManager class and its helper modules,
which together handle preparing, starting, stopping and probing the server
through its PID file.
"""
from .supervisor import ProcessManager, ProcessState, StatusReport

__all__ = ['ProcessManager', 'ProcessState', 'StatusReport']
