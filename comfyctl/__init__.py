"""
comfyctl: installs, starts, stops and monitors a local ComfyUI server.

The package is split into the same layers as the console it grew from:
`local` holds configuration, the supervisor and external tooling, `log`
configures console output, and `main` is the command-line entry point.
"""

__version__ = "0.1.0"
