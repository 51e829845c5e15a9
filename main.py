"""Process Entry Point - Root Module.

Runs the monitor from a source checkout: ``python main.py``.
It imports from the trem_monitor package.
"""

from trem_monitor.main import cli, main

__all__ = [
    "cli",
    "main",
]

if __name__ == "__main__":
    cli()
