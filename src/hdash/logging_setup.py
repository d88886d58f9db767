"""
Logger configuration for the ``hdash`` package.
"""

from __future__ import annotations

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "WARNING", console: Optional[Console] = None) -> logging.Logger:
    root = logging.getLogger("hdash")
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")
    root.setLevel(numeric)
    # replace rather than stack handlers when called twice
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.addHandler(RichHandler(console=console, show_path=False, rich_tracebacks=True))
    root.propagate = False
    return root
