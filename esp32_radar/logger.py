"""Console logging for the radar dashboard.

All loggers live under the ``esp32_radar`` namespace and share one
:class:`rich.logging.RichHandler`, installed the first time
:func:`get_logger` is called.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER = "esp32_radar"

_LOG_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
        "log.level.critical": "bold white on red",
    }
)


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Install the Rich console handler on the package root logger."""
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(
            console=Console(theme=_LOG_THEME, stderr=True),
            show_path=False,
            show_time=True,
            rich_tracebacks=True,
            markup=False,
        )
        root.addHandler(handler)
        root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, e.g. ``get_logger("engine")``."""
    if not logging.getLogger(ROOT_LOGGER).handlers:
        configure_logging()
    if name.startswith(ROOT_LOGGER):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
