"""CLI logging setup"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING", verbose: bool = False) -> logging.Logger:
    """Route mdsite loggers to a RichHandler on stderr and return the package logger."""
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("mdsite")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(log_level)
    return logger
