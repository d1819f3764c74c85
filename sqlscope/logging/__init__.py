"""Logging setup for sqlscope.

Provides a rich console handler for the ``sqlscope`` logger tree and the
``logged_operation`` decorator used by the service layer.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from .decorators import logged_operation


def configure_logging(level: str = "INFO", console: Optional[Console] = None) -> logging.Logger:
    """Attach a RichHandler to the ``sqlscope`` logger.

    Calling it again replaces the handler instead of stacking another one.

    Args:
        level: Log level name, e.g. ``"DEBUG"``
        console: Console to write to (defaults to stderr)

    Returns:
        The configured ``sqlscope`` logger
    """
    root = logging.getLogger("sqlscope")
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(handler)
    root.setLevel(level.upper())
    return root


__all__ = [
    "configure_logging",
    "logged_operation",
]
