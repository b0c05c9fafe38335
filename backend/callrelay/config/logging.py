"""
Logging configuration for the relay.

Environment Variables:
    LOG_LEVEL - Log level (DEBUG, INFO, WARNING, ERROR). Default: INFO
"""

import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO", format_string: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger once.

    Args:
        level: Log level name; unknown names fall back to INFO.
        format_string: Custom format. Default: timestamp + level + name + message.

    Returns:
        The root logger.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # uvicorn and pytest install their own handlers; don't stack ours twice
    if not any(getattr(h, "_callrelay", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler._callrelay = True
        root.addHandler(handler)

    return root
