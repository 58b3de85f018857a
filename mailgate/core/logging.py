"""
Logging utilities for the OAuth listener and the MCP tool server.

Provides a consistent logging format and configuration.
"""

import logging
import sys
from typing import TextIO


def configure_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure root logging with a sensible default format.

    The MCP stdio server passes ``sys.stderr`` because stdout carries the
    protocol stream.
    """
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=stream or sys.stdout,
    )


__all__ = ["configure_logging"]
