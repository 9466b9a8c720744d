"""Shared utility modules.

- logging: JSON-formatted logging utilities
"""

from .logging import JSONFormatter, setup_logger

__all__ = [
    "JSONFormatter",
    "setup_logger",
]
