"""Utility functions for the scanner."""

from .discovery import DiscoveredPlugin, discover_plugins
from .logging_setup import get_logger, setup_logging

__all__ = [
    "DiscoveredPlugin",
    "discover_plugins",
    "get_logger",
    "setup_logging",
]
