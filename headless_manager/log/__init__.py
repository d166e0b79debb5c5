"""
Logging module for the manager.
This module provides functionality to set up colored console and file logging.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
