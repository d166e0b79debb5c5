"""
Local package for the headless manager.

This package provides the configuration loader, the console helpers and the
supervisor that keeps the headless client running.
"""

from .config import ConfigError, HeadlessSettings, load_settings

__all__ = ["ConfigError", "HeadlessSettings", "load_settings"]
