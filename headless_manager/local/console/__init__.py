"""
This module initializes the console package, exposing the keypress prompts used
before launching the headless client and before every fatal exit.
"""

from .handler import wait_for_graphics_input, wait_for_any_key, fatal_exit, restore_terminal

__all__ = ["wait_for_graphics_input", "wait_for_any_key", "fatal_exit", "restore_terminal"]
