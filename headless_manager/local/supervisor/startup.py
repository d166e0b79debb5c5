import logging
from pathlib import Path
from typing import List, Tuple

import headless_manager.settings as settings
from headless_manager.local.console import fatal_exit

log = logging.getLogger(__name__)


def get_prerequisite_checks() -> List[Tuple[Path, str]]:
    """Returns the required install files, in check order, with the message shown when one is missing."""
    return [
        (
            settings.GAME_EXECUTABLE_PATH,
            f"Unable to find '{settings.GAME_EXECUTABLE_PATH.name}'.\n"
            "Make sure you are running Fika Headless Manager from a valid SPT install folder!",
        ),
        (
            settings.PLUGIN_PATH,
            f"Unable to find '{settings.PLUGIN_PATH.name}'.\n"
            "Please revisit the documentation and install Fika Headless using Fika-Installer!",
        ),
        (
            settings.CONFIG_PATH,
            f"Unable to find the configuration file '{settings.CONFIG_PATH.name}'.\n"
            "Make sure that you have configured the headless correctly!",
        ),
    ]


def check_prerequisites() -> None:
    """
    Validates that the manager runs from a usable SPT install.

    Stops at the first missing file.

    :raises SystemExit: With status 1 if a required file is missing.
    """
    for path, message in get_prerequisite_checks():
        if not path.is_file():
            fatal_exit(message)
        log.debug(f"Found '{path}'.")
