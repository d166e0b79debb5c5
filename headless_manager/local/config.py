import json
import logging
from pathlib import Path
from dataclasses import dataclass
from urllib.parse import urlparse
from typing import Any, Dict, Optional, Union

import headless_manager.settings as default_settings

log = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the headless configuration file cannot be loaded."""


@dataclass(frozen=True)
class HeadlessSettings:
    """
    The user configuration read from HeadlessConfig.json.

    Created once at startup and never mutated afterwards. Missing profile or
    backend values are kept as None; the launch argument builder guards them.
    """
    profile_id: Optional[str] = None
    backend_url: Optional[str] = None
    start_minimized: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HeadlessSettings":
        """
        Builds settings from the parsed JSON object, ignoring unknown keys.

        :param data: The decoded JSON document.
        :return: A HeadlessSettings instance.
        :raises ConfigError: If a field has the wrong type or the URL is not absolute.
        """
        profile_id = data.get("ProfileId")
        backend_url = data.get("BackendUrl")
        start_minimized = data.get("StartMinimized", False)

        if profile_id is not None and not isinstance(profile_id, str):
            raise ConfigError(f"'ProfileId' must be a string, got {type(profile_id).__name__}.")
        if backend_url is not None:
            if not isinstance(backend_url, str):
                raise ConfigError(f"'BackendUrl' must be a string, got {type(backend_url).__name__}.")
            parsed = urlparse(backend_url)
            if backend_url and not (parsed.scheme and parsed.netloc):
                raise ConfigError(f"'BackendUrl' must be an absolute URI, got '{backend_url}'.")
        if start_minimized is None:
            start_minimized = False
        if not isinstance(start_minimized, bool):
            raise ConfigError(f"'StartMinimized' must be a boolean, got {type(start_minimized).__name__}.")

        return cls(profile_id=profile_id, backend_url=backend_url, start_minimized=start_minimized)


def load_settings(path: Union[str, Path, None] = None) -> HeadlessSettings:
    """
    Reads and parses the headless configuration file.

    Configuration is all-or-nothing: any read or parse problem raises, and the
    caller decides how to exit.

    :param path: Path to the JSON file. Defaults to settings.CONFIG_PATH.
    :return: The loaded HeadlessSettings.
    :raises ConfigError: If the file is missing, unreadable, malformed or not a JSON object.
    """
    config_path = Path(path) if path is not None else default_settings.CONFIG_PATH

    try:
        with config_path.open("r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"Configuration file '{config_path}' does not exist.")
    except json.JSONDecodeError as e:
        raise ConfigError(f"Configuration file '{config_path}' is not valid JSON: {e}")
    except OSError as e:
        raise ConfigError(f"Could not read configuration file '{config_path}': {e}")

    if data is None:
        raise ConfigError("Failed to deserialize configuration.")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a JSON object, got {type(data).__name__}.")

    loaded = HeadlessSettings.from_dict(data)

    if not loaded.profile_id:
        log.warning("'ProfileId' is missing from the configuration. The headless client cannot be launched without it.")
    if not loaded.backend_url:
        log.warning("'BackendUrl' is missing from the configuration.")

    log.debug(f"Loaded configuration from {config_path}: profile={loaded.profile_id}, backend={loaded.backend_url}, start_minimized={loaded.start_minimized}")
    return loaded
