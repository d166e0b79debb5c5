import sys
import logging

import headless_manager.settings as settings

RED = "\033[31m"
RESET = "\033[0m"


class ConsoleColorFormatter(logging.Formatter):
    """
    A console formatter that prints bare messages in the terminal's default
    color and switches to red for errors.
    """

    def __init__(self, use_color: bool = True):
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        if self.use_color and record.levelno >= logging.ERROR:
            return f"{RED}{message}{RESET}"
        return message


def _stream_supports_color(stream) -> bool:
    """Returns True if the stream is an interactive terminal."""
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def setup_logging(console_level: int = logging.INFO) -> None:
    """
    Configures the root logger for the manager.
    This sets up a colored console handler and a file handler, clearing any
    previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output (e.g., logging.INFO).
    """
    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ConsoleColorFormatter(use_color=_stream_supports_color(sys.stdout)))
    root_logger.addHandler(console_handler)

    # --- File Handler (always enabled for all levels) ---
    try:
        settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.MANAGER_LOG_PATH, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'))
        root_logger.addHandler(file_handler)
    except OSError as e:
        root_logger.error(f"Failed to initialize file logging handler: {e}. Logging to file will be disabled.")
