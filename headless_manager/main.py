import sys
import logging
import threading
from typing import List, Optional

import setproctitle

import headless_manager.settings as settings
from headless_manager.log.setup import setup_logging
from headless_manager.local.config import ConfigError, load_settings
from headless_manager.local.console import fatal_exit
from headless_manager.local.supervisor import HeadlessSupervisor, ProcessHandle
from headless_manager.local.supervisor.shutdown import register_exit_handlers
from headless_manager.local.supervisor.startup import check_prerequisites

log = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    """
    The entry point of the headless manager.

    Validates the install, loads the configuration and runs the game loop on a
    background thread while the main thread stays free for signal handling.

    :param argv: Command-line arguments, defaults to sys.argv[1:].
    :return: The exit status of the game loop.
    """
    args = sys.argv[1:] if argv is None else argv
    setproctitle.setproctitle(settings.PROCESS_TITLE)
    setup_logging(logging.DEBUG if "--verbose" in args else logging.INFO)

    handle = ProcessHandle()
    register_exit_handlers(handle)

    check_prerequisites()

    try:
        config = load_settings(settings.CONFIG_PATH)
    except ConfigError as e:
        fatal_exit(f"Error loading configuration: {e}")

    supervisor = HeadlessSupervisor(config, handle)
    loop_thread = threading.Thread(target=supervisor.run, daemon=True, name="GameLoopThread")
    loop_thread.start()

    # join() with a timeout keeps the main thread responsive to signals.
    while loop_thread.is_alive():
        loop_thread.join(settings.MAIN_LOOP_JOIN_INTERVAL)

    return supervisor.exit_code or 0


if __name__ == "__main__":
    sys.exit(main())
