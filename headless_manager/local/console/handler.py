import os
import sys
import time
import logging
from contextlib import contextmanager
from typing import Iterator, List, NoReturn, Optional

import headless_manager.settings as settings

log = logging.getLogger(__name__)

# Terminal attributes from before the last switch to cbreak mode, if still switched.
_saved_terminal_settings: Optional[List] = None


def stdin_is_interactive() -> bool:
    """Returns True if stdin is attached to a terminal we can read keys from."""
    try:
        return sys.stdin is not None and sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


# --- Platform-specific non-blocking keypress detection ---
try:
    import msvcrt

    def is_keypress_waiting() -> bool:
        return msvcrt.kbhit()

    def read_key() -> str:
        key = msvcrt.getwch()
        # Arrow and function keys arrive as a two-character sequence.
        if key in ("\x00", "\xe0"):
            msvcrt.getwch()
        return key

    @contextmanager
    def key_input_mode() -> Iterator[None]:
        yield

    def restore_terminal() -> None:
        pass
except ImportError:
    import select
    import termios
    import tty

    def is_keypress_waiting() -> bool:
        if not stdin_is_interactive():
            return False
        fd = sys.stdin.fileno()
        return select.select([fd], [], [], 0)[0] == [fd]

    def read_key() -> str:
        # Bypass the buffered text layer so unread keys stay visible to select().
        return os.read(sys.stdin.fileno(), 1).decode("utf-8", errors="replace")

    @contextmanager
    def key_input_mode() -> Iterator[None]:
        # For non-Windows, need to switch to cbreak mode to read keys without Enter
        global _saved_terminal_settings
        if not stdin_is_interactive():
            yield
            return
        old_settings = termios.tcgetattr(sys.stdin)
        _saved_terminal_settings = old_settings
        try:
            tty.setcbreak(sys.stdin.fileno())
            yield
        finally:
            termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)
            _saved_terminal_settings = None

    def restore_terminal() -> None:
        """
        Puts the terminal back into the mode it had before a key prompt.

        The prompts run on the daemon loop thread, whose finally blocks never run
        when the main thread exits, so the shutdown path calls this instead.
        """
        global _saved_terminal_settings
        saved = _saved_terminal_settings
        if saved is None:
            return
        _saved_terminal_settings = None
        try:
            termios.tcsetattr(sys.stdin, termios.TCSANOW, saved)
        except (termios.error, OSError, ValueError) as e:
            log.debug(f"Could not restore terminal settings: {e}")


def wait_for_graphics_input(
    timeout: float = settings.GRAPHICS_PROMPT_TIMEOUT,
    poll_interval: float = settings.GRAPHICS_POLL_INTERVAL,
    graphics_key: str = settings.GRAPHICS_KEY,
) -> bool:
    """
    Gives the operator a short window to request a windowed launch.

    Polls for a single buffered keypress until the deadline passes. The first
    key consumed decides the result; any other key or a timeout means headless.

    :param timeout: How long to wait for a key, in seconds.
    :param poll_interval: Sleep between polls, in seconds.
    :param graphics_key: The key that selects a launch with graphics.
    :return: True if the graphics key was pressed in time, False otherwise.
    """
    log.info(f"Press '{graphics_key}' to start with graphics or wait {timeout:g} seconds...")

    deadline = time.monotonic() + timeout
    with key_input_mode():
        while time.monotonic() < deadline:
            if is_keypress_waiting():
                key = read_key()
                return key.lower() == graphics_key.lower()
            time.sleep(poll_interval)
    return False


def wait_for_any_key() -> None:
    """Blocks until a key is pressed. Returns immediately when there is no terminal."""
    if not stdin_is_interactive():
        return
    with key_input_mode():
        while not is_keypress_waiting():
            time.sleep(settings.GRAPHICS_POLL_INTERVAL)
        read_key()


def fatal_exit(message: Optional[str] = None, code: int = 1) -> NoReturn:
    """
    Logs a fatal error, waits for the operator to acknowledge it and exits.

    :param message: The error to log in red, if any.
    :param code: The process exit status.
    :raises SystemExit: Always.
    """
    if message:
        log.error(message)
    log.info("Press any key to exit...")
    wait_for_any_key()
    raise SystemExit(code)
