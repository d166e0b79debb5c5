import sys
import logging
import threading
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

import headless_manager.settings as settings
from headless_manager.local.config import HeadlessSettings
from headless_manager.local.supervisor.shutdown import kill_process_tree

log = logging.getLogger(__name__)

# ShowWindow values, see winuser.h
SW_SHOWNORMAL = 1
SW_SHOWMINIMIZED = 2


class ProcessHandle:
    """
    Thread-safe holder for the single running headless client.

    The supervisor loop sets and clears it; the exit handlers close it. Once
    closed, the handle refuses new processes so nothing is relaunched while
    the manager is going down.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._proc: Optional[subprocess.Popen] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def get(self) -> Optional[subprocess.Popen]:
        with self._lock:
            return self._proc

    def set(self, proc: subprocess.Popen) -> bool:
        """
        Tracks a newly launched process.

        :return: False if the handle was already closed and the process was not tracked.
        """
        with self._lock:
            if self._closed:
                return False
            if self._proc is not None and self._proc.poll() is None:
                raise RuntimeError(f"A headless client is already running (PID {self._proc.pid}).")
            self._proc = proc
            return True

    def clear(self) -> None:
        with self._lock:
            self._proc = None

    def kill(self) -> None:
        """Kills the tracked process tree, if any. Safe to call repeatedly."""
        kill_process_tree(self.get())

    def close(self) -> None:
        """Marks the handle closed and kills whatever it still tracks."""
        with self._lock:
            self._closed = True
        self.kill()


def build_launch_arguments(config: Optional[HeadlessSettings], with_graphics: bool) -> str:
    """
    Builds the command-line argument string for the headless client.

    Returns an empty string and logs an error if the configuration lacks the
    values the client needs.

    :param config: The loaded configuration.
    :param with_graphics: If False, rendering is disabled with the batch mode flags.
    :return: The argument string.
    """
    if config is None:
        log.error("Settings were None when trying to generate the start arguments.")
        return ""
    if not config.profile_id:
        log.error("ProfileId was empty!")
        return ""
    if config.backend_url is None:
        log.error("BackendUrl was empty!")
        return ""

    graphics_args = "" if with_graphics else f" {settings.NO_GRAPHICS_ARGS}"
    backend_config = f"{{'BackendUrl':'{config.backend_url}','Version':'{settings.BACKEND_VERSION_TAG}'}}"
    return f"-token={config.profile_id} -config={backend_config}{graphics_args} {settings.CONSOLE_ARGS}"


def get_archive_path(log_path: Path) -> Path:
    """Returns the path the previous log is archived to, e.g. 'LogOutput_prev.log'."""
    return log_path.with_name(f"{log_path.stem}{settings.LOG_ARCHIVE_SUFFIX}{log_path.suffix}")


def archive_previous_log(log_path: Path = settings.LOG_OUTPUT_PATH) -> bool:
    """
    Renames the client's log file so the next run starts with a fresh one.

    Failures are logged and otherwise ignored; they never block a launch.

    :param log_path: The client log file.
    :return: True if a log was archived, False if there was none or the rename failed.
    """
    if not log_path.exists():
        return False
    archive_path = get_archive_path(log_path)
    try:
        log_path.replace(archive_path)
        log.debug(f"Archived previous log to '{archive_path}'.")
        return True
    except OSError as e:
        log.error(f"Could not archive the previous log file:\n{e}")
        return False


def should_start_minimized(config: HeadlessSettings, with_graphics: bool) -> bool:
    """Only a headless launch honours StartMinimized."""
    return not with_graphics and config.start_minimized


def _get_popen_kwargs(minimized: bool) -> Dict[str, Any]:
    """Returns platform-specific keyword arguments for subprocess.Popen."""
    if sys.platform == "win32":
        startupinfo = subprocess.STARTUPINFO()
        startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
        startupinfo.wShowWindow = SW_SHOWMINIMIZED if minimized else SW_SHOWNORMAL
        return {"startupinfo": startupinfo, "creationflags": subprocess.CREATE_NEW_CONSOLE}
    return {"start_new_session": True}


def get_launch_command(executable: Path, arguments: str) -> Any:
    """
    Returns the command for Popen.

    Windows takes the argument string verbatim. Elsewhere it is split on
    whitespace; shlex would strip the quotes inside the -config value.
    """
    exe = str(executable.resolve())
    if sys.platform == "win32":
        return f'"{exe}" {arguments}' if arguments else f'"{exe}"'
    command: List[str] = [exe]
    command.extend(arguments.split())
    return command


def launch_game(config: HeadlessSettings, with_graphics: bool, executable: Path = settings.GAME_EXECUTABLE_PATH) -> Optional[subprocess.Popen]:
    """
    Archives the previous client log and starts the headless client.

    :param config: The loaded configuration.
    :param with_graphics: Whether to launch with rendering enabled.
    :param executable: Path to the game executable.
    :return: The started process, or None if it could not be started.
    """
    log.info(f"Starting headless client {'with' if with_graphics else 'without'} graphics.")
    archive_previous_log(settings.LOG_OUTPUT_PATH)

    arguments = build_launch_arguments(config, with_graphics)
    minimized = should_start_minimized(config, with_graphics)
    try:
        proc = subprocess.Popen(
            get_launch_command(executable, arguments),
            cwd=str(executable.resolve().parent),
            **_get_popen_kwargs(minimized),
        )
    except OSError as e:
        log.error(f"Failed to start '{executable}': {e}")
        return None

    log.info(f"Headless client started with PID: {proc.pid}")
    return proc
