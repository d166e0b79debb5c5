import sys
import atexit
import signal
import psutil
import logging
import subprocess
from typing import TYPE_CHECKING, List, Optional

import headless_manager.settings as settings
from headless_manager.local.console.handler import restore_terminal

if TYPE_CHECKING:
    from .process_utils import ProcessHandle

log = logging.getLogger(__name__)


def kill_process_tree(proc: Optional[subprocess.Popen]) -> None:
    """
    Forcefully kills a process and all of its descendants.

    Killing a process that has already exited is a no-op. Failures are logged
    and never raised since this runs while the manager is shutting down.

    :param proc: The process to kill, or None.
    """
    if proc is None or proc.poll() is not None:
        return

    try:
        parent = psutil.Process(proc.pid)
        procs: List[psutil.Process] = parent.children(recursive=True)
        procs.append(parent)
    except psutil.NoSuchProcess:
        return
    except psutil.Error as e:
        log.debug(f"Could not inspect process tree of PID {proc.pid}: {e}")
        return

    log.warning(f"Killing headless client (PID {proc.pid}) and {len(procs) - 1} child process(es).")
    for p in procs:
        try:
            p.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.Error as e:
            log.debug(f"Failed to kill PID {p.pid}: {e}")

    try:
        psutil.wait_procs(procs, timeout=settings.KILL_WAIT_TIMEOUT)
    except psutil.Error as e:
        log.debug(f"Error while waiting for killed processes: {e}")


def _shutdown_signals() -> List[int]:
    """Returns the signals that should take the headless client down with the manager."""
    signals = [signal.SIGINT, signal.SIGTERM]
    if sys.platform == "win32":
        signals.append(signal.SIGBREAK)
    return signals


def register_exit_handlers(handle: "ProcessHandle") -> None:
    """
    Makes sure the headless client never outlives the manager.

    Registers an atexit hook and signal handlers that close the process handle,
    which kills any tracked client together with its descendants, and put the
    terminal back out of cbreak mode if a key prompt was interrupted.

    :param handle: The process handle shared with the supervisor loop.
    """
    atexit.register(handle.close)
    atexit.register(restore_terminal)

    def handle_shutdown_signal(signum, frame):
        log.info(f"Signal {signum} received, stopping the headless client.")
        handle.close()
        restore_terminal()
        raise SystemExit(0)

    for sig in _shutdown_signals():
        signal.signal(sig, handle_shutdown_signal)
