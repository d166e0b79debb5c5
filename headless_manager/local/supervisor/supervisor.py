import logging
from typing import Callable, Optional

from headless_manager.local.config import HeadlessSettings
from headless_manager.local.console import fatal_exit, wait_for_graphics_input
from headless_manager.local.supervisor.health import is_server_accessible
from headless_manager.local.supervisor.process_utils import ProcessHandle, launch_game
from headless_manager.local.supervisor.shutdown import kill_process_tree

log = logging.getLogger(__name__)


class HeadlessSupervisor:
    """
    Keeps exactly one headless client running.

    Each cycle checks the backend, asks whether to launch with graphics,
    starts the client and waits for it to exit before starting over. The
    only ways out are a fatal error (SystemExit) or the process handle being
    closed by the exit handlers.
    """

    def __init__(
        self,
        config: HeadlessSettings,
        handle: Optional[ProcessHandle] = None,
        health_check: Callable[[Optional[str]], bool] = is_server_accessible,
        graphics_prompt: Callable[[], bool] = wait_for_graphics_input,
        launcher: Callable = launch_game,
    ) -> None:
        self.config = config
        self.handle = handle if handle is not None else ProcessHandle()
        self.health_check = health_check
        self.graphics_prompt = graphics_prompt
        self.launcher = launcher
        self.exit_code: Optional[int] = None
        self.restart_count = 0

    def run_cycle(self) -> bool:
        """
        Runs a single check, launch and wait cycle.

        :return: False if the manager is shutting down and the loop should stop.
        :raises SystemExit: On an unreachable backend or a failed launch.
        """
        if not self.health_check(self.config.backend_url):
            fatal_exit()

        with_graphics = self.graphics_prompt()

        proc = self.launcher(self.config, with_graphics)
        if proc is None:
            fatal_exit("Could not start the headless client!")

        if not self.handle.set(proc):
            log.info("Manager is shutting down, not keeping the new headless client.")
            kill_process_tree(proc)
            return False

        return_code = proc.wait()
        self.handle.clear()
        log.debug(f"Headless client (PID {proc.pid}) exited with code {return_code}.")

        if self.handle.closed:
            return False

        self.restart_count += 1
        log.info("Game exited, restarting...")
        return True

    def game_loop(self) -> None:
        """Restarts the headless client forever."""
        while self.run_cycle():
            pass

    def run(self) -> None:
        """
        Thread target around game_loop that records the exit status of a
        fatal error so the main thread can exit with it.
        """
        try:
            self.game_loop()
            self.exit_code = 0
        except SystemExit as e:
            self.exit_code = e.code if isinstance(e.code, int) else 1
        except Exception as e:
            log.critical(f"Critical error in game loop: {e}", exc_info=True)
            self.exit_code = 1
