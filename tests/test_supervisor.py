"""Tests for the restart loop of the HeadlessSupervisor."""

from __future__ import annotations

import subprocess
import threading
from pathlib import Path
from typing import List, Optional
from unittest.mock import MagicMock, patch

import pytest

from headless_manager.local.config import HeadlessSettings, load_settings
from headless_manager.local.supervisor import HeadlessSupervisor, ProcessHandle, process_utils
from headless_manager.local.supervisor.process_utils import launch_game

# Bound before any test patches Popen, so specs stay on the real class.
REAL_POPEN = subprocess.Popen


class FakeProcess:
    """Stands in for a Popen object; tracks whether wait() was observed."""

    _next_pid = 1000

    def __init__(self, return_code: int = 0) -> None:
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.return_code = return_code
        self.exited = False

    def wait(self) -> int:
        self.exited = True
        return self.return_code

    def poll(self) -> Optional[int]:
        return self.return_code if self.exited else None


class HealthSequence:
    """Reports healthy a fixed number of times, then unhealthy."""

    def __init__(self, healthy_checks: int) -> None:
        self.remaining = healthy_checks
        self.calls: List[Optional[str]] = []

    def __call__(self, backend_url: Optional[str]) -> bool:
        self.calls.append(backend_url)
        self.remaining -= 1
        return self.remaining >= 0


def test_unreachable_backend_exits_without_launch(headless_settings: HeadlessSettings, caplog: pytest.LogCaptureFixture) -> None:
    launcher = MagicMock()
    supervisor = HeadlessSupervisor(headless_settings, health_check=lambda url: False, graphics_prompt=lambda: False, launcher=launcher)

    with pytest.raises(SystemExit) as exc_info:
        supervisor.game_loop()

    assert exc_info.value.code == 1
    launcher.assert_not_called()


def test_failed_launch_is_fatal(headless_settings: HeadlessSettings, caplog: pytest.LogCaptureFixture) -> None:
    supervisor = HeadlessSupervisor(headless_settings, health_check=lambda url: True, graphics_prompt=lambda: False, launcher=lambda c, g: None)

    with pytest.raises(SystemExit) as exc_info:
        supervisor.game_loop()

    assert exc_info.value.code == 1
    assert "Could not start the headless client!" in caplog.text


def test_health_check_uses_configured_backend(headless_settings: HeadlessSettings) -> None:
    health = HealthSequence(healthy_checks=0)
    supervisor = HeadlessSupervisor(headless_settings, health_check=health, graphics_prompt=lambda: False, launcher=MagicMock())

    with pytest.raises(SystemExit):
        supervisor.game_loop()

    assert health.calls == ["https://localhost:6969/"]


def test_every_exit_triggers_restart(headless_settings: HeadlessSettings) -> None:
    return_codes = iter([0, 1, -11])
    launched: List[FakeProcess] = []

    def launcher(config, with_graphics):
        proc = FakeProcess(next(return_codes))
        launched.append(proc)
        return proc

    supervisor = HeadlessSupervisor(headless_settings, health_check=HealthSequence(3), graphics_prompt=lambda: False, launcher=launcher)

    with pytest.raises(SystemExit):
        supervisor.game_loop()

    assert len(launched) == 3
    assert supervisor.restart_count == 3
    assert all(p.exited for p in launched)


def test_never_two_children_alive(headless_settings: HeadlessSettings) -> None:
    handle = ProcessHandle()
    launched: List[FakeProcess] = []

    def launcher(config, with_graphics):
        # The previous child must have been waited on and released first.
        assert all(p.exited for p in launched)
        assert handle.get() is None
        proc = FakeProcess()
        launched.append(proc)
        return proc

    supervisor = HeadlessSupervisor(headless_settings, handle, health_check=HealthSequence(4), graphics_prompt=lambda: False, launcher=launcher)

    with pytest.raises(SystemExit):
        supervisor.game_loop()

    assert len(launched) == 4


def test_handle_tracks_running_child(headless_settings: HeadlessSettings) -> None:
    handle = ProcessHandle()
    seen_while_running = []

    class ObservedProcess(FakeProcess):
        def wait(self) -> int:
            seen_while_running.append(handle.get())
            return super().wait()

    proc = ObservedProcess()
    supervisor = HeadlessSupervisor(headless_settings, handle, health_check=HealthSequence(1), graphics_prompt=lambda: False, launcher=lambda c, g: proc)

    with pytest.raises(SystemExit):
        supervisor.game_loop()

    assert seen_while_running == [proc]
    assert handle.get() is None


def test_graphics_choice_is_passed_to_launcher(headless_settings: HeadlessSettings) -> None:
    choices = iter([True, False])
    seen = []

    def launcher(config, with_graphics):
        seen.append(with_graphics)
        return FakeProcess()

    supervisor = HeadlessSupervisor(headless_settings, health_check=HealthSequence(2), graphics_prompt=lambda: next(choices), launcher=launcher)

    with pytest.raises(SystemExit):
        supervisor.game_loop()

    assert seen == [True, False]


def test_loop_stops_after_handle_closed(headless_settings: HeadlessSettings) -> None:
    handle = ProcessHandle()

    class ClosingProcess(FakeProcess):
        def wait(self) -> int:
            with patch.object(process_utils, "kill_process_tree"):
                handle.close()
            return super().wait()

    launcher = MagicMock(side_effect=lambda c, g: ClosingProcess())
    supervisor = HeadlessSupervisor(headless_settings, handle, health_check=lambda url: True, graphics_prompt=lambda: False, launcher=launcher)

    supervisor.game_loop()

    assert launcher.call_count == 1


def test_run_records_fatal_exit_code(headless_settings: HeadlessSettings) -> None:
    supervisor = HeadlessSupervisor(headless_settings, health_check=lambda url: False, graphics_prompt=lambda: False, launcher=MagicMock())

    thread = threading.Thread(target=supervisor.run, daemon=True)
    thread.start()
    thread.join(timeout=5)

    assert not thread.is_alive()
    assert supervisor.exit_code == 1


def test_run_records_unexpected_error(headless_settings: HeadlessSettings) -> None:
    def broken_launcher(config, with_graphics):
        raise ValueError("boom")

    supervisor = HeadlessSupervisor(headless_settings, health_check=lambda url: True, graphics_prompt=lambda: False, launcher=broken_launcher)

    supervisor.run()

    assert supervisor.exit_code == 1


def test_end_to_end_headless_launch_and_restart(install_dir: Path) -> None:
    """abc config, healthy backend, no key pressed: launched headless, then restarted."""
    config = load_settings()
    commands = []

    def fake_popen(command, **kwargs):
        commands.append(command if isinstance(command, str) else " ".join(command))
        proc = MagicMock(spec=REAL_POPEN)
        proc.pid = 5000 + len(commands)
        proc.wait.return_value = 0
        proc.poll.return_value = 0
        return proc

    supervisor = HeadlessSupervisor(config, health_check=HealthSequence(2), graphics_prompt=lambda: False, launcher=launch_game)

    with patch.object(process_utils.subprocess, "Popen", side_effect=fake_popen):
        with pytest.raises(SystemExit) as exc_info:
            supervisor.game_loop()

    assert exc_info.value.code == 1
    assert len(commands) == 2
    for command in commands:
        assert "-token=abc" in command
        assert "-nographics -batchmode" in command
        assert "--enable-console true" in command
        assert "'BackendUrl':'https://localhost:6969/'" in command


def test_child_started_after_close_is_killed(headless_settings: HeadlessSettings) -> None:
    from headless_manager.local.supervisor import supervisor as supervisor_module

    handle = ProcessHandle()
    with patch.object(process_utils, "kill_process_tree"):
        handle.close()
    proc = FakeProcess()
    supervisor = HeadlessSupervisor(headless_settings, handle, health_check=lambda url: True, graphics_prompt=lambda: False, launcher=lambda c, g: proc)

    with patch.object(supervisor_module, "kill_process_tree") as kill:
        supervisor.game_loop()

    kill.assert_called_once_with(proc)
    assert handle.get() is None
    assert proc.exited is False
