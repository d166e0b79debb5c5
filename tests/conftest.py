"""Shared fixtures for the headless manager tests.

Every test that touches install files runs inside a temporary working
directory, since all install paths are relative to the working directory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

import headless_manager.settings as settings
from headless_manager.local.config import HeadlessSettings
from headless_manager.local.console import handler as console_handler


@pytest.fixture(autouse=True)
def no_keypress_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Never block on 'press any key' prompts."""
    monkeypatch.setattr(console_handler, "wait_for_any_key", lambda: None)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An empty working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write_config(directory: Path, data: Any) -> Path:
    path = directory / settings.CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def install_dir(workdir: Path) -> Path:
    """A working directory laid out like a complete SPT install with Fika Headless."""
    exe = workdir / settings.GAME_EXECUTABLE_PATH
    exe.write_bytes(b"")
    plugin = workdir / settings.PLUGIN_PATH
    plugin.parent.mkdir(parents=True, exist_ok=True)
    plugin.write_bytes(b"")
    write_config(workdir, {
        "ProfileId": "abc",
        "BackendUrl": "https://localhost:6969/",
        "StartMinimized": False,
    })
    return workdir


@pytest.fixture
def headless_settings() -> HeadlessSettings:
    return HeadlessSettings(profile_id="abc", backend_url="https://localhost:6969/", start_minimized=False)
