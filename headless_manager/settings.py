"""
This module contains the configuration settings for the Fika Headless Manager.
It defines the install-relative paths, health check parameters, console prompt
timings and logging locations used throughout the manager.

All paths are relative to the working directory, which is expected to be the
root of an SPT install.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Install Paths ---
GAME_EXECUTABLE_PATH = pathlib.Path(os.getenv("HEADLESS_GAME_EXECUTABLE", "EscapeFromTarkov.exe"))
PLUGIN_PATH = pathlib.Path(os.getenv("HEADLESS_PLUGIN_PATH", "BepInEx/plugins/Fika/Fika.Headless.dll"))
CONFIG_PATH = pathlib.Path(os.getenv("HEADLESS_CONFIG_PATH", "HeadlessConfig.json"))
LOG_OUTPUT_PATH = pathlib.Path(os.getenv("HEADLESS_LOG_OUTPUT_PATH", "BepInEx/LogOutput.log"))
LOG_ARCHIVE_SUFFIX = "_prev"

#* --- Manager Logging ---
LOGS_DIR = pathlib.Path(os.getenv("HEADLESS_LOGS_DIR", "logs"))
MANAGER_LOG_PATH = LOGS_DIR / "headless_manager.log"

#* --- Backend Health Check ---
HEALTH_CHECK_ENDPOINT = "fika/presence/get"
HEALTH_CHECK_TIMEOUT = float(os.getenv("HEADLESS_HEALTH_CHECK_TIMEOUT", "10"))  # seconds

#* --- Game Launch ---
BACKEND_VERSION_TAG = "live"
NO_GRAPHICS_ARGS = "-nographics -batchmode"
CONSOLE_ARGS = "--enable-console true"

#* --- Console Prompt ---
GRAPHICS_KEY = "g"
GRAPHICS_PROMPT_TIMEOUT = 3.0   # seconds
GRAPHICS_POLL_INTERVAL = 0.05   # seconds

#* --- Supervisor Settings ---
PROCESS_TITLE = "Fika Headless Manager"
MAIN_LOOP_JOIN_INTERVAL = 1.0   # seconds
KILL_WAIT_TIMEOUT = 5           # seconds to wait for killed processes to be reaped
