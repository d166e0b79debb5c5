"""
The Supervisor package.
Keeps the headless client running.

This package contains the HeadlessSupervisor loop and its helper modules,
which together handle the backend health check, launching the client,
startup validation and tearing the client down with the manager.
"""
from .process_utils import ProcessHandle
from .supervisor import HeadlessSupervisor

__all__ = ['HeadlessSupervisor', 'ProcessHandle']
