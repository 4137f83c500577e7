"""Chooses the process strategy and executable name for the host platform."""

from __future__ import annotations

import platform
from typing import Optional

from .command_runner import CommandRunner
from .types import ProcessStrategy
from .unix_strategy import UnixProcessStrategy
from .windows_strategy import WindowsProcessStrategy

_ARM_MACHINES = {"arm64", "aarch64", "armv8", "armv8l"}


def default_process_name(system: Optional[str] = None, machine: Optional[str] = None) -> str:
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()
    is_arm = machine in _ARM_MACHINES
    if system == "windows":
        return "language_server_windows_x64.exe"
    if system == "darwin":
        return "language_server_macos_arm" if is_arm else "language_server_macos"
    return "language_server_linux_arm" if is_arm else "language_server_linux_x64"


def select_strategy(system: Optional[str] = None, runner: Optional[CommandRunner] = None) -> ProcessStrategy:
    system = (system or platform.system()).lower()
    if system == "windows":
        return WindowsProcessStrategy(runner)
    return UnixProcessStrategy(runner)
