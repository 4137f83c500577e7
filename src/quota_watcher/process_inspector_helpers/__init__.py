"""Helpers for locating the language server process."""

from .argument_parser import ParsedArguments, has_app_marker, parse_command_line
from .command_runner import CommandResult, CommandRunner
from .platform_selector import default_process_name, select_strategy
from .sanitizer import sanitize_token, validate_pid
from .types import ProcessCandidate, ProcessStrategy
from .unix_strategy import UnixProcessStrategy
from .windows_strategy import WindowsProcessStrategy

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ParsedArguments",
    "ProcessCandidate",
    "ProcessStrategy",
    "UnixProcessStrategy",
    "WindowsProcessStrategy",
    "default_process_name",
    "has_app_marker",
    "parse_command_line",
    "sanitize_token",
    "select_strategy",
    "validate_pid",
]
