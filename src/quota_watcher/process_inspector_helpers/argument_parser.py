"""Command-line parsing for the language server process."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence

EXTENSION_PORT_KEYS = ("extension_server_port", "extension_port")
CONNECT_PORT_KEYS = ("connect_port", "https_server_port", "server_port")
CSRF_TOKEN_KEYS = ("csrf_token",)
DEFAULT_APP_MARKER = "antigravity"


@dataclass(frozen=True)
class ParsedArguments:
    csrf_token: Optional[str] = field(default=None, repr=False)
    extension_port: Optional[int] = None
    connect_port: Optional[int] = None


def tokenize(command_line: str) -> list[str]:
    return command_line.split()


def parse_arguments(tokens: Sequence[str]) -> Dict[str, str]:
    """
    Collect ``--key=value``, ``--key value`` and bare ``key=value`` tokens.

    Keys are lower-cased with leading dashes removed. The first occurrence of
    a key wins.
    """
    values: Dict[str, str] = {}
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        is_flag = token.startswith("-")
        key = token.lstrip("-")
        if not key:
            continue
        if "=" in key:
            name, value = key.split("=", 1)
        elif is_flag and index < len(tokens) and not tokens[index].startswith("-"):
            name, value = key, tokens[index]
            index += 1
        else:
            continue
        values.setdefault(name.lower(), value.strip("'\""))
    return values


def parse_port(value: Optional[str]) -> Optional[int]:
    if value is None or not value.isdigit():
        return None
    port = int(value)
    if 0 < port < 65536:
        return port
    return None


def _first(values: Dict[str, str], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        if values.get(key):
            return values[key]
    return None


def parse_command_line(command_line: str) -> ParsedArguments:
    values = parse_arguments(tokenize(command_line))
    return ParsedArguments(
        csrf_token=_first(values, CSRF_TOKEN_KEYS),
        extension_port=parse_port(_first(values, EXTENSION_PORT_KEYS)),
        connect_port=parse_port(_first(values, CONNECT_PORT_KEYS)),
    )


def has_app_marker(command_line: str, marker: str = DEFAULT_APP_MARKER) -> bool:
    return marker.lower() in command_line.lower()
