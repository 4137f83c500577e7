"""Process inspection for Windows via PowerShell and netstat."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import orjson

from .command_runner import CommandRunner
from .sanitizer import sanitize_token, validate_pid
from .types import ProcessCandidate

logger = logging.getLogger(__name__)


def build_process_query(process_name: str) -> List[str]:
    safe_name = sanitize_token(process_name)
    script = (
        f"Get-CimInstance Win32_Process -Filter \"name='{safe_name}'\" "
        "| Select-Object ProcessId,Name,CommandLine | ConvertTo-Json -Compress"
    )
    return ["powershell", "-NoProfile", "-NonInteractive", "-Command", script]


def parse_process_listing(output: str) -> List[ProcessCandidate]:
    """
    Parse ``ConvertTo-Json`` output, which is an object for one match and a
    list for several.

    Raises:
        ValueError: If the output is not JSON
    """
    text = output.strip()
    if not text:
        return []
    payload: Any = orjson.loads(text)
    entries = payload if isinstance(payload, list) else [payload]

    candidates: List[ProcessCandidate] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        pid = entry.get("ProcessId")
        if not isinstance(pid, int) or pid <= 0:
            continue
        candidates.append(
            ProcessCandidate(
                pid=pid,
                name=str(entry.get("Name") or ""),
                command_line=str(entry.get("CommandLine") or ""),
            )
        )
    return candidates


def parse_netstat_ports(output: str, pid: int) -> List[int]:
    ports: List[int] = []
    target = str(pid)
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 5 or parts[0].upper() != "TCP":
            continue
        if parts[3].upper() != "LISTENING" or parts[4] != target:
            continue
        _, _, port_text = parts[1].rpartition(":")
        if port_text.isdigit():
            port = int(port_text)
            if port not in ports:
                ports.append(port)
    return ports


class WindowsProcessStrategy:
    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        self._runner = runner or CommandRunner()

    async def list_candidates(self, process_name: str) -> List[ProcessCandidate]:
        result = await self._runner.run(build_process_query(process_name))
        if not result.ok:
            logger.warning("Process query failed (exit %s): %s", result.returncode, result.stderr.strip())
            return []
        return parse_process_listing(result.stdout)

    async def listening_ports(self, pid: int) -> List[int]:
        safe_pid = validate_pid(pid)
        result = await self._runner.run(["netstat", "-ano", "-p", "TCP"])
        if not result.ok:
            logger.warning("netstat failed (exit %s)", result.returncode)
            return []
        return parse_netstat_ports(result.stdout, safe_pid)
