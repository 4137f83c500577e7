"""Process inspection for Linux and macOS."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from typing import List, Optional, Sequence

import psutil

from .command_runner import CommandRunner
from .sanitizer import validate_pid
from .types import ProcessCandidate

logger = logging.getLogger(__name__)

_LISTEN_PATTERN = re.compile(r":(\d+)\s+\(LISTEN\)")


def _matches(process_name: str, name: str, cmdline: Sequence[str]) -> bool:
    if process_name in name:
        return True
    return bool(cmdline) and os.path.basename(cmdline[0]).startswith(process_name)


def scan_processes(process_name: str) -> List[ProcessCandidate]:
    """Enumerate processes whose executable matches *process_name*."""
    matches: List[ProcessCandidate] = []
    for proc in psutil.process_iter(["pid", "name", "cmdline"]):
        try:
            name = proc.info.get("name") or ""
            cmdline = proc.info.get("cmdline") or []
            if not _matches(process_name, name, cmdline):
                continue
            matches.append(ProcessCandidate(pid=proc.info["pid"], name=name, command_line=" ".join(cmdline)))
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return matches


def parse_lsof_ports(output: str) -> List[int]:
    ports: List[int] = []
    for line in output.splitlines():
        match = _LISTEN_PATTERN.search(line)
        if not match:
            continue
        port = int(match.group(1))
        if port not in ports:
            ports.append(port)
    return ports


class UnixProcessStrategy:
    """psutil enumeration plus ``lsof`` for listening sockets."""

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        self._runner = runner or CommandRunner()

    async def list_candidates(self, process_name: str) -> List[ProcessCandidate]:
        return await asyncio.to_thread(scan_processes, process_name)

    async def listening_ports(self, pid: int) -> List[int]:
        safe_pid = validate_pid(pid)
        result = await self._runner.run(["lsof", "-nP", "-a", "-iTCP", "-sTCP:LISTEN", "-p", str(safe_pid)])
        if not result.ok:
            # lsof exits 1 when the PID has no matching sockets
            logger.debug("lsof returned %s for pid %s", result.returncode, safe_pid)
            return []
        return parse_lsof_ports(result.stdout)
