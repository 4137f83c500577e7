"""Shared types for process inspection strategies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol


@dataclass(frozen=True)
class ProcessCandidate:
    pid: int
    name: str
    command_line: str


class ProcessStrategy(Protocol):
    """Platform-specific process enumeration and port listing."""

    async def list_candidates(self, process_name: str) -> List[ProcessCandidate]: ...

    async def listening_ports(self, pid: int) -> List[int]: ...
