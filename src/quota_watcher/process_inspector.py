"""Locates the language server process and reads its launch arguments."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

import psutil

from .models import ProcessInfo
from .process_inspector_helpers import (
    ParsedArguments,
    ProcessCandidate,
    ProcessStrategy,
    default_process_name,
    has_app_marker,
    parse_command_line,
    select_strategy,
)
from .process_inspector_helpers.argument_parser import DEFAULT_APP_MARKER

logger = logging.getLogger(__name__)

_INSPECTION_ERRORS = (OSError, ValueError, RuntimeError, psutil.Error, asyncio.TimeoutError)


class ProcessInspector:
    """
    Finds the running language server and extracts ports and CSRF token.

    ``discover`` never raises for "not found"; unexpected inspection failures
    are logged and reported as ``None``.
    """

    def __init__(
        self,
        strategy: Optional[ProcessStrategy] = None,
        *,
        process_name: Optional[str] = None,
        app_marker: str = DEFAULT_APP_MARKER,
    ) -> None:
        self._strategy = strategy or select_strategy()
        self.process_name = process_name or default_process_name()
        self._app_marker = app_marker

    async def discover(self) -> Optional[ProcessInfo]:
        try:
            candidates = await self._strategy.list_candidates(self.process_name)
        except _INSPECTION_ERRORS as exc:
            logger.warning("Process listing for %s failed: %s", self.process_name, exc)
            return None

        chosen = self._choose(candidates)
        if chosen is None:
            logger.info("No %s process with a CSRF token found (%d candidates)", self.process_name, len(candidates))
            return None

        candidate, parsed = chosen
        listening_ports = await self._listening_ports(candidate.pid)
        logger.info(
            "Found %s pid=%s extension_port=%s connect_port=%s listening=%s",
            self.process_name,
            candidate.pid,
            parsed.extension_port,
            parsed.connect_port,
            list(listening_ports),
        )
        return ProcessInfo(
            pid=candidate.pid,
            raw_command_line=candidate.command_line,
            csrf_token=parsed.csrf_token or "",
            extension_port=parsed.extension_port,
            connect_port=parsed.connect_port,
            listening_ports=listening_ports,
        )

    def _choose(self, candidates: List[ProcessCandidate]) -> Optional[Tuple[ProcessCandidate, ParsedArguments]]:
        with_token = []
        for candidate in candidates:
            parsed = parse_command_line(candidate.command_line)
            if parsed.csrf_token:
                with_token.append((candidate, parsed))
        for candidate, parsed in with_token:
            if has_app_marker(candidate.command_line, self._app_marker):
                return candidate, parsed
        return with_token[0] if with_token else None

    async def _listening_ports(self, pid: int) -> Tuple[int, ...]:
        try:
            return tuple(await self._strategy.listening_ports(pid))
        except _INSPECTION_ERRORS as exc:
            logger.warning("Listing ports for pid %s failed: %s", pid, exc)
            return ()


__all__ = ["ProcessInspector"]
