"""Reads watcher defaults from ``.env`` files."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_DOUBLE_QUOTE_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", lambda match: _DOUBLE_QUOTE_ESCAPES.get(match.group(1), match.group(0)), value)


def _parse_value(raw: str) -> Optional[str]:
    """Quoted values keep ``#``; unquoted ones end at `` #``. Unterminated quotes yield ``None``."""
    raw = raw.strip()
    if raw[:1] in ("'", '"'):
        quote = raw[0]
        end = raw.find(quote, 1)
        while quote == '"' and end > 0 and raw[end - 1] == "\\":
            end = raw.find(quote, end + 1)
        if end < 0:
            return None
        body = raw[1:end]
        return _unescape(body) if quote == '"' else body
    comment = raw.find(" #")
    if comment >= 0:
        raw = raw[:comment]
    return raw.rstrip()


def parse_dotenv_line(line: str) -> Optional[Tuple[str, Optional[str]]]:
    """
    Split one line into ``(key, value)``.

    Returns ``None`` for blank lines, comments and lines without ``=``. The
    value is ``None`` when the key is not a valid variable name or a quote is
    left open.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith("#") or "=" not in stripped:
        return None
    key, raw_value = stripped.split("=", 1)
    key = key.strip()
    if key.startswith("export "):
        key = key[len("export ") :].strip()
    if not _KEY_PATTERN.match(key):
        return key, None
    return key, _parse_value(raw_value)


def parse_dotenv(lines: Iterable[str], source: str = "<string>") -> Dict[str, str]:
    values: Dict[str, str] = {}
    for number, line in enumerate(lines, start=1):
        parsed = parse_dotenv_line(line)
        if parsed is None:
            continue
        key, value = parsed
        if value is None:
            logger.warning("Skipping malformed entry %r at %s:%d", key, source, number)
            continue
        values[key] = value
    return values


class DotenvLoader:
    """Loads configuration defaults from .env-style files."""

    @staticmethod
    def load_from_file(path: Path) -> Dict[str, str]:
        """
        Load key-value pairs from *path*; a missing file yields ``{}``.

        Raises:
            ConfigurationError: If the file exists but cannot be read
        """
        if not path.exists():
            return {}
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Failed to load configuration from {path}") from exc
        values = parse_dotenv(text.splitlines(), source=str(path))
        logger.debug("Loaded %d defaults from %s", len(values), path)
        return values


__all__ = ["DotenvLoader", "parse_dotenv", "parse_dotenv_line"]
