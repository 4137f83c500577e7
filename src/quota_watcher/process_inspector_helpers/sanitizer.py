"""Input hygiene for values that are copied into subprocess arguments."""

import re

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_.\-]")


def sanitize_token(value: str) -> str:
    """Strip everything outside ``[A-Za-z0-9_.-]``."""
    return _UNSAFE_CHARACTERS.sub("", value)


def validate_pid(pid: object) -> int:
    """
    Return *pid* as a positive ``int``.

    Raises:
        ValueError: If *pid* is not a positive integer
    """
    if isinstance(pid, bool):
        raise ValueError(f"Invalid PID: {pid!r}")
    if isinstance(pid, int):
        value = pid
    elif isinstance(pid, str) and pid.strip().isdigit():
        value = int(pid.strip())
    else:
        raise ValueError(f"Invalid PID: {pid!r}")
    if value <= 0:
        raise ValueError(f"Invalid PID: {pid!r}")
    return value
