"""Maps error messages to recovery categories."""

from ..models import ErrorType

_RULES = (
    (ErrorType.CONNECTION_REFUSED, ("econnrefused", "connection refused")),
    (ErrorType.PROTOCOL_ERROR, ("eproto", "wrong_version")),
    (ErrorType.TIMEOUT, ("timeout", "etimedout")),
    (ErrorType.PORT_DETECTION, ("port", "not found")),
    (ErrorType.AUTH_ERROR, ("unauthorized", "forbidden")),
)


def classify_error(message: str) -> ErrorType:
    """
    Classify *message* by case-insensitive substring match; the first matching
    rule wins.

    Matching is purely lexical, so a message such as ``"report timeout"``
    lands in TIMEOUT even though it also mentions "port".
    """
    if not message:
        return ErrorType.UNKNOWN

    lowered = message.lower()
    for error_type, needles in _RULES:
        if any(needle in lowered for needle in needles):
            return error_type
    return ErrorType.UNKNOWN
