"""Application-level response code checks."""

from typing import Any, Mapping

from ..exceptions import ResponseCodeError

SUCCESS_CODES = frozenset({0, "0", "OK", "Ok", "ok", "success", "SUCCESS"})


def is_success_code(code: Any) -> bool:
    if code is None:
        return True
    if isinstance(code, bool) or not isinstance(code, (int, str)):
        return False
    return code in SUCCESS_CODES


def validate_response_code(payload: Mapping[str, Any]) -> None:
    """Raise ``ResponseCodeError`` when *payload* carries a non-success ``code``."""
    code = payload.get("code")
    if is_success_code(code):
        return
    message = payload.get("message")
    detail = f": {message}" if message else ""
    raise ResponseCodeError(f"Invalid response code {code!r}{detail}", code=code, response_message=message)
