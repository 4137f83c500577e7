"""Parses language server responses into ``QuotaSnapshot`` values."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .exceptions import ResponseParseError
from .models import ApiMethod, ModelQuotaInfo, PromptCreditsInfo, QuotaSnapshot

logger = logging.getLogger(__name__)

_SERVICE_PREFIX = "/exa.language_server_pb.LanguageServerService"

API_PATHS: Dict[ApiMethod, str] = {
    ApiMethod.GET_USER_STATUS: f"{_SERVICE_PREFIX}/GetUserStatus",
    ApiMethod.COMMAND_MODEL_CONFIG: f"{_SERVICE_PREFIX}/GetCommandModelConfigs",
}

REQUEST_BODY: Dict[str, Any] = {
    "metadata": {
        "ideName": "antigravity",
        "extensionName": "antigravity",
        "locale": "en",
    }
}

_FRACTION_PATTERN = re.compile(r"\.(\d+)")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp; nanosecond precision is truncated to microseconds."""
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_PATTERN.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Unparseable reset time %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_mapping(value: Any) -> Mapping[str, Any]:
    """Nested objects of the wrong type are treated as absent."""
    return value if isinstance(value, dict) else {}


def parse_model_quota(config: Mapping[str, Any]) -> ModelQuotaInfo:
    quota_info = _as_mapping(config.get("quotaInfo"))
    model_or_alias = _as_mapping(config.get("modelOrAlias"))
    return ModelQuotaInfo(
        label=str(config.get("label") or ""),
        model_id=str(model_or_alias.get("model") or ""),
        remaining_fraction=_as_float(quota_info.get("remainingFraction")),
        reset_time=parse_timestamp(quota_info.get("resetTime")),
    )


def parse_models(configs: Optional[Iterable[Any]]) -> List[ModelQuotaInfo]:
    """Models without ``quotaInfo`` are not quota-limited and are skipped."""
    if not isinstance(configs, (list, tuple)):
        return []
    return [
        parse_model_quota(config)
        for config in configs
        if isinstance(config, dict) and _as_mapping(config.get("quotaInfo"))
    ]


def parse_prompt_credits(plan_status: Mapping[str, Any]) -> Optional[PromptCreditsInfo]:
    plan_info = _as_mapping(plan_status.get("planInfo"))
    monthly = _as_float(plan_info.get("monthlyPromptCredits"))
    available = _as_float(plan_status.get("availablePromptCredits"))
    if monthly is None or monthly <= 0 or available is None:
        return None
    return PromptCreditsInfo(available=available, monthly=monthly)


def parse_user_status(payload: Mapping[str, Any], *, now: Optional[datetime] = None) -> QuotaSnapshot:
    user_status = payload.get("userStatus")
    if not isinstance(user_status, dict):
        raise ResponseParseError("API response format is invalid; missing userStatus")

    plan_status = _as_mapping(user_status.get("planStatus"))
    plan_info = _as_mapping(plan_status.get("planInfo"))
    model_data = _as_mapping(user_status.get("cascadeModelConfigData"))

    return QuotaSnapshot(
        timestamp=now or datetime.now(timezone.utc),
        models=tuple(parse_models(model_data.get("clientModelConfigs"))),
        prompt_credits=parse_prompt_credits(plan_status),
        plan_name=str(plan_info.get("planName") or "") or None,
    )


def parse_command_model_configs(payload: Mapping[str, Any], *, now: Optional[datetime] = None) -> QuotaSnapshot:
    return QuotaSnapshot(
        timestamp=now or datetime.now(timezone.utc),
        models=tuple(parse_models(payload.get("clientModelConfigs"))),
    )


def parse_response(method: ApiMethod, payload: Mapping[str, Any], *, now: Optional[datetime] = None) -> QuotaSnapshot:
    if method is ApiMethod.COMMAND_MODEL_CONFIG:
        return parse_command_model_configs(payload, now=now)
    return parse_user_status(payload, now=now)


__all__ = [
    "API_PATHS",
    "REQUEST_BODY",
    "parse_command_model_configs",
    "parse_model_quota",
    "parse_response",
    "parse_timestamp",
    "parse_user_status",
]
