from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest

from quota_watcher import __main__ as cli
from quota_watcher.models import (
    ApiMethod,
    ConnectionInfo,
    ModelQuotaInfo,
    PromptCreditsInfo,
    QuotaSnapshot,
)
from quota_watcher.watcher_config import WatcherConfig

_NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _snapshot() -> QuotaSnapshot:
    return QuotaSnapshot(
        timestamp=_NOW,
        models=(
            ModelQuotaInfo(label="Gemini", model_id="MODEL_GEMINI", remaining_fraction=0.5, reset_time=_NOW + timedelta(hours=1)),
            ModelQuotaInfo(label="Claude", model_id="MODEL_CLAUDE"),
        ),
        prompt_credits=PromptCreditsInfo(available=400, monthly=1000),
        plan_name="Pro",
    )


def _fake_engine(info=None, snapshot=None):
    engine = MagicMock()
    engine.detect_port = AsyncMock(return_value=info)
    engine.fetch_quota_data = AsyncMock(return_value=snapshot)
    engine.dispose = AsyncMock()
    return engine


def test_describe_snapshot():
    assert cli.describe_snapshot(_snapshot()) == [
        "Plan: Pro",
        "Prompt credits: 400/1000 (40.0% left)",
        "Claude: exhausted (resets in n/a)",
        "Gemini: 50.0% (resets in 1h 0m)",
    ]


def test_snapshot_to_dict():
    data = cli.snapshot_to_dict(_snapshot())

    assert data["plan_name"] == "Pro"
    assert data["prompt_credits"]["remaining_percentage"] == 40.0
    assert [model["label"] for model in data["models"]] == ["Gemini", "Claude"]
    assert data["models"][1]["is_exhausted"] is True


def test_apply_arguments_overrides_config():
    args = cli.build_parser().parse_args(["--interval", "5", "--api-method", "COMMAND_MODEL_CONFIG", "--allow-http-fallback"])

    config = cli.apply_arguments(WatcherConfig(), args)

    assert config.poll_interval_seconds == 10.0
    assert config.api_method is ApiMethod.COMMAND_MODEL_CONFIG
    assert config.allow_http_fallback is True


def test_apply_arguments_without_flags_keeps_config():
    config = WatcherConfig()

    assert cli.apply_arguments(config, cli.build_parser().parse_args([])) is config


def test_main_reports_configuration_errors(monkeypatch, capsys):
    monkeypatch.setenv("QUOTA_WATCHER_REQUEST_TIMEOUT_SECONDS", "0")

    assert cli.main(["--once"]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_main_once_prints_snapshot_json(monkeypatch, capsys):
    engine = _fake_engine(ConnectionInfo(connect_port=51001, csrf_token="tok"), _snapshot())
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    monkeypatch.setattr(cli.QuotaEngine, "create", classmethod(lambda cls, config=None, **kwargs: engine))

    assert cli.main(["--once"]) == 0

    output = orjson.loads(capsys.readouterr().out)
    assert output["plan_name"] == "Pro"
    assert output["models"][0]["remaining_fraction"] == 0.5
    engine.dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_once_without_server():
    engine = _fake_engine()

    assert await cli.run_once(engine) == 1

    engine.fetch_quota_data.assert_not_awaited()
    engine.dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_once_fetch_failure():
    engine = _fake_engine(ConnectionInfo(connect_port=51001, csrf_token="tok"), None)

    assert await cli.run_once(engine) == 1
    engine.dispose.assert_awaited_once()
