from datetime import datetime, timedelta, timezone

import pytest

from quota_watcher.models import (
    ApiMethod,
    ConnectionInfo,
    ModelQuotaInfo,
    ProcessInfo,
    PromptCreditsInfo,
    format_time_until_reset,
)

_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestModelQuotaInfo:
    def test_missing_fraction_is_exhausted(self) -> None:
        model = ModelQuotaInfo(label="Gemini", model_id="m1")

        assert model.is_exhausted is True
        assert model.remaining_percentage is None

    def test_zero_fraction_is_exhausted(self) -> None:
        assert ModelQuotaInfo(label="Gemini", model_id="m1", remaining_fraction=0.0).is_exhausted is True

    def test_partial_fraction(self) -> None:
        model = ModelQuotaInfo(label="Gemini", model_id="m1", remaining_fraction=0.25)

        assert model.is_exhausted is False
        assert model.remaining_percentage == pytest.approx(25.0)

    def test_time_until_reset_uses_injected_now(self) -> None:
        model = ModelQuotaInfo(label="Gemini", model_id="m1", reset_time=_NOW + timedelta(hours=2))

        assert model.time_until_reset(_NOW) == timedelta(hours=2)
        assert ModelQuotaInfo(label="x", model_id="y").time_until_reset(_NOW) is None


def test_prompt_credits_percentages():
    credits = PromptCreditsInfo(available=250, monthly=1000)

    assert credits.used_percentage == pytest.approx(75.0)
    assert credits.remaining_percentage == pytest.approx(25.0)


def test_process_info_port_candidates_are_ordered_and_unique():
    info = ProcessInfo(
        pid=10,
        raw_command_line="",
        csrf_token="t",
        extension_port=51000,
        connect_port=51001,
        listening_ports=(51001, 51002, 51000),
    )

    assert info.port_candidates == (51001, 51000, 51002)


def test_connection_info_repr_hides_token():
    info = ConnectionInfo(connect_port=1, csrf_token="secret-token")

    assert "secret-token" not in repr(info)
    assert info.confidence == "high"
    assert info.source == "process"


def test_api_method_toggle():
    assert ApiMethod.GET_USER_STATUS.toggled() is ApiMethod.COMMAND_MODEL_CONFIG
    assert ApiMethod.COMMAND_MODEL_CONFIG.toggled() is ApiMethod.GET_USER_STATUS


@pytest.mark.parametrize(
    ("delta", "expected"),
    [
        (None, "n/a"),
        (timedelta(seconds=-1), "expired"),
        (timedelta(seconds=42), "42s"),
        (timedelta(minutes=5, seconds=6), "5m 6s"),
        (timedelta(hours=3, minutes=4), "3h 4m"),
        (timedelta(days=1, hours=2, minutes=30), "1d 2h"),
    ],
)
def test_format_time_until_reset(delta, expected):
    assert format_time_until_reset(delta) == expected
