from quota_watcher.models import ErrorRecord, ErrorType
from quota_watcher.recovery_policy_helpers import MAX_HISTORY_SIZE, ErrorHistory


def _record(timestamp: float, error_type: ErrorType = ErrorType.TIMEOUT) -> ErrorRecord:
    return ErrorRecord(error_type=error_type, message="request timeout", timestamp=timestamp)


def test_history_is_bounded():
    history = ErrorHistory()
    for index in range(MAX_HISTORY_SIZE + 5):
        history.add(_record(float(index)))

    assert len(history) == 20
    assert history.records()[0].timestamp == 5.0


def test_recent_window_is_strict():
    history = ErrorHistory(window_seconds=300.0)
    history.add(_record(0.0))
    history.add(_record(100.0))

    assert len(history.recent(299.0)) == 2
    assert len(history.recent(300.0)) == 1
    assert history.recent(500.0) == []


def test_statistics_and_clear():
    history = ErrorHistory()
    history.add(_record(0.0, ErrorType.TIMEOUT))
    history.add(_record(400.0, ErrorType.CONNECTION_REFUSED))
    history.add(_record(450.0, ErrorType.CONNECTION_REFUSED))

    stats = history.statistics(500.0)

    assert stats.total_errors == 3
    assert stats.recent_errors == 2
    assert stats.error_types == {ErrorType.TIMEOUT: 1, ErrorType.CONNECTION_REFUSED: 2}

    history.clear()
    assert history.statistics(500.0).total_errors == 0
