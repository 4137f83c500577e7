import pytest

from quota_watcher.process_inspector_helpers import (
    UnixProcessStrategy,
    WindowsProcessStrategy,
    default_process_name,
    select_strategy,
)


@pytest.mark.parametrize(
    ("system", "machine", "expected"),
    [
        ("Windows", "AMD64", "language_server_windows_x64.exe"),
        ("Darwin", "arm64", "language_server_macos_arm"),
        ("Darwin", "x86_64", "language_server_macos"),
        ("Linux", "x86_64", "language_server_linux_x64"),
        ("Linux", "aarch64", "language_server_linux_arm"),
    ],
)
def test_default_process_name(system, machine, expected):
    assert default_process_name(system, machine) == expected


def test_select_strategy_by_platform():
    assert isinstance(select_strategy("Windows"), WindowsProcessStrategy)
    assert isinstance(select_strategy("Darwin"), UnixProcessStrategy)
    assert isinstance(select_strategy("Linux"), UnixProcessStrategy)
