import logging
from pathlib import Path

import pytest

from quota_watcher.config import ConfigurationError
from quota_watcher.config.runtime_helpers import DotenvLoader
from quota_watcher.config.runtime_helpers.dotenv_loader import parse_dotenv, parse_dotenv_line


def test_missing_file_yields_empty_mapping(tmp_path):
    assert DotenvLoader.load_from_file(tmp_path / "absent.env") == {}


def test_parses_quoted_and_exported_values(tmp_path):
    path = tmp_path / ".env"
    path.write_text('\n# ignored\nA=1\nexport B="two"\nC = \'three\'\nnot a pair\n')

    assert DotenvLoader.load_from_file(path) == {"A": "1", "B": "two", "C": "three"}


def test_unreadable_file_raises_configuration_error(monkeypatch, tmp_path):
    path = tmp_path / ".env"
    path.write_text("A=1")

    def _boom(self, *args, **kwargs):
        raise OSError("denied")

    monkeypatch.setattr(Path, "read_text", _boom)

    with pytest.raises(ConfigurationError, match="Failed to load configuration"):
        DotenvLoader.load_from_file(path)


def test_inline_comments_and_escapes(tmp_path):
    path = tmp_path / ".env"
    path.write_text(
        "QUOTA_WATCHER_API_METHOD=COMMAND_MODEL_CONFIG # faster\n"
        'QUOTA_WATCHER_PROCESS_NAME="language server #2"\n'
        'GREETING="line\\nbreak \\"quoted\\""\n'
        "RAW='no \\n escapes'\n"
    )

    assert DotenvLoader.load_from_file(path) == {
        "QUOTA_WATCHER_API_METHOD": "COMMAND_MODEL_CONFIG",
        "QUOTA_WATCHER_PROCESS_NAME": "language server #2",
        "GREETING": 'line\nbreak "quoted"',
        "RAW": "no \\n escapes",
    }


def test_malformed_entries_are_skipped_with_warning(caplog):
    lines = ["1BAD=value", "OPEN='unterminated", "GOOD=yes"]

    with caplog.at_level(logging.WARNING):
        values = parse_dotenv(lines, source="test.env")

    assert values == {"GOOD": "yes"}
    assert "test.env:1" in caplog.text
    assert "test.env:2" in caplog.text


def test_parse_dotenv_line_ignores_comments_and_blank_lines():
    assert parse_dotenv_line("   ") is None
    assert parse_dotenv_line("# KEY=value") is None
    assert parse_dotenv_line("export KEY = value") == ("KEY", "value")
    assert parse_dotenv_line("KEY=") == ("KEY", "")
