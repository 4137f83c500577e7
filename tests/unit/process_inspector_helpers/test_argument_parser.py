from quota_watcher.process_inspector_helpers import has_app_marker, parse_command_line
from quota_watcher.process_inspector_helpers.argument_parser import parse_arguments, parse_port


class TestParseCommandLine:
    """Tests for parse_command_line."""

    def test_parses_equals_form(self) -> None:
        parsed = parse_command_line(
            "/opt/language_server_linux_x64 --extension_server_port=51000 --connect_port=51001 --csrf_token=abcDEF123456"
        )

        assert parsed.extension_port == 51000
        assert parsed.connect_port == 51001
        assert parsed.csrf_token == "abcDEF123456"

    def test_parses_space_separated_form(self) -> None:
        parsed = parse_command_line("server --csrf_token tok-1 --extension_server_port 42100 --random_port")

        assert parsed.csrf_token == "tok-1"
        assert parsed.extension_port == 42100
        assert parsed.connect_port is None

    def test_parses_bare_key_value_tokens(self) -> None:
        parsed = parse_command_line("server csrf_token=bare extension_port=42000")

        assert parsed.csrf_token == "bare"
        assert parsed.extension_port == 42000

    def test_missing_values(self) -> None:
        parsed = parse_command_line("server --verbose")

        assert parsed.csrf_token is None
        assert parsed.extension_port is None

    def test_repr_hides_token(self) -> None:
        assert "secret" not in repr(parse_command_line("s --csrf_token=secret"))


def test_parse_arguments_first_occurrence_wins():
    values = parse_arguments(["--Port=1", "--port=2", "--flag", "--next", "value"])

    assert values == {"port": "1", "next": "value"}


def test_parse_port_bounds():
    assert parse_port("443") == 443
    assert parse_port("0") is None
    assert parse_port("70000") is None
    assert parse_port("abc") is None
    assert parse_port(None) is None


def test_has_app_marker_is_case_insensitive():
    assert has_app_marker("/Applications/Antigravity.app/.../language_server_macos_arm")
    assert not has_app_marker("/usr/bin/language_server_linux_x64")
