import pytest
from structlog.testing import capture_logs

from waiveo_installer.config.collector import (
    CommandLineOverrides,
    ConfigurationCollector,
    EnvironmentDefaults,
    is_attended_install,
    parse_bool,
    parse_port,
)
from waiveo_installer.config.models import InstallRequest


@pytest.fixture
def make_collector(installer_config):
    """Build a ConfigurationCollector with explicit defaults and TTY state."""

    def _make(defaults: EnvironmentDefaults | None = None, attended: bool = False):
        return ConfigurationCollector(
            installer_config, defaults=defaults or EnvironmentDefaults(), attended=attended
        )

    return _make


@pytest.fixture
def mock_prompts(mocker):
    """Patch the click prompts used by the interactive session."""
    confirm = mocker.patch("waiveo_installer.config.collector.click.confirm", return_value=True)
    prompt = mocker.patch("waiveo_installer.config.collector.click.prompt", return_value="80")
    mocker.patch("waiveo_installer.config.collector.click.echo")
    return confirm, prompt


class TestParsePort:
    """Tests for port parsing."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            pytest.param("8080", 8080, id="valid"),
            pytest.param(" 443 ", 443, id="whitespace"),
            pytest.param(8443, 8443, id="int"),
            pytest.param("1", 1, id="lower_bound"),
            pytest.param("65535", 65535, id="upper_bound"),
            pytest.param("0", 80, id="zero"),
            pytest.param("65536", 80, id="too_large"),
            pytest.param("-1", 80, id="negative"),
            pytest.param("abc", 80, id="text"),
            pytest.param("80.5", 80, id="decimal"),
            pytest.param("", 80, id="empty"),
            pytest.param(None, 80, id="none"),
        ],
    )
    def test_parse_port(self, raw, expected):
        """Should return the port when valid and 80 otherwise."""
        assert parse_port(raw) == expected

    @pytest.mark.parametrize("raw", ["8080", "0", "99999", "x", "", "1", "65535"])
    def test_parse_port_is_idempotent(self, raw):
        """Should map its own output to itself."""
        once = parse_port(raw)

        assert parse_port(once) == once
        assert 1 <= once <= 65535

    def test_custom_default(self):
        """Should return the supplied default for invalid input."""
        assert parse_port("nope", default=-1) == -1


class TestEnvironmentDefaults:
    """Tests for environment-derived defaults."""

    def test_empty_environment(self):
        """Should fall back to latest, port 80 and no hostname change."""
        assert EnvironmentDefaults.from_environ({}) == EnvironmentDefaults("latest", False, 80)

    def test_reads_environment(self):
        """Should read version, hostname flag and port."""
        defaults = EnvironmentDefaults.from_environ(
            {"WAIVEO_VERSION": " v1.2.0 ", "SET_HOSTNAME": "true", "WAIVEO_PORT": "8080"}
        )

        assert defaults == EnvironmentDefaults("v1.2.0", True, 8080)

    def test_invalid_port_warns(self):
        """Should warn and use port 80 for a malformed WAIVEO_PORT."""
        with capture_logs() as logs:
            defaults = EnvironmentDefaults.from_environ({"WAIVEO_PORT": "eighty"})

        assert defaults.port == 80
        assert logs[0]["log_level"] == "warning"
        assert "eighty" in logs[0]["event"]

    @pytest.mark.parametrize(
        "raw,expected",
        [
            pytest.param("1", True, id="one"),
            pytest.param("YES", True, id="yes_upper"),
            pytest.param("on", True, id="on"),
            pytest.param("0", False, id="zero"),
            pytest.param("", False, id="empty"),
            pytest.param(None, False, id="unset"),
        ],
    )
    def test_parse_bool(self, raw, expected):
        """Should accept the usual truthy spellings."""
        assert parse_bool(raw) is expected

    def test_is_attended_install(self, mocker):
        """Should report attended when stdin is a terminal."""
        stdin = mocker.patch("waiveo_installer.config.collector.sys.stdin")
        stdin.isatty.return_value = True

        assert is_attended_install() is True


class TestCommandLineOverrides:
    """Tests for flag bookkeeping."""

    @pytest.mark.parametrize(
        "overrides,expected",
        [
            pytest.param(CommandLineOverrides(), False, id="none"),
            pytest.param(CommandLineOverrides(non_interactive=True), False, id="non_interactive"),
            pytest.param(CommandLineOverrides(port="8080"), True, id="port"),
            pytest.param(CommandLineOverrides(version="v1.0.0"), True, id="version"),
            pytest.param(CommandLineOverrides(set_hostname=True), True, id="set_hostname"),
        ],
    )
    def test_affects_configuration(self, overrides, expected):
        """Should flag any supplied configuration option."""
        assert overrides.affects_configuration is expected


class TestNonInteractivePath:
    """Tests for flag and environment resolution."""

    def test_flags_override_environment(self, make_collector, mock_prompts):
        """Should prefer flags over environment values without prompting."""
        collector = make_collector(EnvironmentDefaults("v0.9.0", False, 9000), attended=True)

        request = collector.collect(
            CommandLineOverrides(version="v1.0.0", set_hostname=True, port="8080")
        )

        assert request == InstallRequest(
            requested_version="v1.0.0", port=8080, set_hostname=True, interactive=False
        )
        confirm, prompt = mock_prompts
        confirm.assert_not_called()
        prompt.assert_not_called()

    def test_environment_used_when_flags_absent(self, make_collector):
        """Should take environment values with --non-interactive."""
        collector = make_collector(EnvironmentDefaults("v0.9.0", True, 9000))

        request = collector.collect(CommandLineOverrides(non_interactive=True))

        assert request == InstallRequest(
            requested_version="v0.9.0", port=9000, set_hostname=True, interactive=False
        )

    def test_port_flag_alone_skips_prompts(self, make_collector, mock_prompts):
        """Should treat a lone --port as non-interactive even on a terminal."""
        collector = make_collector(attended=True)

        request = collector.collect(CommandLineOverrides(port="8443"))

        assert request.port == 8443
        assert request.interactive is False
        mock_prompts[0].assert_not_called()

    def test_invalid_port_flag_warns(self, make_collector):
        """Should warn and fall back to port 80 for a malformed --port."""
        collector = make_collector(EnvironmentDefaults(port=9000))

        with capture_logs() as logs:
            request = collector.collect(CommandLineOverrides(port="http"))

        assert request.port == 80
        assert logs[0]["log_level"] == "warning"
        assert "Invalid port 'http'" in logs[0]["event"]

    def test_no_terminal_uses_defaults(self, make_collector, mock_prompts):
        """Should warn and use environment defaults when no TTY is attached."""
        collector = make_collector(EnvironmentDefaults("v2.0.0", False, 80), attended=False)

        with capture_logs() as logs:
            request = collector.collect(CommandLineOverrides())

        assert request == InstallRequest(requested_version="v2.0.0")
        assert "No terminal attached" in logs[0]["event"]
        mock_prompts[0].assert_not_called()


class TestInteractivePath:
    """Tests for the prompt session."""

    def test_prompts_for_hostname_and_port(self, make_collector, mock_prompts):
        """Should build the request from the operator's answers."""
        confirm, prompt = mock_prompts
        confirm.return_value = False
        prompt.return_value = "8080"
        collector = make_collector(EnvironmentDefaults(version="v1.1.0"), attended=True)

        request = collector.collect(CommandLineOverrides())

        assert request == InstallRequest(
            requested_version="v1.1.0", port=8080, set_hostname=False, interactive=True
        )
        assert "waiveo.local" in confirm.call_args.args[0]
        assert confirm.call_args.kwargs["default"] is True
        assert prompt.call_args.kwargs["default"] == "80"

    def test_invalid_answer_falls_back_to_default_port(self, make_collector, mock_prompts):
        """Should use port 80 when the answer is not a valid port."""
        mock_prompts[1].return_value = "not-a-port"
        collector = make_collector(attended=True)

        request = collector.collect(CommandLineOverrides())

        assert request.port == 80
        assert request.set_hostname is True
