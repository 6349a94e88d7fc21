# ============================================================================
# HEALTHCHECK CLI TESTS
# ============================================================================
# STATUS: Tests - Command-line probe
# PURPOSE: Verify argument parsing, output modes, polling and exit codes
# CREATED: 19 OCT 2026
# ============================================================================
"""
Healthcheck CLI Tests

check_health and docker are mocked; no server is started.

Run with:
    pytest tests/test_cli.py -v
"""

import argparse
import io
import json
from unittest.mock import MagicMock, patch

import pytest
from docker.errors import DockerException, NotFound

from healthjson.cli import (
    Poller,
    build_parser,
    get_container_address,
    main,
    make_printer,
    parse_duration,
)
from healthjson.core.errors import HealthError, OptionError, TransportError
from healthjson.models import Check, Response, Status


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep main() from replacing the root handlers pytest relies on."""
    with patch("healthjson.cli.configure_logging") as mock_configure:
        yield mock_configure


@pytest.fixture
def mock_check_health():
    with patch("healthjson.cli.check_health") as mock:
        yield mock


def run_main(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


# ============================================================================
# ARGUMENTS
# ============================================================================

class TestArguments:
    """Tests for argument parsing."""

    @pytest.mark.parametrize("value,seconds", [
        ("2", 2.0),
        ("0.5", 0.5),
        ("2s", 2.0),
        ("500ms", 0.5),
        ("1m30s", 90.0),
        ("1h", 3600.0),
        ("1.5m", 90.0),
    ])
    def test_parse_duration(self, value, seconds):
        assert parse_duration(value) == pytest.approx(seconds)

    @pytest.mark.parametrize("value", ["", "abc", "5x", "s", "-1s", "-3", "1s garbage"])
    def test_parse_duration_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_duration(value)

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.host is None
        assert not args.continuous
        assert args.interval is None
        assert args.port is None
        assert (args.verbose, args.quiet) == (0, 0)

    def test_all_flags(self):
        args = build_parser().parse_args(
            ["-c", "-n", "5s", "-p", "8080", "-t", "1s", "-s", "-d", "-vv", "-q", "app"]
        )
        assert args.continuous and args.short and args.docker
        assert args.interval == 5.0
        assert args.port == 8080
        assert args.timeout == 1.0
        assert (args.verbose, args.quiet) == (2, 1)
        assert args.host == "app"

    @pytest.mark.parametrize("port", ["0", "70000", "http"])
    def test_invalid_port_exits_2(self, port, capsys):
        assert run_main(["-p", port]) == 2

    @pytest.mark.parametrize("flag", ["-h", "-?", "--help"])
    def test_help(self, flag, capsys):
        assert run_main([flag]) == 0
        assert "usage: healthcheck" in capsys.readouterr().out

    def test_version(self, capsys):
        assert run_main(["-V"]) == 0
        assert capsys.readouterr().out.startswith("healthcheck ")

    def test_verbosity(self, no_logging_setup, mock_check_health):
        mock_check_health.return_value = Response()
        run_main(["-vv", "-s"])
        no_logging_setup.assert_called_once_with(level="DEBUG")


# ============================================================================
# OUTPUT
# ============================================================================

class TestPrinter:
    """Tests for response rendering."""

    def test_json(self):
        out = io.StringIO()
        make_printer(short=False, continuous=False, isatty=False, out=out)(Response())
        assert out.getvalue() == '{"status":"pass"}\n'

    def test_pretty_json_on_tty(self):
        out = io.StringIO()
        response = Response()
        response.add_checks("x", Check(output="ok"))

        make_printer(short=False, continuous=False, isatty=True, out=out)(response)

        assert "\n  " in out.getvalue()
        assert json.loads(out.getvalue()) == response.to_dict()

    def test_short(self):
        out = io.StringIO()
        make_printer(short=True, continuous=False, isatty=False, out=out)(Response(status=Status.WARN))
        assert out.getvalue() == "warn\n"

    def test_short_coloured(self):
        out = io.StringIO()
        make_printer(short=True, continuous=False, isatty=True, out=out)(Response(status=Status.FAIL))
        assert out.getvalue() == "\033[31mfail\033[0m\n"

    def test_short_continuous_overwrites_line(self):
        out = io.StringIO()
        make_printer(short=True, continuous=True, isatty=True, out=out)(Response())
        assert out.getvalue().endswith("\033[32mpass\033[0m\r")


# ============================================================================
# POLLING
# ============================================================================

class TestPoller:
    """Tests for the polling loop and its tally."""

    def make_poller(self, continuous=False):
        printed = []
        poller = Poller([], printed.append, continuous=continuous, interval=0.01)
        return poller, printed

    @pytest.mark.parametrize("status,code", [
        (Status.PASS, 0),
        (Status.WARN, 0),
        (Status.FAIL, 1),
    ])
    def test_single_poll(self, mock_check_health, status, code):
        mock_check_health.return_value = Response(status=status)
        poller, printed = self.make_poller()

        poller.run()

        assert printed == [Response(status=status)]
        assert poller.stats == {status.value: 1}
        assert poller.exit_code() == code

    def test_transport_error_counted(self, mock_check_health):
        mock_check_health.side_effect = TransportError("refused")
        poller, printed = self.make_poller()

        poller.run()

        assert printed == []
        assert poller.stats == {"error": 1}
        assert poller.exit_code() == 1

    def test_option_error_propagates(self, mock_check_health):
        mock_check_health.side_effect = OptionError("port out of range: 0")
        poller, _ = self.make_poller()

        with pytest.raises(OptionError):
            poller.run()

    def test_continuous_until_interrupt(self, mock_check_health):
        mock_check_health.side_effect = [
            Response(status=Status.PASS),
            Response(status=Status.WARN),
            TransportError("refused"),
            Response(status=Status.PASS),
            KeyboardInterrupt(),
        ]
        poller, printed = self.make_poller(continuous=True)

        poller.run()

        assert len(printed) == 3
        assert poller.stats == {"pass": 2, "warn": 1, "error": 1}
        assert poller.exit_code() == 1
        assert poller.ctx.done()

    def test_summary(self):
        poller, _ = self.make_poller()
        poller.stats = {"warn": 1, "pass": 2}
        assert poller.summary() == "\033[32m2 pass\033[0m, \033[33m1 warn\033[0m"


# ============================================================================
# MAIN
# ============================================================================

class TestMain:
    """Tests for main() end to end with a mocked client."""

    def test_pass(self, mock_check_health, capsys):
        mock_check_health.return_value = Response()
        assert run_main([]) == 0
        assert capsys.readouterr().out == '{"status":"pass"}\n'

    def test_fail(self, mock_check_health, capsys):
        mock_check_health.return_value = Response(status=Status.FAIL)
        assert run_main(["-s"]) == 1
        assert capsys.readouterr().out == "fail\n"

    def test_unreachable(self, mock_check_health):
        mock_check_health.side_effect = TransportError("refused")
        assert run_main([]) == 1

    def test_options_passed(self, mock_check_health):
        mock_check_health.return_value = Response()

        run_main(["-p", "8080", "-t", "2s", "db.internal"])

        options = mock_check_health.call_args.args[1:]
        config = MagicMock()
        for option in options:
            option(config)
        assert (config.host, config.port, config.timeout) == ("db.internal", 8080, 2.0)

    def test_option_error_exits_2(self, mock_check_health):
        mock_check_health.side_effect = OptionError("host must not be empty")
        assert run_main([]) == 2

    def test_docker_requires_name(self, capsys):
        assert run_main(["-d"]) == 2

    def test_docker_lookup(self, mock_check_health):
        mock_check_health.return_value = Response()
        with patch("healthjson.cli.get_container_address", return_value="172.17.0.2") as lookup:
            assert run_main(["-d", "web"]) == 0

        lookup.assert_called_once_with("web")
        config = MagicMock()
        for option in mock_check_health.call_args.args[1:]:
            option(config)
        assert config.host == "172.17.0.2"

    def test_docker_lookup_failure(self, mock_check_health):
        with patch("healthjson.cli.get_container_address", side_effect=HealthError("no such container")):
            assert run_main(["-d", "web"]) == 1
        mock_check_health.assert_not_called()


# ============================================================================
# DOCKER
# ============================================================================

class TestContainerAddress:
    """Tests for container address lookup through the Docker SDK."""

    @pytest.fixture
    def mock_docker(self):
        with patch("healthjson.cli.docker.from_env") as mock_from_env:
            yield mock_from_env.return_value

    def test_first_address(self, mock_docker):
        mock_docker.containers.get.return_value.attrs = {
            "NetworkSettings": {
                "Networks": {
                    "none": {"IPAddress": ""},
                    "bridge": {"IPAddress": "172.17.0.2"},
                },
            },
        }

        assert get_container_address("web") == "172.17.0.2"
        mock_docker.containers.get.assert_called_once_with("web")
        mock_docker.close.assert_called_once()

    def test_no_address(self, mock_docker):
        mock_docker.containers.get.return_value.attrs = {
            "NetworkSettings": {"Networks": {"none": {"IPAddress": ""}}},
        }

        with pytest.raises(HealthError, match="couldn't find address"):
            get_container_address("web")

    def test_no_networks(self, mock_docker):
        mock_docker.containers.get.return_value.attrs = {"NetworkSettings": {"Networks": None}}

        with pytest.raises(HealthError, match="couldn't find address"):
            get_container_address("web")

    def test_unknown_container(self, mock_docker):
        mock_docker.containers.get.side_effect = NotFound("No such container: web")

        with pytest.raises(HealthError, match="no such container"):
            get_container_address("web")

        mock_docker.close.assert_called_once()

    def test_daemon_unreachable(self):
        error = DockerException("Error while fetching server API version")
        with patch("healthjson.cli.docker.from_env", side_effect=error):
            with pytest.raises(HealthError, match="server API version"):
                get_container_address("web")

    def test_timeout_passed(self):
        with patch("healthjson.cli.docker.from_env") as mock_from_env:
            mock_from_env.return_value.containers.get.return_value.attrs = {
                "NetworkSettings": {"Networks": {"bridge": {"IPAddress": "10.0.0.9"}}},
            }
            get_container_address("web", timeout=5)

        mock_from_env.assert_called_once_with(timeout=5)
