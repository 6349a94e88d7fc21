# ============================================================================
# HEALTHCHECK CLI
# ============================================================================
# STATUS: Tool - Query a health endpoint from the command line
# PURPOSE: Container health probes and interactive monitoring
# CREATED: 19 OCT 2026
# ============================================================================
"""
healthcheck - fetch and print a health+json response.

Usage:
    # One-shot probe of localhost:$HEALTH_PORT
    healthcheck

    # Status word only, against another host
    healthcheck -s 10.0.0.5

    # Poll a Docker container every 5 seconds (stop with Ctrl+C)
    healthcheck -d -n 5s my-container

Exit codes:
    0 - every poll was healthy (pass or warn)
    1 - a poll failed or the endpoint could not be reached
    2 - bad invocation
"""

import argparse
import json
import re
import sys
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import docker
from docker.errors import DockerException, NotFound

from healthjson.__version__ import __version__
from healthjson.client import (
    EXIT_ERR,
    EXIT_OK,
    EXIT_USER,
    Option,
    check_health,
    with_host,
    with_port,
    with_timeout,
)
from healthjson.core.config import get_defaults, parse_port
from healthjson.core.context import Context
from healthjson.core.errors import HealthError, OptionError
from healthjson.core.logging import configure_logging, get_logger
from healthjson.models import Response, Status

logger = get_logger("healthjson.cli")

ERROR_KEY = "error"

COLOURS = {
    Status.PASS.value: 32,
    Status.WARN.value: 33,
    Status.FAIL.value: 31,
    ERROR_KEY: 91,
}

VERBOSITY_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


# ============================================================================
# ARGUMENT TYPES
# ============================================================================

def parse_duration(value: str) -> float:
    """
    Parse a duration into seconds.

    Accepts Go-style durations ("500ms", "2s", "1m30s") or a plain
    number of seconds.
    """
    text = value.strip()
    try:
        seconds = float(text)
    except ValueError:
        pos, seconds = 0, 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos != len(text) or not text:
            raise argparse.ArgumentTypeError(f"invalid duration: {value!r}")

    if seconds < 0:
        raise argparse.ArgumentTypeError(f"negative duration: {value!r}")
    return seconds


def port_type(value: str) -> int:
    port = parse_port(value)
    if port is None or port == 0:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="healthcheck",
        description="Fetch and print a health response (application/health+json)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        epilog="""
Examples:
  %(prog)s
  %(prog)s -s 10.0.0.5
  %(prog)s -d -n 5s my-container
        """,
    )
    parser.add_argument(
        "host",
        nargs="?",
        default=None,
        help="Host to query, or container name with -d (default: localhost)",
    )
    parser.add_argument(
        "-c", "--continuous",
        action="store_true",
        help="Run continuously (stop with Ctrl+C)",
    )
    parser.add_argument(
        "-n", "--interval",
        type=parse_duration,
        default=None,
        help="Interval between continuous checks (implies -c) (default: 2s)",
    )
    parser.add_argument(
        "-p", "--port",
        type=port_type,
        default=None,
        help="Port (default: $HEALTH_PORT or 9999)",
    )
    parser.add_argument(
        "-t", "--timeout",
        type=parse_duration,
        default=None,
        help="HTTP timeout (default: 30s)",
    )
    parser.add_argument(
        "-s", "--short",
        action="store_true",
        help="Short output (just the status)",
    )
    parser.add_argument(
        "-d", "--docker",
        action="store_true",
        help="Host is the name of a Docker container",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="More log output (repeatable)",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="count",
        default=0,
        help="Less log output (repeatable)",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-h", "-?", "--help",
        action="help",
        help="Show this help message and exit",
    )
    return parser


# ============================================================================
# DOCKER
# ============================================================================

def get_container_address(container: str, timeout: float = 30.0) -> str:
    """
    Resolve a Docker container name to its first non-empty IP address.

    Raises:
        HealthError: If the Docker daemon cannot be reached, the
            container does not exist or it has no address
    """
    try:
        client = docker.from_env(timeout=max(int(timeout), 1))
        try:
            attrs = client.containers.get(container).attrs
        finally:
            client.close()
    except NotFound as e:
        raise HealthError(f"no such container: {container!r}") from e
    except DockerException as e:
        raise HealthError(f"docker lookup of {container!r} failed: {e}") from e

    networks = (attrs.get("NetworkSettings") or {}).get("Networks") or {}
    for network in networks.values():
        address = (network or {}).get("IPAddress")
        if address:
            return address

    raise HealthError(f"couldn't find address of {container!r}")


# ============================================================================
# OUTPUT
# ============================================================================

def colour(key: str, text: str) -> str:
    return f"\033[{COLOURS.get(key, 0)}m{text}\033[0m"


def make_printer(
    short: bool,
    continuous: bool,
    isatty: bool,
    out=None,
) -> Callable[[Response], None]:
    """Choose how each response is rendered."""
    out = out or sys.stdout

    def write(text: str, end: str = "\n") -> None:
        out.write(text + end)
        out.flush()

    if short and continuous and isatty:
        def print_response(resp: Response) -> None:
            stamp = datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds")
            write(f"{stamp} {colour(resp.status.value, resp.status.value)}", end="\r")
    elif short and isatty:
        def print_response(resp: Response) -> None:
            write(colour(resp.status.value, resp.status.value))
    elif short:
        def print_response(resp: Response) -> None:
            write(resp.status.value)
    elif isatty:
        def print_response(resp: Response) -> None:
            write(json.dumps(resp.to_dict(), indent=2, ensure_ascii=False))
    else:
        def print_response(resp: Response) -> None:
            write(resp.to_json())

    return print_response


# ============================================================================
# POLLING
# ============================================================================

class Poller:
    """
    Polls a health endpoint and keeps a tally of the outcomes.

    The tally is keyed by status word, plus "error" for requests that
    failed outright.
    """

    def __init__(
        self,
        options: List[Option],
        print_response: Callable[[Response], None],
        continuous: bool = False,
        interval: float = 2.0,
    ):
        self.options = options
        self.print_response = print_response
        self.continuous = continuous
        self.interval = interval
        self.stats: Dict[str, int] = {}
        self.ctx = Context.background()

    def poll_once(self) -> None:
        try:
            resp = check_health(self.ctx, *self.options)
        except OptionError:
            raise
        except HealthError as e:
            self.stats[ERROR_KEY] = self.stats.get(ERROR_KEY, 0) + 1
            logger.error(f"{e}")
            return

        self.stats[resp.status.value] = self.stats.get(resp.status.value, 0) + 1
        self.print_response(resp)

    def run(self) -> None:
        """Poll once, or until interrupted in continuous mode."""
        try:
            while True:
                self.poll_once()
                if not self.continuous or self.ctx.wait(self.interval):
                    break
        except KeyboardInterrupt:
            self.ctx.cancel()

    def exit_code(self) -> int:
        unhealthy = self.stats.get(Status.FAIL.value, 0) + self.stats.get(ERROR_KEY, 0)
        return EXIT_ERR if unhealthy else EXIT_OK

    def summary(self) -> str:
        return ", ".join(
            colour(key, f"{count} {key}") for key, count in sorted(self.stats.items())
        )


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the healthcheck command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    verbosity = VERBOSITY_LEVELS.index("WARNING") + args.verbose - args.quiet
    verbosity = min(max(verbosity, 0), len(VERBOSITY_LEVELS) - 1)
    configure_logging(level=VERBOSITY_LEVELS[verbosity])

    defaults = get_defaults()

    # Setting an interval implies continuous
    continuous = args.continuous or args.interval is not None
    interval = args.interval if args.interval else defaults.cli_interval

    host = args.host
    if args.docker:
        if not host:
            parser.error("-d requires a container name")
        try:
            host = get_container_address(host)
        except HealthError as e:
            logger.error(f"{e}")
            sys.exit(EXIT_ERR)

    options: List[Option] = []
    if host:
        options.append(with_host(host))
    if args.port is not None:
        options.append(with_port(args.port))
    if args.timeout:
        options.append(with_timeout(args.timeout))

    isatty = sys.stdout.isatty()
    poller = Poller(
        options,
        make_printer(args.short, continuous, isatty),
        continuous=continuous,
        interval=interval,
    )

    try:
        poller.run()
    except OptionError as e:
        logger.error(f"{e}")
        sys.exit(EXIT_USER)

    if continuous and isatty:
        sys.stdout.write(f"\n---\n{poller.summary()}\n")

    sys.exit(poller.exit_code())


if __name__ == "__main__":
    main()
