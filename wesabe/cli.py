"""CLI entry point for wesabe.

Sends one request to the API and maps the outcome to an exit code:

    0  success (body written to stdout)
    1  request failed (API message on stderr)
    2  configuration or transport error
    3  redirect (location on stderr)
    4  unauthorized
    5  not found
"""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from wesabe.config_loader import default_config_path, load_runtime_config
from wesabe.errors import ConfigError, TransportError
from wesabe.logging_config import setup_logging
from wesabe.models import (
    ClientConfig,
    HTTP_METHODS,
    Outcome,
    Redirect,
    RequestFailed,
    ResourceNotFound,
    RuntimeConfig,
    Success,
    Unauthorized,
)
from wesabe.request import Client, VERSION

EXIT_OK = 0
EXIT_REQUEST_FAILED = 1
EXIT_ERROR = 2
EXIT_REDIRECT = 3
EXIT_UNAUTHORIZED = 4
EXIT_NOT_FOUND = 5

USERNAME_ENV = "WESABE_USERNAME"
PASSWORD_ENV = "WESABE_PASSWORD"


def positive_float(value: str) -> float:
    """Parse and validate a positive float value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive number.
    """
    try:
        result = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number '{value}'.")
    if result <= 0:
        raise argparse.ArgumentTypeError(f"Value must be positive, got {result}.")
    return result


@dataclass
class RequestArgs:
    """Parsed command-line arguments. None means "not given on the command line"."""

    url: str
    config: Path | None
    base_url: str | None
    username: str | None
    password: str | None
    proxy: str | None
    method: str
    data: str | None
    ca_file: str | None
    timeout: float | None
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wesabe-request",
        description="Send an authenticated request to the Wesabe API.",
    )
    parser.add_argument("url", help="URL relative to the base URL (or absolute)")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"YAML config file (default: {default_config_path()} if it exists)",
    )
    parser.add_argument("--base-url", default=None, help="Override the API base URL")
    parser.add_argument(
        "--username", "-u", default=None, help=f"API username (default: ${USERNAME_ENV})"
    )
    parser.add_argument(
        "--password", "-p", default=None, help=f"API password (default: ${PASSWORD_ENV})"
    )
    parser.add_argument("--proxy", default=None, help="Proxy URL, scheme://[user:pass@]host:port")
    parser.add_argument(
        "--method",
        "-X",
        type=str.upper,
        choices=sorted(HTTP_METHODS),
        default="GET",
        help="HTTP method (default: GET)",
    )
    parser.add_argument("--data", "-d", default=None, help="Request body")
    parser.add_argument("--ca-file", default=None, help="CA bundle to verify the server with")
    parser.add_argument(
        "--timeout",
        type=positive_float,
        default=None,
        help="Request timeout in seconds (default: 30)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log requests to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def parse_args(args: list[str] | None = None) -> RequestArgs:
    """Parse command-line arguments and return typed args dataclass.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    namespace = build_parser().parse_args(args)
    return RequestArgs(
        url=namespace.url,
        config=namespace.config,
        base_url=namespace.base_url,
        username=namespace.username,
        password=namespace.password,
        proxy=namespace.proxy,
        method=namespace.method,
        data=namespace.data,
        ca_file=namespace.ca_file,
        timeout=namespace.timeout,
        verbose=namespace.verbose,
    )


def load_config(args: RequestArgs) -> RuntimeConfig:
    """Load the config file named by --config, or the default one if present."""
    if args.config is not None:
        return load_runtime_config(args.config)
    path = default_config_path()
    if path.exists():
        return load_runtime_config(path)
    return RuntimeConfig()


def build_client_config(args: RequestArgs, runtime: RuntimeConfig) -> ClientConfig:
    """Command-line flags override config file values."""
    return ClientConfig(
        base_url=args.base_url or runtime.base_url,
        ca_file=args.ca_file or runtime.ca_file,
        timeout=args.timeout or runtime.timeout,
    )


def report_outcome(outcome: Outcome) -> int:
    """Print the outcome and return the matching exit code."""
    if isinstance(outcome, Success):
        sys.stdout.write(outcome.body)
        return EXIT_OK
    if isinstance(outcome, Redirect):
        print(outcome.message, file=sys.stderr)
        return EXIT_REDIRECT
    if isinstance(outcome, Unauthorized):
        print("Unauthorized: check your username and password", file=sys.stderr)
        return EXIT_UNAUTHORIZED
    if isinstance(outcome, ResourceNotFound):
        print("Resource not found", file=sys.stderr)
        return EXIT_NOT_FOUND
    if isinstance(outcome, RequestFailed):
        print(f"Request failed ({outcome.status_code}): {outcome.message}", file=sys.stderr)
        return EXIT_REQUEST_FAILED
    raise TypeError(f"Unknown outcome: {outcome!r}")


def run_request(args: RequestArgs) -> int:
    """Send the request described by args."""
    try:
        runtime = load_config(args)
        client = Client(build_client_config(args, runtime))
        outcome = client.execute(
            url=args.url,
            username=args.username or runtime.username or os.environ.get(USERNAME_ENV),
            password=args.password or runtime.password or os.environ.get(PASSWORD_ENV),
            proxy=args.proxy or runtime.proxy,
            method=args.method,
            payload=args.data,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except TransportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    return report_outcome(outcome)


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        parsed = parse_args(args)
        setup_logging("DEBUG" if parsed.verbose else "WARNING")
        return run_request(parsed)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
