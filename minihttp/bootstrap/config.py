"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 4221
DEFAULT_MAX_CONNECTIONS = 1000
DEFAULT_CONNECTION_TIMEOUT_SECS = 30
ACCEPT_POLL_INTERVAL = 0.5

ECHO_ENDPOINT_PREFIX = "/echo/"


class ConfigurationError(ValueError):
    """Raised when an environment value cannot be used as configured."""


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


def _env_str(environ: Mapping[str, str], name: str, default: str) -> str:
    value = environ.get(name)
    return value if value else default


@dataclass(frozen=True)
class ServerConfig:
    """Immutable settings shared read-only by every connection worker."""

    directory: str = "."
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_connections: int = DEFAULT_MAX_CONNECTIONS
    connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT_SECS


def parse_cli_args(
    argv: list[str], environ: Optional[Mapping[str, str]] = None
) -> argparse.Namespace:
    """Return parsed CLI arguments, with defaults seeded from the environment."""
    if environ is None:
        environ = os.environ
    parser = argparse.ArgumentParser(description="Minimal HTTP/1.1 server")
    try:
        default_port = _env_int(environ, "PORT", DEFAULT_PORT)
        default_max_connections = _env_int(
            environ, "MAX_CONNECTIONS", DEFAULT_MAX_CONNECTIONS
        )
        default_timeout = _env_int(
            environ, "CONNECTION_TIMEOUT_SECS", DEFAULT_CONNECTION_TIMEOUT_SECS
        )
    except ConfigurationError as error:
        parser.error(str(error))

    parser.add_argument(
        "--directory", default=".", help="Base directory for the /files route"
    )
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=default_port)
    parser.add_argument(
        "--max-connections",
        type=int,
        default=default_max_connections,
        help="Maximum concurrently handled connections",
    )
    parser.add_argument(
        "--connection-timeout",
        type=float,
        default=default_timeout,
        help="Per-connection read/write timeout in seconds",
    )
    parser.add_argument(
        "--log-level",
        default=_env_str(environ, "LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=_env_str(environ, "LOG_DESTINATION", "stdout"),
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=_env_str(environ, "LOG_FORMAT", "json").lower(),
        choices=["json", "text"],
        type=str.lower,
    )
    args = parser.parse_args(argv)

    if args.max_connections < 1:
        parser.error("--max-connections must be at least 1")
    if args.connection_timeout <= 0:
        parser.error("--connection-timeout must be positive")
    if not 0 <= args.port <= 65535:
        parser.error("--port must be between 0 and 65535")
    return args


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Freeze the parsed arguments into the configuration handed to components."""
    return ServerConfig(
        directory=args.directory,
        host=args.host,
        port=args.port,
        max_connections=args.max_connections,
        connection_timeout=args.connection_timeout,
    )
