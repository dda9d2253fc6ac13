"""Minimal HTTP/1.1 server: echo, user-agent and file routes."""

import logging
import signal
import sys

from minihttp.bootstrap.config import build_server_config, parse_cli_args
from minihttp.bootstrap.logging_setup import configure_logging
from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.lifecycle.state import ServerLifecycle
from minihttp.transport.accept_loop import run_server

SERVER_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.server"), {})


def install_signal_handlers(lifecycle: ServerLifecycle) -> None:
    """Begin draining on SIGINT or SIGTERM."""

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal",
            extra={"event": "shutdown_signal", "signal": signal.Signals(signum).name},
        )
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)


def main(argv: list[str] | None = None) -> int:
    """Start the HTTP server and block until it has drained."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_format == "json")
    config = build_server_config(args)
    lifecycle = ServerLifecycle()
    install_signal_handlers(lifecycle)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": config.host,
            "port": config.port,
            "directory": config.directory,
            "max_connections": config.max_connections,
            "connection_timeout": config.connection_timeout,
        },
    )
    try:
        run_server(config, lifecycle)
    except OSError as error:
        SERVER_LOGGER.critical(
            "Failed to start server",
            extra={"event": "startup_failed", "error": str(error)},
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
