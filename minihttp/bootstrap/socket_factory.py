"""Listening socket creation."""

import logging
import socket

from minihttp.bootstrap.config import ACCEPT_POLL_INTERVAL, ServerConfig
from minihttp.domain.correlation_id import CorrelationLoggerAdapter

SOCKET_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.socket"), {})


def create_server_socket(config: ServerConfig) -> socket.socket:
    """Bind the listening socket with a short accept timeout for stop polling."""
    server_socket = socket.create_server((config.host, config.port))
    server_socket.settimeout(ACCEPT_POLL_INTERVAL)
    host, port = server_socket.getsockname()[:2]
    SOCKET_LOGGER.debug(
        "Listening socket bound",
        extra={"event": "socket_bound", "host": host, "port": port},
    )
    return server_socket
