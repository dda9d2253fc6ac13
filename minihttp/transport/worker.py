"""Worker thread logic: one request served per accepted connection."""

import logging
import socket
import threading
import time
from typing import Optional

from minihttp.domain.correlation_id import (
    REQUEST_ID_HEADER,
    CorrelationLoggerAdapter,
    adopt_request_id,
    connection_correlation,
)
from minihttp.domain.errors import HandleError, RequestParseError
from minihttp.domain.http_types import HttpRequest, HttpResponse
from minihttp.domain.response_builders import (
    bad_request_response,
    error_response,
    internal_error_response,
)
from minihttp.pipeline.io import read_request, send_response
from minihttp.pipeline.router import Router
from minihttp.transport.admission import AdmissionPermit
from minihttp.transport.context import WorkerContext

WORKER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.transport.worker"), {}
)


def _read_request(
    client_socket: socket.socket, client_addr_str: str
) -> tuple[Optional[HttpRequest], Optional[HttpResponse]]:
    """Return the parsed request, or the 400 response to send instead."""
    with client_socket.makefile("rb") as reader:
        try:
            request = read_request(reader)
        except RequestParseError as error:
            WORKER_LOGGER.warning(
                "Malformed request received",
                extra={
                    "event": "malformed_request",
                    "client": client_addr_str,
                    "error_type": type(error).__name__,
                    "error": str(error),
                },
            )
            return None, bad_request_response()
    return request, None


def _route(router: Router, request: HttpRequest) -> HttpResponse:
    """Dispatch the request, converting handler failures into responses."""
    try:
        return router.dispatch(request)
    except HandleError as error:
        WORKER_LOGGER.info(
            "Handler rejected request",
            extra={
                "event": "handler_error",
                "route": request.path,
                "method": request.method,
                "error_type": type(error).__name__,
                "error": error.message,
            },
        )
        return error_response(error)
    except Exception:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in handler",
            extra={
                "event": "handler_crash",
                "route": request.path,
                "method": request.method,
            },
            exc_info=True,
        )
        return internal_error_response()


def _close_socket(client_socket: socket.socket, client_addr_str: str) -> None:
    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    client_socket.close()
    WORKER_LOGGER.debug(
        "Socket closed",
        extra={"event": "socket_closed", "client": client_addr_str},
    )


def serve_connection(
    client_socket: socket.socket, client_addr_str: str, context: WorkerContext
) -> None:
    """Read one request, route it and write the response.

    Socket errors, timeouts and truncated requests propagate to the caller;
    no response is written for them.
    """
    started = time.monotonic()
    client_socket.settimeout(context.config.connection_timeout)

    request, response = _read_request(client_socket, client_addr_str)
    if request is None and response is None:
        if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WORKER_LOGGER.debug(
                "Client disconnected before sending a request",
                extra={"event": "client_disconnected", "client": client_addr_str},
            )
        return

    if request is not None:
        adopt_request_id(request.header(REQUEST_ID_HEADER))
        WORKER_LOGGER.debug(
            "Request line parsed",
            extra={
                "event": "request_line_parsed",
                "method": request.method,
                "route": request.path,
            },
        )
        response = _route(context.router, request)

    send_response(client_socket, response)
    WORKER_LOGGER.info(
        "Request complete",
        extra={
            "event": "request_complete",
            "client": client_addr_str,
            "method": request.method if request is not None else "-",
            "route": request.path if request is not None else "-",
            "status_code": response.status_code,
            "bytes_out": len(response.body),
            "duration_ms": round((time.monotonic() - started) * 1000, 3),
        },
    )


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    permit: AdmissionPermit,
    context: WorkerContext,
) -> None:
    """Worker thread entrypoint; the permit is released on every exit path."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    try:
        with connection_correlation(), permit:
            try:
                serve_connection(client_socket, client_addr_str, context)
            except (ConnectionError, TimeoutError, OSError) as error:
                WORKER_LOGGER.error(
                    "Error handling client connection",
                    extra={
                        "event": "connection_error",
                        "client": client_addr_str,
                        "error_type": type(error).__name__,
                    },
                )
            except Exception as error:  # pylint: disable=broad-except
                WORKER_LOGGER.error(
                    "Unexpected error in worker",
                    extra={
                        "event": "worker_error",
                        "client": client_addr_str,
                        "error_type": type(error).__name__,
                        "error": str(error),
                    },
                    exc_info=True,
                )
            finally:
                _close_socket(client_socket, client_addr_str)
    finally:
        context.lifecycle.cleanup_worker(threading.current_thread())
