"""Main connection acceptance loop."""

import logging
import socket
import threading
from typing import Optional

from minihttp.bootstrap.config import ServerConfig
from minihttp.bootstrap.socket_factory import create_server_socket
from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.lifecycle.state import ServerLifecycle
from minihttp.pipeline.router import Router, build_router
from minihttp.transport.admission import AdmissionController, AdmissionPermit
from minihttp.transport.context import WorkerContext
from minihttp.transport.worker import handle_client

ACCEPT_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.transport.accept"), {}
)


def _acquire_permit(admission: AdmissionController) -> AdmissionPermit:
    """Wait for a free slot.

    An accepted socket is always admitted eventually, even once draining has
    begun; every held permit is bounded by its connection timeout.
    """
    permit = admission.try_acquire()
    if permit is not None:
        return permit
    ACCEPT_LOGGER.info(
        "Connection limit reached, waiting for a free slot",
        extra={
            "event": "admission_waiting",
            "active_connections": admission.in_use(),
            "max_connections": admission.capacity,
        },
    )
    return admission.acquire()


def _start_worker(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    permit: AdmissionPermit,
    context: WorkerContext,
) -> None:
    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, permit, context),
        daemon=False,
    )
    context.lifecycle.register_worker(thread)
    try:
        thread.start()
    except RuntimeError as error:
        context.lifecycle.cleanup_worker(thread)
        permit.release()
        client_socket.close()
        ACCEPT_LOGGER.error(
            "Failed to start connection worker",
            extra={"event": "worker_start_failed", "error_type": type(error).__name__},
        )


def _handle_accepted_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    admission: AdmissionController,
    context: WorkerContext,
) -> None:
    """Admit a newly accepted connection and hand it to a worker thread."""
    client_addr_str = f"{client_address[0]}:{client_address[1]}"
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": client_addr_str},
        )

    permit = _acquire_permit(admission)
    _start_worker(client_socket, client_address, permit, context)


def serve(
    server_socket: socket.socket,
    config: ServerConfig,
    lifecycle: ServerLifecycle,
    router: Optional[Router] = None,
) -> None:
    """Accept connections until shutdown, then drain in-flight workers."""
    host, port = server_socket.getsockname()[:2]
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": host,
            "port": port,
            "max_connections": config.max_connections,
            "connection_timeout": config.connection_timeout,
        },
    )

    admission = AdmissionController(config.max_connections)
    context = WorkerContext(
        config=config,
        router=router if router is not None else build_router(config),
        lifecycle=lifecycle,
    )

    try:
        while not lifecycle.should_stop():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue

            _handle_accepted_client(client_socket, client_address, admission, context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "active_connections": lifecycle.active_worker_count(),
            },
        )
        lifecycle.wait_for_workers()
        ACCEPT_LOGGER.info("Server shutdown complete", extra={"event": "server_stopped"})


def run_server(config: ServerConfig, lifecycle: ServerLifecycle) -> None:
    """Create the listening socket and serve until shutdown."""
    serve(create_server_socket(config), config, lifecycle)
