"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import subprocess
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Generator, TypedDict

import pytest

from minihttp.bootstrap.config import ServerConfig
from minihttp.bootstrap.socket_factory import create_server_socket
from minihttp.lifecycle.state import ServerLifecycle
from minihttp.transport.accept_loop import serve
from tests.utils.http import reserve_port, wait_for_port

if TYPE_CHECKING:
    from _pytest.tmpdir import TempPathFactory

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SERVER_ENTRYPOINT = PROJECT_ROOT / "main.py"


class ServerProcessInfo(TypedDict):
    """Metadata describing a running server subprocess."""

    base_url: str
    host: str
    port: int
    directory: Path
    process: subprocess.Popen[bytes]
    log_file: Path


def launch_server(
    host: str,
    port: int,
    directory: Path,
    log_file: Path,
    extra_args: list[str] | None = None,
) -> Generator[ServerProcessInfo, None, None]:
    """Run main.py in a subprocess for the duration of the generator."""
    args = [
        sys.executable,
        str(SERVER_ENTRYPOINT),
        "--directory",
        str(directory),
        "--host",
        host,
        "--port",
        str(port),
        "--log-destination",
        str(log_file),
    ]
    if extra_args:
        args.extend(extra_args)

    with subprocess.Popen(
        args,
        cwd=PROJECT_ROOT,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
    ) as process:
        try:
            wait_for_port(host, port)
        except Exception:
            process.terminate()
            _, stderr = process.communicate(timeout=5)
            print(f"\nServer stderr:\n{stderr.decode(errors='replace')}")
            raise

        yield {
            "base_url": f"http://{host}:{port}",
            "host": host,
            "port": port,
            "directory": directory,
            "process": process,
            "log_file": log_file,
        }

        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                process.kill()


@pytest.fixture(name="server_process")
def _server_process(
    tmp_path_factory: "TempPathFactory",
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the HTTP server in a background process for integration tests."""

    host = "127.0.0.1"
    port = reserve_port(host)
    directory = tmp_path_factory.mktemp("server-files")
    log_dir = tmp_path_factory.mktemp("server-logs")
    yield from launch_server(host, port, directory, log_dir / "server.log")


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    """Expose the running server base URL to integration tests."""

    return server_process["base_url"]


@dataclass
class InProcessServer:
    """An accept loop running on a background thread of the test process."""

    host: str
    port: int
    config: ServerConfig
    lifecycle: ServerLifecycle
    thread: threading.Thread

    def stop(self, timeout: float = 10.0) -> None:
        self.lifecycle.begin_draining()
        self.thread.join(timeout)


@pytest.fixture()
def start_server(tmp_path: Path) -> Generator[Callable[..., InProcessServer], None, None]:
    """Factory fixture that starts ``serve`` in-process on an ephemeral port."""

    servers: list[InProcessServer] = []

    def _start(**overrides) -> InProcessServer:
        settings = {"directory": str(tmp_path), "host": "127.0.0.1", "port": 0}
        settings.update(overrides)
        config = ServerConfig(**settings)
        server_socket = create_server_socket(config)
        host, port = server_socket.getsockname()[:2]
        lifecycle = ServerLifecycle()
        thread = threading.Thread(
            target=serve, args=(server_socket, config, lifecycle), daemon=True
        )
        thread.start()
        server = InProcessServer(host, port, config, lifecycle, thread)
        servers.append(server)
        return server

    yield _start

    for server in servers:
        server.stop()
