"""Unit tests for the built-in route handlers."""

import gzip
from pathlib import Path

import pytest

from minihttp.domain.errors import FileNotFound, HandlerIoError, InvalidRequest
from minihttp.domain.http_types import HttpRequest
from minihttp.handlers.file_handler import FileHandler
from minihttp.handlers.system_handlers import EchoHandler, RootHandler, UserAgentHandler


def _request(path, method="GET", headers=None, body=b""):
    return HttpRequest(method, path, headers or {}, body)


def test_root_handler_ignores_headers():
    response = RootHandler().handle(_request("/", headers={"Accept-Encoding": "gzip"}))
    assert response.status_code == 200
    assert response.body == b"Welcome to the server!"


def test_echo_handler_returns_text_verbatim():
    response = EchoHandler().handle(_request("/echo/hello"))
    assert response.status_code == 200
    assert response.body == b"hello"
    assert response.headers["Content-Type"] == "text/plain"
    assert response.headers["Content-Length"] == "5"
    assert "Content-Encoding" not in response.headers


def test_echo_handler_compresses_when_gzip_accepted():
    response = EchoHandler().handle(
        _request("/echo/hello", headers={"accept-encoding": "deflate, GZip"})
    )
    assert response.headers["Content-Encoding"] == "gzip"
    assert response.headers["Content-Type"] == "text/plain"
    assert response.headers["Content-Length"] == str(len(response.body))
    assert gzip.decompress(response.body) == b"hello"


@pytest.mark.parametrize("path", ["/echo", "/echo/"])
def test_echo_handler_requires_content(path):
    with pytest.raises(InvalidRequest, match="No echo content provided"):
        EchoHandler().handle(_request(path))


def test_user_agent_handler_reflects_header():
    response = UserAgentHandler().handle(
        _request("/user-agent", headers={"User-Agent": "test-client/1"})
    )
    assert response.status_code == 200
    assert response.body == b"test-client/1"
    assert response.headers["Content-Type"] == "text/plain"


def test_user_agent_handler_requires_header():
    with pytest.raises(InvalidRequest):
        UserAgentHandler().handle(_request("/user-agent"))


def test_file_handler_post_then_get(tmp_path: Path):
    handler = FileHandler(str(tmp_path))
    created = handler.handle(_request("/files/a.txt", method="POST", body=b"xyz"))
    assert created.status_code == 201
    assert (tmp_path / "a.txt").read_bytes() == b"xyz"

    fetched = handler.handle(_request("/files/a.txt"))
    assert fetched.status_code == 200
    assert fetched.body == b"xyz"
    assert fetched.headers["Content-Type"] == "application/octet-stream"
    assert fetched.headers["Content-Length"] == "3"


def test_file_handler_post_truncates_existing_file(tmp_path: Path):
    (tmp_path / "b.bin").write_bytes(b"a much longer original payload")
    FileHandler(str(tmp_path)).handle(_request("/files/b.bin", "POST", body=b"new"))
    assert (tmp_path / "b.bin").read_bytes() == b"new"


def test_file_handler_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFound):
        FileHandler(str(tmp_path)).handle(_request("/files/does-not-exist.bin"))


def test_file_handler_rejects_other_methods(tmp_path: Path):
    with pytest.raises(InvalidRequest, match="Method not allowed"):
        FileHandler(str(tmp_path)).handle(_request("/files/a.txt", method="PUT"))


@pytest.mark.parametrize("path", ["/files", "/files/"])
def test_file_handler_requires_filename(tmp_path: Path, path):
    with pytest.raises(InvalidRequest):
        FileHandler(str(tmp_path)).handle(_request(path))


def test_file_handler_reports_io_errors(tmp_path: Path):
    (tmp_path / "subdir").mkdir()
    with pytest.raises(HandlerIoError):
        FileHandler(str(tmp_path)).handle(_request("/files/subdir"))


def test_file_handler_write_into_missing_directory_is_io_error(tmp_path: Path):
    handler = FileHandler(str(tmp_path / "absent"))
    with pytest.raises(HandlerIoError):
        handler.handle(_request("/files/a.txt", method="POST", body=b"x"))
