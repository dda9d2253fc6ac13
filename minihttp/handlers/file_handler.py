"""File read/write handler for the ``/files/{name}`` route.

The file name is joined to the base directory as-is. Concurrent POSTs to the
same name are not serialized; the last writer wins.
"""

import logging
from pathlib import Path

from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.domain.errors import FileNotFound, HandlerIoError, InvalidRequest
from minihttp.domain.http_types import HttpRequest, HttpResponse
from minihttp.domain.response_builders import binary_response, created_response

FILE_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.handlers.file"), {})


class FileHandler:
    """Serve GET and POST for files under a base directory."""

    def __init__(self, directory: str) -> None:
        self.directory = Path(directory)

    def handle(self, request: HttpRequest) -> HttpResponse:
        segments = request.path_segments()
        filename = segments[2] if len(segments) > 2 else ""
        if not filename:
            raise InvalidRequest("No filename provided")

        file_path = self.directory / filename
        if request.method == "GET":
            return self._read(file_path, filename)
        if request.method == "POST":
            return self._write(file_path, request.body)

        FILE_LOGGER.warning(
            "Unsupported method",
            extra={"path": file_path.as_posix(), "method": request.method},
        )
        raise InvalidRequest("Method not allowed")

    def _read(self, file_path: Path, filename: str) -> HttpResponse:
        try:
            content = file_path.read_bytes()
        except FileNotFoundError as error:
            FILE_LOGGER.info(
                "File not found",
                extra={"event": "file_not_found", "path": file_path.as_posix()},
            )
            raise FileNotFound(filename) from error
        except OSError as error:
            raise HandlerIoError(f"Failed to read {filename}: {error}") from error

        FILE_LOGGER.info(
            "File read operation complete",
            extra={
                "event": "file_read_complete",
                "path": file_path.as_posix(),
                "bytes_out": len(content),
            },
        )
        return binary_response(content)

    def _write(self, file_path: Path, body: bytes) -> HttpResponse:
        if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
            FILE_LOGGER.debug(
                "File write started",
                extra={
                    "event": "file_write_started",
                    "path": file_path.as_posix(),
                    "bytes_in": len(body),
                },
            )
        try:
            with open(file_path, "wb") as file_handle:
                file_handle.write(body)
        except OSError as error:
            raise HandlerIoError(f"Failed to write {file_path.name}: {error}") from error

        FILE_LOGGER.info(
            "File write complete",
            extra={
                "event": "file_write_complete",
                "path": file_path.as_posix(),
                "bytes_in": len(body),
            },
        )
        return created_response()
