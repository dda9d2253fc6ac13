"""Pure HTTP response builders."""

import gzip
import zlib
from typing import Tuple

from minihttp.domain.errors import EncodingError, HandleError
from minihttp.domain.http_types import HEADER_ENCODING, HttpResponse

TEXT_PLAIN = "text/plain"
OCTET_STREAM = "application/octet-stream"
ROOT_GREETING = "Welcome to the server!"


def accepts_gzip(accept_encoding: str | None) -> bool:
    """Return True when the Accept-Encoding value mentions gzip in any case."""
    if not accept_encoding:
        return False
    return "gzip" in accept_encoding.lower()


def compress_if_gzip_supported(
    payload: bytes, accept_encoding: str | None, compression_logger
) -> Tuple[bytes, dict[str, str]]:
    """Compress the payload when the request advertises gzip support."""
    if not accepts_gzip(accept_encoding):
        return payload, {}
    try:
        compressed = gzip.compress(payload)
    except (OSError, zlib.error) as error:
        raise EncodingError(f"gzip compression failed: {error}") from error
    compression_logger.debug(
        "Compressed payload",
        extra={"size": len(payload), "compressed_size": len(compressed)},
    )
    return compressed, {"Content-Encoding": "gzip"}


def text_response(status_code: int, message: str) -> HttpResponse:
    """Return a text/plain response whose body is ``message``."""
    return (
        HttpResponse(status_code)
        .with_header("Content-Type", TEXT_PLAIN)
        .with_body(message.encode(HEADER_ENCODING, errors="replace"))
    )


def binary_response(payload: bytes) -> HttpResponse:
    """Return a 200 response carrying raw bytes."""
    return (
        HttpResponse(200).with_header("Content-Type", OCTET_STREAM).with_body(payload)
    )


def root_response() -> HttpResponse:
    return text_response(200, ROOT_GREETING)


def created_response() -> HttpResponse:
    return text_response(201, "File created successfully")


def not_found_response() -> HttpResponse:
    """Response for a path that matches no route."""
    return text_response(404, "Not Found")


def bad_request_response() -> HttpResponse:
    """Response for a request whose framing could not be parsed."""
    return text_response(400, "Bad Request")


def internal_error_response() -> HttpResponse:
    return text_response(500, "Internal Server Error")


def error_response(error: HandleError) -> HttpResponse:
    """Translate a handler failure into its best-effort HTTP response."""
    if error.status_code == 404:
        return text_response(404, "File not found")
    if error.status_code == 400:
        return text_response(400, error.message or "Bad Request")
    if isinstance(error, EncodingError):
        return text_response(500, "Encoding Error")
    return internal_error_response()
