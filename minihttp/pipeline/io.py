"""HTTP/1.1 framing: request decoding and response encoding."""

import logging
import socket
from typing import BinaryIO, Iterable, Optional, Tuple

from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.domain.errors import (
    IncompleteBody,
    IncompleteRequest,
    MalformedHeader,
    MalformedRequestLine,
)
from minihttp.domain.http_types import (
    HEADER_ENCODING,
    HTTP_VERSION,
    HttpRequest,
    HttpResponse,
)

IO_LOGGER = CorrelationLoggerAdapter(logging.getLogger("minihttp.pipeline.io"), {})

MAX_LINE_BYTES = 64 * 1024
READ_CHUNK_BYTES = 65536
HEADER_SEPARATOR = ": "
CRLF = b"\r\n"


def _read_line(reader: BinaryIO, error_type: type) -> Optional[bytes]:
    """Read one line, returning None at EOF and stripping the line ending."""
    raw = reader.readline(MAX_LINE_BYTES + 1)
    if not raw:
        return None
    if len(raw) > MAX_LINE_BYTES:
        raise error_type("Line exceeds maximum length")
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    elif raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw


def parse_request_line(request_line: str) -> Tuple[str, str, str]:
    """Split the request line into method, path and protocol version."""
    parts = request_line.split()
    if len(parts) != 3:
        raise MalformedRequestLine(f"Invalid request line: {request_line!r}")
    method, path, version = parts
    if not path.startswith("/"):
        raise MalformedRequestLine(f"Request target must start with '/': {path!r}")
    return method, path, version


def parse_headers(lines: Iterable[str]) -> dict[str, str]:
    """Convert raw header lines into a case-preserving dictionary.

    Lines without a ``": "`` separator are dropped. Duplicate names keep the
    last value.
    """
    parsed = {}
    for line in lines:
        if HEADER_SEPARATOR in line:
            name, value = line.split(HEADER_SEPARATOR, 1)
            parsed[name] = value
    return parsed


def determine_content_length(headers: dict[str, str]) -> int:
    """Return the declared body length, or 0 when no Content-Length is sent."""
    header_value = None
    for name, value in headers.items():
        if name.lower() == "content-length":
            header_value = value
    if header_value is None:
        return 0
    header_value = header_value.strip()
    if not header_value.isdigit():
        raise MalformedHeader(f"Invalid Content-Length: {header_value!r}")
    try:
        return int(header_value)
    except ValueError as exc:
        raise MalformedHeader(f"Invalid Content-Length: {header_value!r}") from exc


def _read_body(reader: BinaryIO, content_length: int) -> bytes:
    chunks = []
    remaining = content_length
    while remaining > 0:
        chunk = reader.read(min(remaining, READ_CHUNK_BYTES))
        if not chunk:
            received = content_length - remaining
            raise IncompleteBody(
                f"Expected {content_length} body bytes, received {received}"
            )
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_request(reader: BinaryIO) -> Optional[HttpRequest]:
    """Decode one request from a buffered binary stream.

    Returns None when the peer closes before sending anything.
    """
    first = _read_line(reader, MalformedRequestLine)
    if first is None:
        return None
    if not first:
        raise MalformedRequestLine("Empty request line")

    header_lines = []
    while True:
        line = _read_line(reader, MalformedHeader)
        if line is None:
            raise IncompleteRequest("Connection closed before end of headers")
        if not line:
            break
        header_lines.append(line.decode(HEADER_ENCODING))

    method, path, _ = parse_request_line(first.decode(HEADER_ENCODING))
    headers = parse_headers(header_lines)
    content_length = determine_content_length(headers)

    body = _read_body(reader, content_length)

    IO_LOGGER.debug(
        "Parsed request",
        extra={"method": method, "route": path, "bytes_in": content_length},
    )
    return HttpRequest(method, path, headers, body)


def encode_response(response: HttpResponse) -> bytes:
    """Serialize the status line, headers, blank line and body."""
    lines = [f"{HTTP_VERSION} {response.status_code} {response.status_text}"]
    lines.extend(f"{name}: {value}" for name, value in response.headers.items())
    header_block = "\r\n".join(lines).encode(HEADER_ENCODING) + CRLF + CRLF
    return header_block + response.body


def send_response(client_socket: socket.socket, response: HttpResponse) -> None:
    """Serialize and send the HTTP response over the socket."""
    payload = encode_response(response)
    client_socket.sendall(payload)
    IO_LOGGER.debug(
        "Sent response",
        extra={"status_code": response.status_code, "bytes_out": len(payload)},
    )
