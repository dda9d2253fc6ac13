"""Request and response value types shared by every layer."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

HTTP_VERSION = "HTTP/1.1"
HEADER_ENCODING = "iso-8859-1"

STATUS_TEXT = {
    200: "OK",
    201: "Created",
    400: "Bad Request",
    404: "Not Found",
    500: "Internal Server Error",
}


def status_text(status_code: int) -> str:
    """Return the reason phrase for a status code, or ``Unknown``."""
    return STATUS_TEXT.get(status_code, "Unknown")


@dataclass(frozen=True)
class HttpRequest:
    """A parsed HTTP request; the body length always equals Content-Length.

    Headers are wrapped in a read-only view so the request cannot change
    after parsing.
    """

    method: str
    path: str
    headers: Mapping[str, str]
    body: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    def header(self, name: str) -> Optional[str]:
        """Look up a header value ignoring the case of its name."""
        wanted = name.lower()
        found = None
        for key, candidate in self.headers.items():
            if key.lower() == wanted:
                found = candidate
        return found

    def path_segments(self) -> list[str]:
        """Split the path on ``/``; index 0 is always the empty string."""
        return self.path.split("/")


@dataclass
class HttpResponse:
    """An HTTP response assembled by a handler before serialization."""

    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def status_text(self) -> str:
        return status_text(self.status_code)

    def with_body(self, body: bytes) -> "HttpResponse":
        """Set the body and the matching Content-Length header."""
        self.body = body
        self.headers["Content-Length"] = str(len(body))
        return self

    def with_header(self, name: str, value: str) -> "HttpResponse":
        self.headers[name] = value
        return self
