"""Handler interface implemented by every route."""

from typing import Optional, Protocol

from minihttp.domain.http_types import HttpRequest, HttpResponse


class RequestHandler(Protocol):  # pylint: disable=too-few-public-methods
    """A route handler; failures are raised as ``HandleError`` subclasses."""

    def handle(self, request: HttpRequest) -> HttpResponse:
        """Process ``request`` and return the response to send."""


def path_remainder(request: HttpRequest, prefix: str) -> Optional[str]:
    """Return the non-empty text after ``prefix`` in the path, if any."""
    if not request.path.startswith(prefix):
        return None
    remainder = request.path[len(prefix) :]
    return remainder or None
