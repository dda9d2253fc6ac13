"""Error taxonomy for request parsing and request handling."""


class RequestParseError(ValueError):
    """Raised when the request framing cannot be parsed."""


class MalformedRequestLine(RequestParseError):
    """The request line is not ``METHOD /path VERSION``."""


class MalformedHeader(RequestParseError):
    """A header needed for framing (Content-Length) is unusable."""


class IncompleteRequest(ConnectionError):
    """The peer closed the connection before the headers were complete."""


class IncompleteBody(IncompleteRequest):
    """The peer closed the connection before sending Content-Length bytes."""


class HandleError(Exception):
    """Base class for failures raised by request handlers."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class InvalidRequest(HandleError):
    """Missing path segment or header, or an unsupported method."""

    status_code = 400


class FileNotFound(HandleError):
    """GET on a file that does not exist under the base directory."""

    status_code = 404


class HandlerIoError(HandleError):
    """Filesystem failure other than a missing file."""

    status_code = 500


class EncodingError(HandleError):
    """Response body compression failed."""

    status_code = 500
