"""Per-connection correlation IDs carried through log records.

Each worker thread runs one connection, so the ID lives in a context variable
scoped by :func:`connection_correlation`. A client may supply its own ID with
an ``X-Request-ID`` header; :func:`adopt_request_id` switches to it once the
request has been parsed.
"""

import contextvars
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_PREFIX = "minihttp."
REQUEST_ID_HEADER = "X-Request-ID"
NO_CORRELATION = "-"

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


@contextmanager
def connection_correlation() -> Iterator[str]:
    """Bind a fresh ID for the lifetime of one connection."""
    token = _correlation_id_var.set(generate_correlation_id())
    try:
        yield _correlation_id_var.get()
    finally:
        _correlation_id_var.reset(token)


def adopt_request_id(request_id: Optional[str]) -> Optional[str]:
    """Use a client-supplied request ID when it is non-blank."""
    if request_id and request_id.strip():
        set_correlation_id(request_id.strip())
    return get_correlation_id()


def component_name(logger_name: str) -> str:
    """``minihttp.transport.worker`` -> ``transport.worker``."""
    return logger_name.removeprefix(LOGGER_PREFIX)


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Adds ``correlation_id`` and ``component`` to every record's extras."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["correlation_id"] = get_correlation_id() or NO_CORRELATION
        extra["component"] = component_name(self.logger.name)
        kwargs["extra"] = extra
        return msg, kwargs
