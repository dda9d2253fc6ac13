"""Handlers for the root greeting, echo and user-agent routes."""

import logging

from minihttp.bootstrap.config import ECHO_ENDPOINT_PREFIX
from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.domain.errors import InvalidRequest
from minihttp.domain.http_types import HEADER_ENCODING, HttpRequest, HttpResponse
from minihttp.domain.response_builders import (
    TEXT_PLAIN,
    compress_if_gzip_supported,
    root_response,
    text_response,
)
from minihttp.handlers.base import path_remainder

SYSTEM_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.handlers.system"), {}
)
COMPRESSION_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.compression"), {}
)


class RootHandler:
    """Fixed greeting for ``/``."""

    def handle(self, request: HttpRequest) -> HttpResponse:
        return root_response()


class EchoHandler:
    """Return the text after ``/echo/``, gzip-compressed when accepted."""

    def handle(self, request: HttpRequest) -> HttpResponse:
        content = path_remainder(request, ECHO_ENDPOINT_PREFIX)
        if content is None:
            raise InvalidRequest("No echo content provided")

        payload = content.encode(HEADER_ENCODING, errors="replace")
        payload, encoding_headers = compress_if_gzip_supported(
            payload, request.header("Accept-Encoding"), COMPRESSION_LOGGER
        )
        if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
            SYSTEM_LOGGER.debug(
                "Echo request processed",
                extra={"event": "echo_request", "size": len(content)},
            )
        response = HttpResponse(200).with_header("Content-Type", TEXT_PLAIN)
        for name, value in encoding_headers.items():
            response.with_header(name, value)
        return response.with_body(payload)


class UserAgentHandler:
    """Reflect the request's User-Agent header."""

    def handle(self, request: HttpRequest) -> HttpResponse:
        agent = request.header("User-Agent")
        if agent is None:
            raise InvalidRequest("No User-Agent header")
        if SYSTEM_LOGGER.logger.isEnabledFor(logging.DEBUG):
            SYSTEM_LOGGER.debug(
                "User-agent request processed", extra={"event": "user_agent_request"}
            )
        return text_response(200, agent)
