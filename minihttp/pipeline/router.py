"""Request routing by the first path segment."""

import logging
from typing import Optional

from minihttp.bootstrap.config import ServerConfig
from minihttp.domain.correlation_id import CorrelationLoggerAdapter
from minihttp.domain.http_types import HttpRequest, HttpResponse
from minihttp.domain.response_builders import not_found_response
from minihttp.handlers.base import RequestHandler
from minihttp.handlers.file_handler import FileHandler
from minihttp.handlers.system_handlers import EchoHandler, RootHandler, UserAgentHandler

ROUTER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("minihttp.pipeline.router"), {}
)

ROOT_SEGMENT = ""


def first_segment(path: str) -> str:
    """Return the text between the first and second ``/`` of the path."""
    segments = path.split("/")
    return segments[1] if len(segments) > 1 else ROOT_SEGMENT


class Router:
    """Maps a first path segment to the handler registered for it."""

    def __init__(self) -> None:
        self._routes: dict[str, RequestHandler] = {}

    def register(self, segment: str, handler: RequestHandler) -> None:
        self._routes[segment] = handler

    def resolve(self, request: HttpRequest) -> Optional[RequestHandler]:
        return self._routes.get(first_segment(request.path))

    def dispatch(self, request: HttpRequest) -> HttpResponse:
        """Run the matching handler; unknown routes produce a 404 directly.

        ``HandleError`` raised by the handler propagates to the caller.
        """
        handler = self.resolve(request)
        if handler is None:
            ROUTER_LOGGER.info(
                "No matching route found",
                extra={
                    "event": "route_not_found",
                    "route": request.path,
                    "method": request.method,
                },
            )
            return not_found_response()

        if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            ROUTER_LOGGER.debug(
                "Route matched",
                extra={"event": "route_matched", "route": request.path},
            )
        return handler.handle(request)


def build_router(config: ServerConfig) -> Router:
    """Register the built-in routes."""
    router = Router()
    router.register(ROOT_SEGMENT, RootHandler())
    router.register("echo", EchoHandler())
    router.register("user-agent", UserAgentHandler())
    router.register("files", FileHandler(config.directory))
    return router
