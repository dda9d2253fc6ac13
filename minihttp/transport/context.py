"""Context object shared across worker threads."""

from dataclasses import dataclass

from minihttp.bootstrap.config import ServerConfig
from minihttp.lifecycle.state import ServerLifecycle
from minihttp.pipeline.router import Router


@dataclass(frozen=True)
class WorkerContext:
    """Read-only dependencies handed to every connection worker."""

    config: ServerConfig
    router: Router
    lifecycle: ServerLifecycle
