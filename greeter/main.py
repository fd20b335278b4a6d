from __future__ import annotations

import logging
import socket

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from .config import DEFAULT_GREETING, ServerConfig
from .errors import BindError

logger = logging.getLogger(__name__)


def create_app(greeting: str = DEFAULT_GREETING) -> FastAPI:
    # No docs/openapi routes: every path must answer with the greeting
    app = FastAPI(
        title="Greeter",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    # A response object is itself an ASGI app; registered without a method
    # list the route matches every method, including non-standard ones.
    app.router.add_route(
        "/{path:path}",
        PlainTextResponse(greeting),
        name="greet",
        include_in_schema=False,
    )
    return app


app = create_app()


def keep_alive_timeout(config: ServerConfig) -> int:
    """uvicorn takes whole seconds; never round a short timeout down to 0."""
    return max(1, round(config.idle_timeout))


def bind_socket(config: ServerConfig) -> socket.socket:
    """Bind and listen on config.host/config.port, raising BindError on failure."""
    try:
        return socket.create_server((config.host, config.port))
    except (OSError, OverflowError) as exc:
        raise BindError(config.host, config.port, exc) from exc


def serve_asgi(sock: socket.socket, config: ServerConfig) -> None:
    uvicorn_config = uvicorn.Config(
        create_app(config.greeting),
        log_level=config.log_level.lower(),
        access_log=False,
    )
    if config.idle_timeout is not None:
        uvicorn_config.timeout_keep_alive = keep_alive_timeout(config)
    server = uvicorn.Server(uvicorn_config)
    logger.debug("Serving ASGI app on %s", sock.getsockname())
    try:
        server.run(sockets=[sock])
    finally:
        sock.close()
