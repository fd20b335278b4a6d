import logging
import sys

from greeter.config import load_config
from greeter.errors import BindError
from greeter.main import bind_socket, serve_asgi
from greeter.responder import serve, start

logger = logging.getLogger("greeter")


def run() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        config = load_config()
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)
    logging.getLogger().setLevel(config.log_level)

    try:
        if config.backend == "asgi":
            sock = bind_socket(config)
            port = sock.getsockname()[1]
        else:
            server = start(config)
            port = server.port
    except BindError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    # Part of the stdout contract, not a log record
    print(f"Server is running on http://localhost:{port}", flush=True)

    if config.backend == "asgi":
        serve_asgi(sock, config)
    else:
        serve(server)


if __name__ == "__main__":
    run()
