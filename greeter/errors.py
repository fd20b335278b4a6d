from __future__ import annotations

from typing import Optional


class BindError(OSError):
    """The listening socket could not be created on the requested address."""

    def __init__(self, host: str, port: int, cause: Optional[BaseException] = None) -> None:
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(f"could not bind {host}:{port}: {reason}")
        self.host = host
        self.port = port
        self.cause = cause


class ClientIOError(OSError):
    """Reading from or writing to a single client connection failed."""
