"""Process settings, resolved once from the environment at startup."""

from __future__ import annotations

import logging
import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEFAULT_GREETING = "Hello from Node.js in a Docker container!"


class ServerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    # 0 asks the OS for an ephemeral port
    port: int = Field(default=DEFAULT_PORT, ge=0)
    greeting: str = DEFAULT_GREETING
    backend: Literal["threading", "asgi"] = "threading"
    idle_timeout: Optional[float] = Field(default=60.0, gt=0)
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"


def parse_port(value: Optional[str]) -> int:
    """Lenient PORT parsing.

    Absent, blank, non-integer, zero and negative values all fall back to
    DEFAULT_PORT. Values above the TCP range are returned unchanged and
    fail later when the socket is bound.
    """
    if value is None or not value.strip():
        return DEFAULT_PORT
    try:
        port = int(value.strip())
    except ValueError:
        logger.warning("Ignoring non-numeric PORT=%r, using %d", value, DEFAULT_PORT)
        return DEFAULT_PORT
    if port <= 0:
        logger.warning("Ignoring non-positive PORT=%r, using %d", value, DEFAULT_PORT)
        return DEFAULT_PORT
    return port


def parse_timeout(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return ServerConfig.model_fields["idle_timeout"].default
    if value.strip().lower() in ("none", "off", "0"):
        return None
    return float(value)


def load_config(environ: Optional[Mapping[str, str]] = None) -> ServerConfig:
    env = os.environ if environ is None else environ
    values = {
        "port": parse_port(env.get("PORT")),
        "idle_timeout": parse_timeout(env.get("IDLE_TIMEOUT")),
    }
    if env.get("HOST"):
        values["host"] = env["HOST"]
    if env.get("GREETING"):
        values["greeting"] = env["GREETING"]
    if env.get("SERVER_BACKEND"):
        values["backend"] = env["SERVER_BACKEND"].strip().lower()
    if env.get("LOG_LEVEL"):
        values["log_level"] = env["LOG_LEVEL"].strip().upper()
    return ServerConfig(**values)
