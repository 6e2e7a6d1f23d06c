from typing import TYPE_CHECKING

import redis
from flask import Flask
from flask_login import LoginManager

from wazza.utils.logging import get_logger

if TYPE_CHECKING:
    from redis import Redis

logger = get_logger(__name__)

# sessions are rows in session_table; no remember-me cookie
login_manager = LoginManager()
login_manager.session_protection = "basic"


class RedisClient:
    """Holds one Redis connection pool per process, created by ``init_app``."""

    def __init__(self) -> None:
        self._client: "Redis[str] | None" = None

    def init_app(self, app: Flask) -> None:
        url = app.config.get("REDIS_URL", "redis://localhost:6379/0")
        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=app.config.get("REDIS_TIMEOUT", 2),
            socket_connect_timeout=app.config.get("REDIS_TIMEOUT", 2),
        )
        app.extensions["redis"] = self
        # never log credentials embedded in the URL
        logger.info("Redis cache at %s", url.rsplit("@", 1)[-1])

    @property
    def client(self) -> "Redis[str]":
        if self._client is None:
            raise RuntimeError("Redis not initialized")
        return self._client

    def available(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.warning("Redis unreachable: %s", e)
            return False


redis_client = RedisClient()
