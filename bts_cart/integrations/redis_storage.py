"""Redis-backed durable storage for the cart record."""
from __future__ import annotations

import os
from typing import Any

import redis

from bts_cart.core.constants import DEFAULT_ORIGIN, REDIS_KEY_PREFIX, REDIS_SOCKET_TIMEOUT_SECONDS
from bts_cart.core.exceptions import StorageException
from bts_cart.core.logging_config import logger


class RedisStorage:
    """Key-value storage in Redis, namespaced per origin. Keys never expire."""

    def __init__(self, redis_url: str | None = None, origin: str = DEFAULT_ORIGIN, client: Any = None):
        self.origin = origin
        self._redis_url = redis_url or os.getenv("REDIS_URL")
        self._client: Any = client if client is not None else self._init_client()

    def _init_client(self) -> Any:
        if not self._redis_url:
            raise StorageException("REDIS_URL is not set")

        try:
            client = redis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=REDIS_SOCKET_TIMEOUT_SECONDS,
                socket_timeout=REDIS_SOCKET_TIMEOUT_SECONDS,
            )
            client.ping()
        except Exception as exc:
            raise StorageException(f"Redis storage init failed: {exc}") from exc
        logger.info("Redis cart storage enabled for origin %s", self.origin)
        return client

    def _key(self, key: str) -> str:
        return f"{REDIS_KEY_PREFIX}:{self.origin}:{key}"

    def get_item(self, key: str) -> str | None:
        try:
            value = self._client.get(self._key(key))
        except Exception as exc:
            raise StorageException(f"Redis read failed: {exc}", key=key) from exc
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set_item(self, key: str, value: str) -> None:
        try:
            self._client.set(self._key(key), value)
        except Exception as exc:
            raise StorageException(f"Redis write failed: {exc}", key=key) from exc

    def remove_item(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except Exception as exc:
            raise StorageException(f"Redis delete failed: {exc}", key=key) from exc

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is None:
            return
        try:
            close()
        except Exception as exc:
            logger.warning("Redis cart storage close failed: %s", exc)
