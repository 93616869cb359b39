import logging
from typing import Optional

import redis

from errors import CacheUnavailable

logger = logging.getLogger(__name__)


def create_redis_client(redis_url: str, password: Optional[str] = None) -> redis.Redis:
    kwargs = {"decode_responses": True}
    if password:
        kwargs["password"] = password
    return redis.Redis.from_url(redis_url, **kwargs)


class PageCache:
    """Fine couche au-dessus du client Redis : traduit les RedisError en CacheUnavailable."""

    def __init__(self, client):
        self._client = client

    def get(self, key: str) -> Optional[str]:
        try:
            return self._client.get(key)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e)) from e

    def setex(self, key: str, ttl: int, value: str) -> None:
        try:
            self._client.setex(key, ttl, value)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e)) from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e)) from e

    def ping(self) -> None:
        try:
            self._client.ping()
        except redis.RedisError as e:
            raise CacheUnavailable(str(e)) from e
