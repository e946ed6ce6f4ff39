"""
Storage backends for the ephemeral keyed store.

A backend is a plain async string key/value map. It knows nothing about
envelopes or snapshot layout:
- MemoryBackend: process-local, scoped to one browsing session (the
  sessionStorage analogue). Empty on every new session.
- RedisBackend: Upstash Redis, keys namespaced per browsing session and
  expired server-side.
"""

from typing import Optional, Protocol

from upstash_redis.asyncio import Redis as AsyncRedis

from shophub.config import UPSTASH_REDIS_REST_URL, UPSTASH_REDIS_REST_TOKEN, TTL
from shophub.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)


class Backend(Protocol):
    """Async string key/value storage."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str, ttl_ms: Optional[int] = None) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryBackend:
    """
    In-memory backend scoped to a single session.

    Expiry is enforced by the envelope's capturedAt, so ttl_ms is accepted
    for interface parity and otherwise ignored.
    """

    def __init__(self):
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str, ttl_ms: Optional[int] = None) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisKeys:
    """Redis key prefixes for session-scoped data."""

    SESSION = "session:"  # session:{session_id}:{key}

    @staticmethod
    def session_key(session_id: str, key: str) -> str:
        return f"{RedisKeys.SESSION}{session_id}:{key}"


class RedisBackend:
    """
    Upstash Redis backend.

    Every key is namespaced by the browsing session id, so two sessions
    never share a cart. Values are written with a server-side expiry
    matching the envelope TTL.
    """

    def __init__(
        self,
        session_id: str,
        client: Optional[AsyncRedis] = None,
        url: str | None = None,
        token: str | None = None,
    ):
        if not session_id:
            raise ValueError("session_id must be a non-empty string")
        self.session_id = session_id
        self._redis = client  # Lazy initialization when not injected
        self._url = url or UPSTASH_REDIS_REST_URL
        self._token = token or UPSTASH_REDIS_REST_TOKEN

    @property
    def redis(self) -> AsyncRedis:
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            if not self._url or not self._token:
                raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
            self._redis = AsyncRedis(url=self._url, token=self._token)
        return self._redis

    def _key(self, key: str) -> str:
        return RedisKeys.session_key(self.session_id, key)

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(self._key(key))

    async def set(self, key: str, value: str, ttl_ms: Optional[int] = None) -> None:
        if ttl_ms is None:
            await self.redis.set(self._key(key), value)
        else:
            await self.redis.set(self._key(key), value, ex=TTL.to_seconds(ttl_ms))
        logger.debug("Stored %s for session %s", key, sanitize_id_for_logging(self.session_id))

    async def delete(self, key: str) -> None:
        await self.redis.delete(self._key(key))
