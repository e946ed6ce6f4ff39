"""
Ephemeral keyed store.

Wraps a Backend with a time-stamped envelope. On the wire an envelope is
one JSON object: ``capturedAt`` (epoch millis) beside the payload's own
keys, so a cart payload ``{"items": [...]}`` is stored as
``{"capturedAt": 1700000000000, "items": [...]}``.

Reads never raise: missing, unreadable or malformed data all come back
as ``None``, and malformed data is cleared on the way.
"""
import json
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from shophub.errors import StorageUnavailable
from shophub.logging import get_logger
from .backends import Backend

logger = get_logger(__name__)

CAPTURED_AT_FIELD = "capturedAt"


def epoch_millis() -> int:
    return int(time.time() * 1000)


class _EnvelopeShape(BaseModel):
    """Schema check for stored envelopes before any field is trusted."""

    model_config = ConfigDict(extra="allow")

    captured_at: StrictInt = Field(alias=CAPTURED_AT_FIELD, ge=0)


@dataclass(frozen=True)
class Envelope:
    """A payload stamped with the time it was captured."""

    captured_at: int
    payload: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if CAPTURED_AT_FIELD in self.payload:
            raise ValueError(f"payload may not define reserved key {CAPTURED_AT_FIELD!r}")

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.captured_at

    def is_fresh(self, now_ms: int, ttl_ms: int) -> bool:
        """Valid only while strictly younger than the TTL."""
        return self.age_ms(now_ms) < ttl_ms

    def to_json(self) -> str:
        return json.dumps({CAPTURED_AT_FIELD: self.captured_at, **self.payload})

    @classmethod
    def from_json(cls, raw: str) -> "Envelope":
        """
        Parse and validate a stored envelope.

        Raises:
            ValueError: undecodable JSON, not an object, or a missing or
                non-integer capturedAt (pydantic's ValidationError is a
                ValueError too)
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"envelope must be a JSON object, got {type(data).__name__}")
        shape = _EnvelopeShape.model_validate(data)
        return cls(captured_at=shape.captured_at, payload=dict(shape.model_extra or {}))


class EphemeralStore:
    """
    get/set/clear over a session-scoped backend.

    Store-empty is a normal startup state. Backend outages on read are
    logged and reported as empty; on write or clear they raise
    StorageUnavailable so the owner can decide what to keep in memory.
    """

    def __init__(self, backend: Backend, default_ttl_ms: Optional[int] = None):
        self.backend = backend
        self.default_ttl_ms = default_ttl_ms

    async def read(self, key: str) -> Optional[Envelope]:
        try:
            raw = await self.backend.get(key)
        except Exception as e:
            logger.warning("Store read failed for %s, treating as empty: %s", key, e)
            return None

        if raw is None:
            return None

        try:
            return Envelope.from_json(raw)
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning("Corrupted envelope under %s, clearing: %s", key, e)
            await self.discard(key)
            return None

    async def write(self, key: str, envelope: Envelope, ttl_ms: Optional[int] = None) -> None:
        ttl = ttl_ms if ttl_ms is not None else self.default_ttl_ms
        try:
            await self.backend.set(key, envelope.to_json(), ttl)
        except Exception as e:
            logger.error("Store write failed for %s: %s", key, e)
            raise StorageUnavailable(f"Store unavailable: {e}") from e

    async def clear(self, key: str) -> None:
        try:
            await self.backend.delete(key)
        except Exception as e:
            logger.error("Store clear failed for %s: %s", key, e)
            raise StorageUnavailable(f"Store unavailable: {e}") from e

    async def discard(self, key: str) -> None:
        """Clear stale or corrupted data on the read path; never raises."""
        try:
            await self.backend.delete(key)
        except Exception as e:
            logger.warning("Could not discard %s: %s", key, e)
