"""
Draft stash for multi-page admin wizards.

The promotion wizard collects form data on one page, the banner HTML on
the next, and submits everything from the last. Each page stashes its
part under a well-known key; the final page takes them (read + clear)
so a draft is consumed exactly once.
"""
from typing import Any, Callable, Optional

from shophub.config import TTL
from shophub.logging import get_logger
from shophub.storage import Envelope, EphemeralStore, epoch_millis

logger = get_logger(__name__)

DRAFT_VALUE_FIELD = "value"

# Keys used by the promotion wizard
PROMOTION_FORM_KEY = "promotionFormData"
BANNER_HTML_KEY = "bannerHtml"


class DraftStash:
    def __init__(
        self,
        store: EphemeralStore,
        ttl_ms: int = TTL.DRAFT_MS,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.store = store
        self.ttl_ms = ttl_ms
        self._clock = clock or epoch_millis

    async def stash(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value, replacing any previous draft."""
        envelope = Envelope(captured_at=self._clock(), payload={DRAFT_VALUE_FIELD: value})
        await self.store.write(key, envelope, ttl_ms=self.ttl_ms)

    async def peek(self, key: str) -> Optional[Any]:
        """Read a draft without consuming it. Expired drafts read as None."""
        envelope = await self.store.read(key)
        if envelope is None:
            return None
        if not envelope.is_fresh(self._clock(), self.ttl_ms):
            logger.info("Draft %s expired, discarding", key)
            await self.store.discard(key)
            return None
        if DRAFT_VALUE_FIELD not in envelope.payload:
            logger.warning("Draft %s has no value, discarding", key)
            await self.store.discard(key)
            return None
        return envelope.payload[DRAFT_VALUE_FIELD]

    async def take(self, key: str) -> Optional[Any]:
        """
        Read a draft and clear it.

        A clear that fails is logged; the draft then lingers until its TTL.
        """
        value = await self.peek(key)
        await self.store.discard(key)
        return value

    async def discard(self, *keys: str) -> None:
        for key in keys:
            await self.store.clear(key)
