"""Cart lifecycle controller: hydrates from and persists to the ephemeral store."""
import asyncio
from enum import Enum
from typing import Callable, List, Optional

from shophub.config import CART_STORAGE_KEY, TTL
from shophub.errors import ERROR_NOT_HYDRATED, StorageUnavailable
from shophub.logging import get_logger
from shophub.storage import Envelope, EphemeralStore, epoch_millis
from .models import Cart, LineItem

logger = get_logger(__name__)

Clock = Callable[[], int]


class LifecycleState(str, Enum):
    UNINITIALIZED = "uninitialized"
    HYDRATED = "hydrated"


class CartController:
    """
    Owns one Cart and its backing store key for a browsing session.

    Features:
    - Lazy hydration on first access, honoring snapshots younger than the TTL
    - A fresh snapshot after every accepted mutation (refreshes the TTL window)
    - clear() removes the key outright so a stale read cannot resurrect items

    Persistence failures are logged and the in-memory cart stays
    authoritative; the next accepted mutation writes the full state again.
    """

    def __init__(
        self,
        store: EphemeralStore,
        key: str = CART_STORAGE_KEY,
        ttl_ms: int = TTL.CART_MS,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.key = key
        self.ttl_ms = ttl_ms
        self._clock = clock or epoch_millis
        self._cart: Optional[Cart] = None
        self._hydrate_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()
        self.state = LifecycleState.UNINITIALIZED

    @property
    def cart(self) -> Cart:
        if self._cart is None:
            raise RuntimeError(ERROR_NOT_HYDRATED)
        return self._cart

    @property
    def is_hydrated(self) -> bool:
        return self.state is LifecycleState.HYDRATED

    async def hydrate(self) -> Cart:
        """Load the persisted snapshot once per session."""
        if self._cart is not None:
            return self._cart

        async with self._hydrate_lock:
            if self._cart is not None:
                return self._cart

            # An unreadable store is not a snapshot: leave whatever it holds
            cart = await self._load_snapshot()
            if cart is None:
                cart = Cart()

            self._cart = cart
            self.state = LifecycleState.HYDRATED
            return cart

    async def _load_snapshot(self) -> Optional[Cart]:
        envelope = await self.store.read(self.key)
        if envelope is None:
            logger.debug("No cart snapshot under %s", self.key)
            return None

        now = self._clock()
        if not envelope.is_fresh(now, self.ttl_ms):
            logger.info("Discarding expired cart snapshot (age %d ms)", envelope.age_ms(now))
            await self.store.discard(self.key)
            return None

        try:
            cart = Cart.from_payload(envelope.payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Corrupted cart snapshot under %s: %s", self.key, e)
            await self.store.discard(self.key)
            return None

        logger.info("Hydrated cart with %d line(s)", len(cart))
        return cart

    async def add(self, item: LineItem, quantity: int = 1) -> LineItem:
        cart = await self.hydrate()
        line = cart.add(item, quantity)
        await self._persist()
        return line

    async def update_quantity(self, product_id: str, quantity: int) -> bool:
        cart = await self.hydrate()
        changed = cart.update_quantity(product_id, quantity)
        if changed:
            await self._persist()
        return changed

    async def remove(self, product_id: str) -> bool:
        cart = await self.hydrate()
        removed = cart.remove(product_id)
        if removed:
            await self._persist()
        return removed

    async def clear(self) -> None:
        cart = await self.hydrate()
        cart.clear()
        async with self._write_lock:
            await self._clear_key()

    async def settle(self, staged_lines: List[LineItem], staged_revision: int) -> None:
        """
        Drop what a successful checkout staged.

        If nothing changed since the request was built the whole cart is
        cleared; otherwise only the staged quantities are deducted so
        items added while the request was in flight survive.
        """
        cart = await self.hydrate()
        if cart.revision == staged_revision:
            await self.clear()
            return

        logger.info("Cart changed during checkout; deducting %d staged line(s)", len(staged_lines))
        cart.deduct(staged_lines)
        if cart.is_empty:
            await self.clear()
        else:
            await self._persist()

    async def _persist(self) -> None:
        # The snapshot is taken inside the lock so the last write always
        # carries the latest state, whatever order writers were queued in.
        async with self._write_lock:
            envelope = Envelope(captured_at=self._clock(), payload=self.cart.to_payload())
            try:
                await self.store.write(self.key, envelope, ttl_ms=self.ttl_ms)
            except StorageUnavailable as e:
                logger.error("Cart snapshot not persisted (%d line(s) kept in memory): %s", len(self.cart), e)

    async def _clear_key(self) -> None:
        try:
            await self.store.clear(self.key)
        except StorageUnavailable as e:
            logger.error("Could not clear cart key %s: %s", self.key, e)
