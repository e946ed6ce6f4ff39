"""
Cart session: the capability surface handed to storefront views.

One CartSession exists per browsing session. It is constructed
explicitly (no module-level singleton) so tests and embedding code can
inject the store, clock and HTTP client.

Usage:
    session = await CartSession.open()
    await session.add_item(item)
    result = await session.checkout("Jane Doe")
    if result.ok:
        redirect(result.redirect_url)
"""
from decimal import Decimal
from typing import List, Optional

import httpx

from shophub.cart import CartController, LineItem
from shophub.cart.service import Clock
from shophub.checkout import CheckoutStagingClient, StagingFailure, StagingResult
from shophub.config import CHECKOUT_CURRENCY, TTL
from shophub.errors import (
    FailureKind,
    NOTICE_CART_CLEARED,
    NOTICE_ITEM_ADDED,
    NOTICE_ITEM_REMOVED,
    NOTICE_ORDER_PLACED,
    NOTICE_QUANTITY_INCREASED,
)
from shophub.money import format_money
from shophub.notices import NoticeLevel, Notifier, log_notifier
from shophub.storage import EphemeralStore, MemoryBackend


class CartSession:
    """Read and mutate the cart, and stage it for checkout."""

    def __init__(
        self,
        controller: CartController,
        stager: CheckoutStagingClient,
        notifier: Optional[Notifier] = None,
    ):
        self.controller = controller
        self.stager = stager
        self.notify = notifier or log_notifier

    @classmethod
    async def open(
        cls,
        store: Optional[EphemeralStore] = None,
        *,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Optional[Clock] = None,
        notifier: Optional[Notifier] = None,
    ) -> "CartSession":
        """Build a session over ``store`` (in-memory by default) and hydrate it."""
        if store is None:
            store = EphemeralStore(MemoryBackend(), default_ttl_ms=TTL.CART_MS)
        controller = CartController(store, clock=clock)
        stager = CheckoutStagingClient(controller, base_url=base_url, http_client=http_client)
        session = cls(controller, stager, notifier)
        await controller.hydrate()
        return session

    async def __aenter__(self) -> "CartSession":
        await self.controller.hydrate()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.stager.aclose()

    # ==================== READS ====================

    @property
    def items(self) -> List[LineItem]:
        return self.controller.cart.items

    @property
    def total(self) -> Decimal:
        return self.controller.cart.total

    @property
    def count(self) -> int:
        return self.controller.cart.count

    @property
    def is_empty(self) -> bool:
        return self.controller.cart.is_empty

    def formatted_total(self) -> str:
        return format_money(self.total, CHECKOUT_CURRENCY)

    # ==================== MUTATIONS ====================

    async def add_item(self, item: LineItem, quantity: int = 1) -> LineItem:
        cart = await self.controller.hydrate()
        merged = cart.contains(item.product_id)
        line = await self.controller.add(item, quantity)
        if merged:
            self.notify(NoticeLevel.SUCCESS, NOTICE_QUANTITY_INCREASED.format(name=line.name))
        else:
            self.notify(NoticeLevel.SUCCESS, NOTICE_ITEM_ADDED.format(name=line.name))
        return line

    async def update_quantity(self, product_id: str, quantity: int) -> bool:
        return await self.controller.update_quantity(product_id, quantity)

    async def remove_item(self, product_id: str) -> bool:
        removed = await self.controller.remove(product_id)
        if removed:
            self.notify(NoticeLevel.INFO, NOTICE_ITEM_REMOVED)
        return removed

    async def clear_cart(self) -> None:
        await self.controller.clear()
        self.notify(NoticeLevel.INFO, NOTICE_CART_CLEARED)

    # ==================== CHECKOUT ====================

    async def checkout(self, client_name: str) -> StagingResult:
        """Stage the whole cart. On success the staged lines leave the cart."""
        result = await self.stager.stage_cart(client_name)
        self._announce(result)
        return result

    async def buy_now(self, item: LineItem, client_name: str) -> StagingResult:
        """Stage one unit of ``item`` without touching the cart."""
        result = await self.stager.stage_single_item(item, client_name)
        self._announce(result)
        return result

    def leave_checkout(self) -> None:
        """Called when the user navigates away while staging is in flight."""
        self.stager.abandon()

    def _announce(self, result: StagingResult) -> None:
        if result.ok:
            self.notify(NoticeLevel.SUCCESS, NOTICE_ORDER_PLACED)
        elif isinstance(result, StagingFailure) and result.kind is not FailureKind.ABANDONED:
            self.notify(NoticeLevel.ERROR, result.message)
