"""
Cart line controls — the "+", "−" and "remove" buttons of one line.

Each control holds the line in the in-flight guard for the duration of
its request. A control pressed while its line is in flight is ignored,
as a disabled button would be.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from storefront._types import ItemId
from storefront.cart._guard import InFlightGuard
from storefront.cart._store import CartStore
from storefront.domain import Cart, CartItem

logger = logging.getLogger(__name__)

type Confirm = Callable[[CartItem], bool | Awaitable[bool]]


class CartLineControls:
    """
    Guarded per-line mutations.

    Return the new cart, or None when nothing was sent (line busy,
    unknown line, decrement at 1, removal declined).
    """

    def __init__(self, store: CartStore, guard: InFlightGuard | None = None) -> None:
        self.store = store
        self.guard = guard if guard is not None else InFlightGuard()

    def is_disabled(self, item_id: ItemId) -> bool:
        return self.guard.is_busy(item_id)

    async def increment(self, item_id: ItemId) -> Cart | None:
        item = self._available(item_id)
        if item is None:
            return None
        async with self.guard.hold(item_id):
            return await self.store.update_quantity(item_id, item.quantity + 1)

    async def decrement(self, item_id: ItemId) -> Cart | None:
        item = self._available(item_id)
        if item is None:
            return None
        if item.quantity <= 1:
            # removal is its own action
            return None
        async with self.guard.hold(item_id):
            return await self.store.update_quantity(item_id, item.quantity - 1)

    async def remove(self, item_id: ItemId, confirm: Confirm) -> Cart | None:
        item = self._available(item_id)
        if item is None:
            return None
        async with self.guard.hold(item_id):
            answer = confirm(item)
            if not isinstance(answer, bool):
                answer = await answer
            if not answer:
                return None
            return await self.store.remove_from_cart(item_id)

    def _available(self, item_id: ItemId) -> CartItem | None:
        if self.guard.is_busy(item_id):
            logger.debug("Item %s busy, control ignored", item_id)
            return None
        item = self.store.find_item(item_id)
        if item is None:
            logger.debug("Item %s not in cart", item_id)
        return item


__all__ = ("CartLineControls", "Confirm")
