"""
Cart store — the local view of the user's cart, always a server snapshot.

Every mutation is a round-trip: the server's response replaces the whole
cart (no optimistic inserts, no client-side merge). The single exception
is clear_cart(), which synthesises the empty cart locally.

Note: Concurrent requests on different lines may finish out of order.
Each request takes a sequence number; a response older than the last one
applied is dropped, so a slow stale snapshot never clobbers a newer one.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any

from kungfu import Result, Ok, Error

from storefront._types import GameId, ItemId
from storefront.cart._errors import CartError
from storefront.config import Messages
from storefront.domain import Cart, CartItem, ZERO
from storefront.notify import Notifier, LoggingNotifier
from storefront.transport import ApiClient, ApiError

logger = logging.getLogger(__name__)


class CartStore:
    """
    Single source of truth for "what is this user about to buy".

    Example:
        store = CartStore(api)
        await store.load_cart()
        await store.add_to_cart(game_id=7)
        print(store.get_item_count(), store.get_total())
    """

    def __init__(
        self,
        api: ApiClient,
        notifier: Notifier | None = None,
        *,
        messages: Messages | None = None,
    ) -> None:
        self._api = api
        self._notifier: Notifier = notifier if notifier is not None else LoggingNotifier()
        self._messages = messages if messages is not None else api.config.messages
        self._cart: Cart | None = None
        self._pending = 0
        self._issued = 0
        self._applied = 0

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def cart(self) -> Cart | None:
        """Current snapshot; None until the first load."""
        return self._cart

    @property
    def loading(self) -> bool:
        return self._pending > 0

    def get_item_count(self) -> int:
        return self._cart.item_count if self._cart else 0

    def get_total(self) -> Decimal:
        return self._cart.total if self._cart else ZERO

    def find_item(self, item_id: ItemId) -> CartItem | None:
        return self._cart.find(item_id) if self._cart else None

    # ═══════════════════════════════════════════════════════════════════════════
    # Load
    # ═══════════════════════════════════════════════════════════════════════════

    async def load_cart(self) -> Result[Cart, ApiError]:
        """
        Fetch the authoritative cart.

        UNAUTHENTICATED is expected for anonymous sessions: silent, empty cart.
        Any other failure is notified and the previous cart stays in place.
        """
        seq = self._next_seq()
        async with self._busy():
            result = await self._api.call(Cart, "GET", "/cart", allow_empty=True)

        match result:
            case Ok(cart):
                return Ok(self._apply(seq, cart or Cart.empty()))
            case Error(error) if error.is_unauthenticated:
                self._apply(seq, Cart.empty())
                return Error(error)
            case Error(error):
                self._notifier.error(
                    error.describe(self._messages.load_cart_failed, unreachable=self._messages.network)
                )
                return Error(error)

    # ═══════════════════════════════════════════════════════════════════════════
    # Mutations
    # ═══════════════════════════════════════════════════════════════════════════

    async def add_to_cart(self, game_id: GameId, quantity: int = 1) -> Cart:
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        return await self._mutate(
            "POST",
            "/cart/items",
            json={"gameId": game_id, "quantity": quantity},
            success="Added to cart",
            fallback=self._messages.add_failed,
        )

    async def update_quantity(self, item_id: ItemId, quantity: int) -> Cart:
        """Set (not add to) the quantity of one line."""
        if quantity < 1:
            raise ValueError("quantity must be at least 1, use remove_from_cart()")
        return await self._mutate(
            "PUT",
            f"/cart/items/{item_id}",
            json={"quantity": quantity},
            success="Quantity updated",
            fallback=self._messages.update_failed,
        )

    async def remove_from_cart(self, item_id: ItemId) -> Cart:
        return await self._mutate(
            "DELETE",
            f"/cart/items/{item_id}",
            success="Removed from cart",
            fallback=self._messages.remove_failed,
        )

    async def clear_cart(self) -> Cart:
        """Empty the cart. The empty cart is built locally, not read back."""
        seq = self._next_seq()
        async with self._busy():
            result = await self._api.request("DELETE", "/cart/clear")

        match result:
            case Ok(_):
                cart = self._apply(seq, Cart.empty())
                self._notifier.success("Cart cleared")
                return cart
            case Error(error):
                raise self._failure(error, self._messages.clear_failed)

    async def _mutate(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        success: str,
        fallback: str,
    ) -> Cart:
        seq = self._next_seq()
        async with self._busy():
            result = await self._api.call(Cart, method, path, json=json)

        match result:
            case Ok(cart):
                current = self._apply(seq, cart)
                self._notifier.success(success)
                return current
            case Error(error):
                raise self._failure(error, fallback)

    # ═══════════════════════════════════════════════════════════════════════════
    # Internals
    # ═══════════════════════════════════════════════════════════════════════════

    def _next_seq(self) -> int:
        self._issued += 1
        return self._issued

    def _apply(self, seq: int, cart: Cart) -> Cart:
        """Adopt cart unless a newer response already landed."""
        if seq < self._applied:
            logger.debug("Dropping stale cart response #%s (applied #%s)", seq, self._applied)
            assert self._cart is not None
            return self._cart

        self._applied = seq
        self._cart = cart
        return cart

    def _failure(self, error: ApiError, fallback: str) -> CartError:
        message = error.describe(fallback, unreachable=self._messages.network)
        self._notifier.error(message)
        return CartError(error, message)

    @asynccontextmanager
    async def _busy(self) -> AsyncIterator[None]:
        self._pending += 1
        try:
            yield
        finally:
            self._pending -= 1


__all__ = ("CartStore",)
