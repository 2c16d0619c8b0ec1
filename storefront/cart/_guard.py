"""
In-flight guard — at most one mutation per cart line.

Client-side only: it serialises this client's clicks, it does not lock
anything on the server.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from storefront._types import ItemId
from storefront.cart._errors import ItemBusy

logger = logging.getLogger(__name__)


class InFlightGuard:
    """
    Set of cart item ids with a request in flight.

    Example:
        async with guard.hold(item.id):
            await store.update_quantity(item.id, item.quantity + 1)

    The id leaves the set when the block exits, whatever the outcome.
    """

    def __init__(self) -> None:
        self._in_flight: set[ItemId] = set()

    @property
    def in_flight(self) -> frozenset[ItemId]:
        return frozenset(self._in_flight)

    def is_busy(self, item_id: ItemId) -> bool:
        return item_id in self._in_flight

    @asynccontextmanager
    async def hold(self, item_id: ItemId) -> AsyncIterator[None]:
        if item_id in self._in_flight:
            raise ItemBusy(item_id)

        self._in_flight.add(item_id)
        logger.debug("Item %s in flight", item_id)
        try:
            yield
        finally:
            self._in_flight.discard(item_id)
            logger.debug("Item %s released", item_id)


__all__ = ("InFlightGuard",)
