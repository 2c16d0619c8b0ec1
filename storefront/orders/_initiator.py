"""
Order initiator — turns the server-side cart into a PENDING order.
"""

from __future__ import annotations

import logging

from kungfu import Result, Ok, Error

from storefront.cart import CartStore
from storefront.config import Messages
from storefront.domain import Order, PaymentMethod
from storefront.notify import Notifier, LoggingNotifier
from storefront.orders._api import OrdersApi
from storefront.transport import ApiError

logger = logging.getLogger(__name__)


class OrderInitiator:
    """
    Place an order from the current cart.

    The server empties the cart on placement, so the cart store is
    reloaded afterwards. A failed reload does not undo the order.

    Example:
        initiator = OrderInitiator(orders, cart_store)
        match await initiator.place(PaymentMethod.YAPE):
            case Ok(order):
                await checkout.open(order.id)
            case Error(e):
                ...
    """

    def __init__(
        self,
        orders: OrdersApi,
        cart: CartStore,
        notifier: Notifier | None = None,
        *,
        messages: Messages | None = None,
    ) -> None:
        self._orders = orders
        self._cart = cart
        self._notifier: Notifier = notifier if notifier is not None else LoggingNotifier()
        self._messages = messages if messages is not None else Messages()

    async def place(self, payment_method: PaymentMethod) -> Result[Order, ApiError]:
        match await self._orders.checkout(payment_method):
            case Ok(order):
                logger.info("Order %s created (id=%s)", order.order_number, order.id)
                self._notifier.success(f"Order {order.order_number} created")
                await self._cart.load_cart()
                return Ok(order)
            case Error(error):
                self._notifier.error(
                    error.describe(
                        self._messages.place_order_failed,
                        unreachable=self._messages.network,
                    )
                )
                return Error(error)


__all__ = ("OrderInitiator",)
