"""
Orders — order snapshots and order placement.

    orders = OrdersApi(api)

    match await orders.fetch(order_id):
        case Ok(order):
            print(order.order_number, order.status)
        case Error(e):
            print(e.kind)

    initiator = OrderInitiator(orders, cart_store, notifier)
    await initiator.place(PaymentMethod.CREDIT_CARD)   # cart → PENDING order
"""

from storefront.orders._api import OrdersApi
from storefront.orders._initiator import OrderInitiator

__all__ = (
    "OrdersApi",
    "OrderInitiator",
)
