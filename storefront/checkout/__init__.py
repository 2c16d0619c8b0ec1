"""
Checkout — payment state machine for one PENDING order.

    checkout = CheckoutOrchestrator(orders, payments, session, notifier)

    await checkout.open(order_id)              # → AwaitingMethod | OrderClosed | Exited

    checkout.select_method(PaymentMethod.CREDIT_CARD)
    checkout.fill_card(card_number="4111111111111111", cvv="123", ...)
    match await checkout.submit_card():
        case Settled(result=r) if r.is_completed:
            checkout.go_to_library()
        case Settled():
            checkout.retry()                   # back to method selection

    checkout.cancel()                          # → Exited(CART) at once,
    await checkout.drain()                     #   cancel request in background

Phases:
    LoadingOrder, AwaitingMethod, CardForm, YapeQrPending,
    Submitting, Settled, OrderClosed, Exited
"""

from storefront.checkout._phase import (
    Destination,
    LoadingOrder,
    AwaitingMethod,
    CardForm,
    YapeQrPending,
    Submitting,
    Settled,
    OrderClosed,
    Exited,
    Phase,
    InvalidTransition,
)
from storefront.checkout._orchestrator import CheckoutOrchestrator, PhaseListener

__all__ = (
    # Phases
    "Phase",
    "LoadingOrder",
    "AwaitingMethod",
    "CardForm",
    "YapeQrPending",
    "Submitting",
    "Settled",
    "OrderClosed",
    "Exited",
    "Destination",
    # Orchestrator
    "CheckoutOrchestrator",
    "PhaseListener",
    "InvalidTransition",
)
