"""
Checkout phases — exactly one is active at a time.

    LoadingOrder ──▶ AwaitingMethod ◀──▶ CardForm ──▶ Submitting ──▶ Settled
         │                 │  ▲                           ▲             │
         │                 ▼  │                           │             │ retry
         │           YapeQrPending ───────────────────────┘             │
         │                                                              ▼
         └──▶ OrderClosed                                         AwaitingMethod

    Any phase but Submitting may leave to Exited(destination).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from storefront._types import OrderId
from storefront.domain import CardDetails, Order, PaymentMethod, PaymentResult, YapeQR


class Destination(Enum):
    """Where the user goes after leaving checkout."""

    CART = "cart"
    LIBRARY = "library"
    MY_ORDERS = "my-orders"
    ROOT = "root"  # session gone


# ═══════════════════════════════════════════════════════════════════════════════
# Phases
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class LoadingOrder:
    order_id: OrderId


@dataclass(frozen=True, slots=True)
class AwaitingMethod:
    """Order loaded and payable; no form or QR yet."""

    order: Order
    selected: PaymentMethod | None = None


@dataclass(frozen=True, slots=True)
class CardForm:
    order: Order
    card: CardDetails


@dataclass(frozen=True, slots=True)
class YapeQrPending:
    """QR issued, waiting for the user to pay and confirm."""

    order: Order
    qr: YapeQR


@dataclass(frozen=True, slots=True)
class Submitting:
    """
    Payment request in flight.

    Note: Nothing can be started or left from here.
    """

    order: Order
    method: PaymentMethod
    qr: YapeQR | None = None


@dataclass(frozen=True, slots=True)
class Settled:
    order: Order
    result: PaymentResult


@dataclass(frozen=True, slots=True)
class OrderClosed:
    """Order is no longer PENDING: read-only view."""

    order: Order


@dataclass(frozen=True, slots=True)
class Exited:
    destination: Destination


type Phase = (
    LoadingOrder
    | AwaitingMethod
    | CardForm
    | YapeQrPending
    | Submitting
    | Settled
    | OrderClosed
    | Exited
)
"""Checkout state: one tagged variant."""


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class InvalidTransition(Exception):
    """Operation not allowed in the current phase. The phase is unchanged."""

    def __init__(self, operation: str, phase: Phase | None) -> None:
        self.operation = operation
        self.phase = phase
        where = type(phase).__name__ if phase is not None else "a checkout that was never opened"
        super().__init__(f"{operation}() not allowed in {where}")


__all__ = (
    "Destination",
    "LoadingOrder",
    "AwaitingMethod",
    "CardForm",
    "YapeQrPending",
    "Submitting",
    "Settled",
    "OrderClosed",
    "Exited",
    "Phase",
    "InvalidTransition",
)
