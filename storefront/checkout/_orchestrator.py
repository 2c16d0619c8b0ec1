"""
Checkout orchestrator — drives one order from "pick a method" to a result.

Network failures never raise out of here: they become phases plus a
notification. Only local misuse raises (InvalidTransition, TypeError).

Note: Every await is a window for the user to act. A response is applied
only if the phase that issued the request is still the current one;
otherwise it is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from kungfu import Ok, Error

from storefront._types import OrderId
from storefront.checkout._phase import (
    AwaitingMethod,
    CardForm,
    Destination,
    Exited,
    InvalidTransition,
    LoadingOrder,
    OrderClosed,
    Phase,
    Settled,
    Submitting,
    YapeQrPending,
)
from storefront.config import Messages
from storefront.domain import CardDetails, Order, PaymentMethod, PaymentResult, PaymentStatus
from storefront.notify import Notifier, LoggingNotifier
from storefront.orders import OrdersApi
from storefront.payments import PaymentsApi
from storefront.session import SessionContext
from storefront.transport import ApiError

logger = logging.getLogger(__name__)

type PhaseListener = Callable[[Phase], None]

_CANCELLABLE = (LoadingOrder, AwaitingMethod, CardForm, YapeQrPending)
_CHOOSING = (AwaitingMethod, CardForm, YapeQrPending)


class CheckoutOrchestrator:
    """
    Checkout state machine for a single order.

    Example:
        checkout = CheckoutOrchestrator(orders, payments, session, notifier)
        await checkout.open(order_id)

        checkout.select_method(PaymentMethod.YAPE)
        await checkout.generate_qr()
        ...                                  # user pays in the Yape app
        match await checkout.confirm_qr():
            case Settled(result=r) if r.is_completed:
                checkout.go_to_library()
            case YapeQrPending():
                ...                          # not paid yet, ask again later
    """

    def __init__(
        self,
        orders: OrdersApi,
        payments: PaymentsApi,
        session: SessionContext,
        notifier: Notifier | None = None,
        *,
        messages: Messages | None = None,
        on_change: PhaseListener | None = None,
    ) -> None:
        self._orders = orders
        self._payments = payments
        self._session = session
        self._notifier: Notifier = notifier if notifier is not None else LoggingNotifier()
        self._messages = messages if messages is not None else Messages()
        self._on_change = on_change
        self._phase: Phase | None = None
        self._background: set[asyncio.Task[None]] = set()

    # ═══════════════════════════════════════════════════════════════════════════
    # Reads
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def phase(self) -> Phase | None:
        """Current phase; None before open()."""
        return self._phase

    @property
    def order(self) -> Order | None:
        match self._phase:
            case LoadingOrder() | Exited() | None:
                return None
            case phase:
                return phase.order

    @property
    def can_submit(self) -> bool:
        match self._phase:
            case CardForm(order=order) | YapeQrPending(order=order):
                return order.is_payable
            case _:
                return False

    # ═══════════════════════════════════════════════════════════════════════════
    # Entry
    # ═══════════════════════════════════════════════════════════════════════════

    async def open(self, order_id: OrderId) -> Phase:
        """
        Load the order and decide where checkout starts.

        PENDING → AwaitingMethod, anything else → OrderClosed (read-only).
        Load failure → Exited(CART). No session → Exited(ROOT).
        """
        if isinstance(self._phase, LoadingOrder | Submitting):
            raise InvalidTransition("open", self._phase)

        if not self._session.is_authenticated:
            return self._move(Exited(Destination.ROOT))

        loading = self._move(LoadingOrder(order_id))
        result = await self._orders.fetch(order_id)
        if not self._still(loading):
            return self._current()

        match result:
            case Ok(order) if order.is_payable:
                return self._move(AwaitingMethod(order))
            case Ok(order):
                self._notifier.info(self._messages.order_closed)
                return self._move(OrderClosed(order))
            case Error(error) if error.is_unauthenticated:
                return self._move(Exited(Destination.ROOT))
            case Error(error):
                self._notifier.error(self._explain(error, self._messages.load_order_failed))
                return self._move(Exited(Destination.CART))

    # ═══════════════════════════════════════════════════════════════════════════
    # Method selection
    # ═══════════════════════════════════════════════════════════════════════════

    def select_method(self, method: PaymentMethod) -> Phase:
        """Switch method. Whatever the other method had (card, QR) is dropped."""
        phase = self._require("select_method", *_CHOOSING)
        match method:
            case PaymentMethod.CREDIT_CARD:
                return self._move(CardForm(phase.order, CardDetails()))
            case PaymentMethod.YAPE:
                return self._move(AwaitingMethod(phase.order, PaymentMethod.YAPE))

    def fill_card(self, **fields: str) -> CardDetails:
        phase = self._require("fill_card", CardForm)

        unknown = sorted(set(fields) - set(CardDetails.model_fields))
        if unknown:
            raise TypeError(f"unknown card field(s): {', '.join(unknown)}")

        card = phase.card.model_copy(update=fields)
        self._move(CardForm(phase.order, card))
        return card

    # ═══════════════════════════════════════════════════════════════════════════
    # Card payment
    # ═══════════════════════════════════════════════════════════════════════════

    async def submit_card(self) -> Phase:
        """
        Pay with the card in the form.

        A decline is a Settled(FAILED) with the server's reason. So is any
        transport failure, with a generic reason.
        """
        phase = self._require("submit_card", CardForm)
        order = phase.order
        self._move(Submitting(order, PaymentMethod.CREDIT_CARD))

        match await self._payments.pay_card(order.id, phase.card):
            case Ok(result):
                return self._settle(order, result)
            case Error(error) if error.is_unauthenticated:
                return self._move(Exited(Destination.ROOT))
            case Error(error):
                failed = PaymentResult.failed(self._explain(error, self._messages.payment_failed))
                return self._settle(order, failed)

    # ═══════════════════════════════════════════════════════════════════════════
    # Yape QR payment
    # ═══════════════════════════════════════════════════════════════════════════

    async def generate_qr(self) -> Phase:
        """
        Issue a fresh QR. Any previous QR is discarded before the request.
        """
        phase = self._require("generate_qr", AwaitingMethod, YapeQrPending)
        if isinstance(phase, AwaitingMethod) and phase.selected is not PaymentMethod.YAPE:
            raise InvalidTransition("generate_qr", phase)

        order = phase.order
        waiting = self._move(AwaitingMethod(order, PaymentMethod.YAPE))
        result = await self._payments.generate_yape_qr(order.id)
        if not self._still(waiting):
            return self._current()

        match result:
            case Ok(qr):
                logger.info("QR %s issued for order %s", qr.payment_code, order.order_number)
                return self._move(YapeQrPending(order, qr))
            case Error(error) if error.is_unauthenticated:
                return self._move(Exited(Destination.ROOT))
            case Error(error):
                self._notifier.error(self._explain(error, self._messages.qr_failed))
                return self._current()

    def discard_qr(self) -> Phase:
        phase = self._require("discard_qr", YapeQrPending)
        return self._move(AwaitingMethod(phase.order, PaymentMethod.YAPE))

    async def confirm_qr(self) -> Phase:
        """
        Ask the server whether the QR held right now has been paid.

        COMPLETED or FAILED settle the checkout. Anything else, including a
        transport failure, leaves the same QR pending.
        """
        phase = self._require("confirm_qr", YapeQrPending)
        order, qr = phase.order, phase.qr
        self._move(Submitting(order, PaymentMethod.YAPE, qr))

        match await self._payments.confirm_yape(qr.payment_code):
            case Ok(result) if result.status.is_final:
                return self._settle(order, result)
            case Ok(result) if result.status is PaymentStatus.EXPIRED:
                self._notifier.error(result.message or self._messages.qr_expired)
            case Ok(result):
                self._notifier.info(result.message or self._messages.payment_pending)
            case Error(error) if error.is_unauthenticated:
                return self._move(Exited(Destination.ROOT))
            case Error(error):
                self._notifier.error(self._explain(error, self._messages.confirm_failed))

        return self._move(YapeQrPending(order, qr))

    # ═══════════════════════════════════════════════════════════════════════════
    # After a result
    # ═══════════════════════════════════════════════════════════════════════════

    def retry(self) -> Phase:
        phase = self._require("retry", Settled)
        if phase.result.is_completed:
            raise InvalidTransition("retry", phase)
        return self._move(AwaitingMethod(phase.order))

    def go_to_library(self) -> Phase:
        phase = self._require("go_to_library", Settled)
        if not phase.result.is_completed:
            raise InvalidTransition("go_to_library", phase)
        return self._move(Exited(Destination.LIBRARY))

    def go_to_orders(self) -> Phase:
        phase = self._require("go_to_orders", Settled, OrderClosed)
        if isinstance(phase, Settled) and not phase.result.is_completed:
            raise InvalidTransition("go_to_orders", phase)
        return self._move(Exited(Destination.MY_ORDERS))

    # ═══════════════════════════════════════════════════════════════════════════
    # Leaving
    # ═══════════════════════════════════════════════════════════════════════════

    def return_to_cart(self) -> Phase:
        """Leave without touching the order."""
        if self._phase is None or isinstance(self._phase, Submitting):
            raise InvalidTransition("return_to_cart", self._phase)
        return self._move(Exited(Destination.CART))

    def cancel(self) -> Phase:
        """
        Cancel the order and go back to the cart.

        Navigation happens now. The cancel request runs in the background;
        its failure is logged and notified but never raised. Await drain()
        to wait for it.
        """
        phase = self._require("cancel", *_CANCELLABLE)
        order_id = phase.order_id if isinstance(phase, LoadingOrder) else phase.order.id

        task = asyncio.create_task(self._cancel_order(order_id))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

        return self._move(Exited(Destination.CART))

    async def drain(self) -> None:
        """Wait for background cancellations to finish."""
        if self._background:
            await asyncio.gather(*tuple(self._background))

    async def _cancel_order(self, order_id: OrderId) -> None:
        match await self._orders.cancel(order_id):
            case Ok(_):
                logger.info("Order %s cancelled", order_id)
                self._notifier.info("Order cancelled")
            case Error(error) if error.is_unauthenticated:
                logger.info("Cancel of order %s skipped: session gone", order_id)
            case Error(error):
                logger.warning("Cancel of order %s failed: %s", order_id, error)
                self._notifier.error(self._explain(error, self._messages.cancel_failed))

    # ═══════════════════════════════════════════════════════════════════════════
    # Internals
    # ═══════════════════════════════════════════════════════════════════════════

    def _settle(self, order: Order, result: PaymentResult) -> Phase:
        if result.is_completed:
            self._notifier.success(result.message or "Payment completed")
        else:
            self._notifier.error(result.message or self._messages.payment_declined)
        return self._move(Settled(order, result))

    def _move[P: Phase](self, phase: P) -> P:
        previous = self._phase
        self._phase = phase
        logger.info(
            "Checkout %s → %s",
            type(previous).__name__ if previous is not None else "start",
            type(phase).__name__,
        )
        if self._on_change is not None:
            self._on_change(phase)
        return phase

    def _require(self, operation: str, *kinds: type[Any]) -> Any:
        phase = self._phase
        if phase is None or not isinstance(phase, kinds):
            raise InvalidTransition(operation, self._phase)
        return phase

    def _still(self, phase: Phase) -> bool:
        if self._phase is phase:
            return True
        logger.debug("Dropping response for %s: checkout moved on", type(phase).__name__)
        return False

    def _current(self) -> Phase:
        assert self._phase is not None
        return self._phase

    def _explain(self, error: ApiError, fallback: str) -> str:
        return error.describe(fallback, unreachable=self._messages.network)


__all__ = ("CheckoutOrchestrator", "PhaseListener")
