"""
Domain — wire DTOs exchanged with the storefront backend.

Models accept the server's camelCase keys and Python snake_case names.
Money is Decimal and is never recomputed client-side: subtotals, totals
and counts are whatever the server says they are.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ZERO = Decimal("0")


class _Wire(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Domain
# ═══════════════════════════════════════════════════════════════════════════════


class GameRef(_Wire):
    id: int
    title: str
    header_image: str | None = None
    price: Decimal | None = None


class CartItem(_Wire):
    """One game line in a cart."""

    id: int
    game: GameRef
    quantity: int = Field(ge=1)
    price: Decimal | None = None
    subtotal: Decimal


class Cart(_Wire):
    id: int | None = None
    items: tuple[CartItem, ...] = ()
    total: Decimal = ZERO
    item_count: int = 0

    @classmethod
    def empty(cls) -> Cart:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, item_id: int) -> CartItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


# ═══════════════════════════════════════════════════════════════════════════════
# Order Domain
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    """
    Order lifecycle.

        PENDING → COMPLETED (confirmed payment)
                → CANCELLED (explicit cancellation)

    Note: Once out of PENDING the order is terminal for this client.
    """

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class OrderItem(_Wire):
    """Immutable snapshot of one purchased line."""

    id: int | None = None
    game_id: int | None = None
    game_title: str
    game_image: str | None = None
    quantity: int = 1
    price_at_purchase: Decimal | None = None
    subtotal: Decimal


class Order(_Wire):
    id: int
    order_number: str
    status: OrderStatus
    items: tuple[OrderItem, ...] = ()
    total_amount: Decimal = ZERO
    item_count: int | None = None
    payment_method: str | None = None
    created_at: datetime | None = None

    @property
    def is_payable(self) -> bool:
        return self.status is OrderStatus.PENDING


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Domain
# ═══════════════════════════════════════════════════════════════════════════════


class PaymentMethod(Enum):
    CREDIT_CARD = "CREDIT_CARD"
    YAPE = "YAPE"


class PaymentStatus(Enum):
    """
    Server payment states.

    Only COMPLETED and FAILED end a checkout; the rest mean "not yet".
    """

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"

    @property
    def is_final(self) -> bool:
        return self in (PaymentStatus.COMPLETED, PaymentStatus.FAILED)


class CardDetails(_Wire):
    """
    Card form fields.

    Note: No client-side validation — the server decides.
    missing_fields() exists for required-field hints only.
    """

    card_number: str = ""
    card_holder: str = ""
    expiry_month: str = ""
    expiry_year: str = ""
    cvv: str = ""

    def missing_fields(self) -> tuple[str, ...]:
        return tuple(
            name
            for name, value in self.model_dump().items()
            if not str(value).strip()
        )


class YapeQR(_Wire):
    """QR descriptor bound to one order."""

    payment_code: str
    amount: Decimal
    qr_code_data: str | None = None
    qr_code_base64: str | None = None
    yape_deep_link: str | None = None
    expires_at: datetime | None = None
    expires_in_seconds: int | None = None
    instructions: str | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.now()) > self.expires_at


class PaymentResult(_Wire):
    status: PaymentStatus
    message: str | None = None
    order_number: str | None = None
    order_id: int | None = None
    payment_code: str | None = None
    payment_method: str | None = None
    amount: Decimal | None = None
    card_last_four: str | None = None
    card_brand: str | None = None
    paid_at: datetime | None = None

    @classmethod
    def failed(cls, message: str) -> PaymentResult:
        """Client-side FAILED result for transport failures."""
        return cls(status=PaymentStatus.FAILED, message=message)

    @property
    def is_completed(self) -> bool:
        return self.status is PaymentStatus.COMPLETED


class PaymentMethodInfo(_Wire):
    id: str
    name: str
    description: str | None = None
    icon: str | None = None


class PaymentMethods(_Wire):
    methods: tuple[PaymentMethodInfo, ...] = ()
    default_method: str | None = None


__all__ = (
    "GameRef",
    "CartItem",
    "Cart",
    "OrderStatus",
    "OrderItem",
    "Order",
    "PaymentMethod",
    "PaymentStatus",
    "CardDetails",
    "YapeQR",
    "PaymentResult",
    "PaymentMethodInfo",
    "PaymentMethods",
)
