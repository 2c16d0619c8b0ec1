"""
Client configuration.

    config = (
        ClientConfig()
        .with_base_url("https://shop.example.com/api")
        .with_timeout(seconds=5)
    )

    config = ClientConfig.from_env()   # STOREFRONT_API_URL, STOREFRONT_TIMEOUT, ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace

from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:8080/api"
DEFAULT_TIMEOUT = 10.0


# ═══════════════════════════════════════════════════════════════════════════════
# Messages — generic user-facing texts
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Messages:
    """
    Fallback texts shown when the server gives no message of its own.

    Note: Server messages always win; these fill the gaps only.
    """

    load_cart_failed: str = "Could not load the cart"
    add_failed: str = "Could not add the game to the cart"
    update_failed: str = "Could not update the quantity"
    remove_failed: str = "Could not remove the game from the cart"
    clear_failed: str = "Could not clear the cart"
    load_order_failed: str = "Could not load the order"
    order_closed: str = "This order has already been processed"
    payment_failed: str = "Payment could not be processed"
    payment_declined: str = "Payment declined"
    qr_failed: str = "Could not generate the QR code"
    confirm_failed: str = "Could not confirm the payment"
    payment_pending: str = "Payment not received yet, try again in a moment"
    qr_expired: str = "The QR code has expired, generate a new one"
    cancel_failed: str = "Could not cancel the order"
    place_order_failed: str = "Could not create the order"
    network: str = "The server could not be reached"


# ═══════════════════════════════════════════════════════════════════════════════
# ClientConfig
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ClientConfig:
    """
    Storefront client configuration.

    Immutable — each with_* method returns a new config.
    """

    base_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    token: str | None = None
    messages: Messages = field(default_factory=Messages)

    def with_base_url(self, url: str) -> ClientConfig:
        return replace(self, base_url=_valid_api_url(url))

    def with_timeout(self, *, seconds: float) -> ClientConfig:
        if seconds <= 0:
            raise ValueError("timeout must be positive")
        return replace(self, timeout=seconds)

    def with_token(self, token: str | None) -> ClientConfig:
        return replace(self, token=token or None)

    def with_messages(self, messages: Messages) -> ClientConfig:
        return replace(self, messages=messages)

    @classmethod
    def from_env(cls) -> ClientConfig:
        """
        Build config from environment (a local .env file is loaded first).

        STOREFRONT_API_URL  — API root, default http://localhost:8080/api
        STOREFRONT_TIMEOUT  — request timeout in seconds
        STOREFRONT_TOKEN    — bearer token of an existing session
        """
        load_dotenv()

        config = cls().with_base_url(os.getenv("STOREFRONT_API_URL", ""))

        timeout = os.getenv("STOREFRONT_TIMEOUT", "").strip()
        if timeout:
            config = config.with_timeout(seconds=float(timeout))

        return config.with_token(os.getenv("STOREFRONT_TOKEN", "").strip())


def _valid_api_url(url: str | None) -> str:
    """Blank or non-http URLs fall back to the local backend."""
    if url and url.strip() and url.strip().startswith("http"):
        return url.strip()
    return DEFAULT_API_URL


__all__ = (
    "DEFAULT_API_URL",
    "DEFAULT_TIMEOUT",
    "Messages",
    "ClientConfig",
)
