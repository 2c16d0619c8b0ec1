"""
storefront — async client for a digital game store.

    from storefront import cart       # Cart store, per-line guard
    from storefront import orders     # Order snapshots, placement
    from storefront import checkout   # Payment state machine (card, Yape QR)

    config = ClientConfig.from_env()
    session = SessionContext(MemorySessionStore(Session(token)))
    await session.restore()

    async with ApiClient(config, session) as api:
        store = cart.CartStore(api)
        await store.load_cart()
"""

from storefront import cart
from storefront import orders
from storefront import payments
from storefront import checkout
from storefront.config import ClientConfig, Messages
from storefront.notify import Notifier, LoggingNotifier
from storefront.session import (
    Session,
    SessionStore,
    MemorySessionStore,
    SessionContext,
)
from storefront.transport import ApiClient, ApiError, ApiErrorKind

__version__ = "0.1.0"

__all__ = (
    "cart",
    "orders",
    "payments",
    "checkout",
    "ClientConfig",
    "Messages",
    "Notifier",
    "LoggingNotifier",
    "Session",
    "SessionStore",
    "MemorySessionStore",
    "SessionContext",
    "ApiClient",
    "ApiError",
    "ApiErrorKind",
)
