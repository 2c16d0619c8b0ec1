"""
Cart — server-synchronised cart store with per-line mutation guard.

    from storefront import cart as C

    store = C.CartStore(api, notifier)
    controls = C.CartLineControls(store)

    await store.load_cart()
    await controls.increment(item_id)     # PUT quantity+1, line disabled meanwhile
    await controls.decrement(item_id)     # no request at quantity 1
    await controls.remove(item_id, confirm=ask_user)
"""

from storefront.cart._errors import CartError, ItemBusy
from storefront.cart._guard import InFlightGuard
from storefront.cart._store import CartStore
from storefront.cart._controls import CartLineControls, Confirm

__all__ = (
    "CartError",
    "ItemBusy",
    "InFlightGuard",
    "CartStore",
    "CartLineControls",
    "Confirm",
)
