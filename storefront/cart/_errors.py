"""
Cart errors.
"""

from __future__ import annotations

from storefront.transport import ApiError, ApiErrorKind


class CartError(Exception):
    """A cart mutation the server did not accept (already notified)."""

    def __init__(self, error: ApiError, message: str) -> None:
        super().__init__(message)
        self.error = error
        self.message = message

    @property
    def kind(self) -> ApiErrorKind:
        return self.error.kind


class ItemBusy(Exception):
    """A mutation for this cart line is already in flight."""

    def __init__(self, item_id: int) -> None:
        super().__init__(f"Cart item {item_id} is already being updated")
        self.item_id = item_id


__all__ = ("CartError", "ItemBusy")
