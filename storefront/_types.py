"""
Core types for storefront.

Re-exports from kungfu + identifier aliases shared by every module.
"""

from __future__ import annotations

from kungfu import Result, Ok, Error, LazyCoroResult

# ═══════════════════════════════════════════════════════════════════════════════
# Identifiers
# ═══════════════════════════════════════════════════════════════════════════════

type GameId = int
"""Catalog game id."""

type ItemId = int
"""Cart line id. Server-assigned, stable across mutations."""

type OrderId = int
"""Numeric order id handed to checkout."""

type PaymentCode = str
"""Server-issued token identifying one pending QR payment."""

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Aliases
    "Lazy",
    "GameId",
    "ItemId",
    "OrderId",
    "PaymentCode",
)
