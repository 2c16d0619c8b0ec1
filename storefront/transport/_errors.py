"""
Transport error taxonomy.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class ApiErrorKind(Enum):
    """Kinds of backend call failures."""

    UNAUTHENTICATED = auto()  # 401, session already invalidated
    REJECTED = auto()  # other 4xx: validation / business rule
    TRANSIENT = auto()  # 5xx or no response at all
    INVALID_RESPONSE = auto()  # 2xx body that does not fit the DTO


@dataclass(frozen=True, slots=True)
class ApiError:
    """
    Failed backend call.

    Note: message is the server's own text when it sent one, else None.
    Callers pick the fallback — they know what the user was trying to do.
    """

    kind: ApiErrorKind
    message: str | None = None
    status: int | None = None

    @classmethod
    def unauthenticated(cls, message: str | None = None) -> ApiError:
        return cls(ApiErrorKind.UNAUTHENTICATED, message, 401)

    @classmethod
    def rejected(cls, message: str | None, status: int) -> ApiError:
        return cls(ApiErrorKind.REJECTED, message, status)

    @classmethod
    def transient(cls, message: str | None = None, status: int | None = None) -> ApiError:
        return cls(ApiErrorKind.TRANSIENT, message, status)

    @classmethod
    def invalid_response(cls, message: str) -> ApiError:
        return cls(ApiErrorKind.INVALID_RESPONSE, message)

    @property
    def is_unauthenticated(self) -> bool:
        return self.kind is ApiErrorKind.UNAUTHENTICATED

    @property
    def is_retryable(self) -> bool:
        return self.kind is ApiErrorKind.TRANSIENT

    @property
    def is_unreachable(self) -> bool:
        """No HTTP response at all."""
        return self.kind is ApiErrorKind.TRANSIENT and self.status is None

    def describe(self, fallback: str, *, unreachable: str | None = None) -> str:
        if self.message:
            return self.message
        if unreachable is not None and self.is_unreachable:
            return unreachable
        return fallback


__all__ = ("ApiErrorKind", "ApiError")
