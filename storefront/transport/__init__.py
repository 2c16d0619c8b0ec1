"""
Transport — storefront REST calls over httpx.

    from storefront import transport as T

    api = T.ApiClient(config, session)
    result = await api.call(Order, "GET", f"/orders/{order_id}")

Failure classes (ApiErrorKind):

    UNAUTHENTICATED   401, session invalidated, never retried
    REJECTED          4xx with the server's message, no retry
    TRANSIENT         5xx / unreachable, user may retry
    INVALID_RESPONSE  2xx body that does not fit the DTO
"""

from storefront.transport._errors import ApiErrorKind, ApiError
from storefront.transport._client import ApiClient, decode

__all__ = (
    "ApiErrorKind",
    "ApiError",
    "ApiClient",
    "decode",
)
