"""
ApiClient — bearer-authenticated JSON calls returning Result.

Every call resolves to Ok(payload) or Error(ApiError); nothing raises for
network or HTTP failures. A 401 anywhere invalidates the session before
the error is returned.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from combinators import lift as L
from kungfu import Result, Ok, Error
from pydantic import TypeAdapter, ValidationError

from storefront.config import ClientConfig
from storefront.session import SessionContext
from storefront.transport._errors import ApiError

logger = logging.getLogger(__name__)

_MESSAGE_KEYS = ("message", "error", "detail")


class ApiClient:
    """
    Async storefront API client.

    Example:
        async with ApiClient(config, session) as api:
            match await api.call(Cart, "GET", "/cart"):
                case Ok(cart):
                    ...
                case Error(e):
                    ...
    """

    def __init__(
        self,
        config: ClientConfig,
        session: SessionContext,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.session = session
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ═══════════════════════════════════════════════════════════════════════════
    # Raw request
    # ═══════════════════════════════════════════════════════════════════════════

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Result[Any, ApiError]:
        """Send one request. Ok(None) for an empty 2xx body."""
        headers: dict[str, str] = {}
        if token := self.session.token:
            headers["Authorization"] = f"Bearer {token}"

        sent = await L.catching_async(
            lambda: self._http.request(
                method, path, json=json, params=params, headers=headers
            ),
            on_error=lambda e: _unreachable(method, path, e),
        )

        match sent:
            case Ok(response):
                return await self._read(response)
            case Error(error):
                return Error(error)

    async def _read(self, response: httpx.Response) -> Result[Any, ApiError]:
        if response.is_success:
            if not response.content:
                return Ok(None)
            try:
                return Ok(response.json())
            except ValueError:
                return Error(ApiError.invalid_response("Response body is not JSON"))

        status = response.status_code
        message = _error_message(response)

        if status == 401:
            logger.info("%s %s → 401, dropping session", response.request.method, response.request.url.path)
            await self.session.invalidate()
            return Error(ApiError.unauthenticated(message))

        logger.warning(
            "%s %s → %s: %s",
            response.request.method,
            response.request.url.path,
            status,
            message,
        )
        if status >= 500:
            return Error(ApiError.transient(message, status))
        return Error(ApiError.rejected(message, status))

    # ═══════════════════════════════════════════════════════════════════════════
    # Typed call
    # ═══════════════════════════════════════════════════════════════════════════

    async def call[T](
        self,
        shape: type[T],
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        allow_empty: bool = False,
    ) -> Result[T | None, ApiError]:
        """
        Send a request and validate the payload into shape.

        shape may be a model or a container of models (tuple[Order, ...]).
        With allow_empty an empty body resolves to Ok(None).
        """
        match await self.request(method, path, json=json, params=params):
            case Ok(None) if allow_empty:
                return Ok(None)
            case Ok(payload):
                return decode(shape, payload)
            case Error(error):
                return Error(error)


def decode[T](shape: type[T], payload: Any) -> Result[T, ApiError]:
    """Validate a JSON payload into shape."""
    if payload is None:
        return Error(ApiError.invalid_response("Empty response body"))
    try:
        return Ok(TypeAdapter(shape).validate_python(payload))
    except ValidationError as e:
        logger.warning("Unexpected %s payload: %s", getattr(shape, "__name__", shape), e)
        return Error(ApiError.invalid_response(f"Unexpected response: {e.error_count()} invalid field(s)"))


def _unreachable(method: str, path: str, exc: Exception) -> ApiError:
    logger.warning("%s %s failed: %s", method, path, exc)
    return ApiError.transient()


def _error_message(response: httpx.Response) -> str | None:
    """Pull the server's message out of an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return None

    if isinstance(body, dict):
        for key in _MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return None


__all__ = ("ApiClient", "decode")
