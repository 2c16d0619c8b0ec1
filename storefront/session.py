"""
Session context — the authenticated user's token, passed explicitly.

SessionStore — where a session lives between runs (memory by default).
SessionContext — handed to the transport at construction; owns the
"on unauthorized" reaction instead of ambient key-value storage.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Session
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Session:
    """Bearer token plus the little we know about the user."""

    token: str
    username: str | None = None
    role: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Store Protocol
# ═══════════════════════════════════════════════════════════════════════════════


class SessionStore(Protocol):
    """
    Session persistence protocol.

    Implement this to keep the token somewhere durable (keyring, file, ...).
    """

    async def load(self) -> Session | None:
        """Return the saved session, or None."""
        ...

    async def save(self, session: Session) -> None:
        """Persist session, replacing any previous one."""
        ...

    async def clear(self) -> None:
        """Forget the saved session."""
        ...


class MemorySessionStore:
    """
    In-memory session store.

    Note: Single process only, nothing survives a restart.
    """

    def __init__(self, session: Session | None = None) -> None:
        self._session = session
        self._lock = asyncio.Lock()

    async def load(self) -> Session | None:
        async with self._lock:
            return self._session

    async def save(self, session: Session) -> None:
        async with self._lock:
            self._session = session

    async def clear(self) -> None:
        async with self._lock:
            self._session = None


# ═══════════════════════════════════════════════════════════════════════════════
# Session Context
# ═══════════════════════════════════════════════════════════════════════════════

type UnauthorizedHook = Callable[[], None]


class SessionContext:
    """
    Explicit session handle shared by the transport and the stores.

    Example:
        context = SessionContext(
            MemorySessionStore(Session(token="...")),
            on_unauthorized=lambda: router.go("/"),
        )
        await context.restore()
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        *,
        on_unauthorized: UnauthorizedHook | None = None,
    ) -> None:
        self._store: SessionStore = store if store is not None else MemorySessionStore()
        self._on_unauthorized = on_unauthorized
        self._session: Session | None = None

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def token(self) -> str | None:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    async def restore(self) -> Session | None:
        """Load the saved session into memory."""
        self._session = await self._store.load()
        return self._session

    async def start(self, session: Session) -> None:
        """Adopt a freshly issued session."""
        await self._store.save(session)
        self._session = session

    async def invalidate(self) -> None:
        """
        Drop the session after the server rejected the token.

        Clears the store, then runs the on_unauthorized hook.
        """
        had_session = self._session is not None
        self._session = None
        await self._store.clear()

        if had_session:
            logger.info("Session invalidated by server")
        if self._on_unauthorized is not None:
            self._on_unauthorized()


__all__ = (
    "Session",
    "SessionStore",
    "MemorySessionStore",
    "SessionContext",
)
