"""
Keeps a valid Mercado Libre access token available to every outbound call.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from app.clients.meli_auth import MeliOAuthClient
from app.core.errors import OAuthTokenNotFoundError, OAuthTokenRefreshError
from app.models.oauth import TokenState
from app.services.token_store import TokenFileStore

logger = logging.getLogger(__name__)


class MeliTokenService:
    """
    Sole owner of the marketplace ``TokenState``.

    State is read from the store on first use. Every exchange or refresh is
    written to the store before it replaces the in-memory state. Refreshes and
    exchanges run under one lock. Callers that find an expired token while a
    refresh is in flight await that same refresh and share its outcome,
    including its failure.
    """

    def __init__(
        self,
        store: TokenFileStore,
        oauth_client: MeliOAuthClient,
        *,
        expiry_margin_seconds: int = 60,
        bootstrap: Optional[TokenState] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._margin = expiry_margin_seconds
        self._bootstrap = bootstrap
        self._clock = clock
        self._lock = asyncio.Lock()
        self._inflight: Optional[asyncio.Task] = None
        self._state: Optional[TokenState] = None
        self._loaded = False

    def current_state(self) -> Optional[TokenState]:
        """Return the state in memory, loading it from the store the first time."""
        if not self._loaded:
            state = self._store.load()
            if state is None and self._bootstrap is not None and self._bootstrap.has_credentials:
                logger.info("No token file at %s; starting from configured tokens.", self._store.path)
                state = self._bootstrap
            self._state = state
            self._loaded = True
        return self._state

    async def get_valid_token(self) -> str:
        """Return an access token that has not reached its (margin-adjusted) expiry."""
        state = self.current_state()
        if state is None or not state.has_credentials:
            raise OAuthTokenNotFoundError(
                "No marketplace token on file; authorize the app at /meli/auth."
            )
        if not state.is_expired(self._clock()):
            return state.access_token  # type: ignore[return-value]

        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh_if_expired())
        else:
            logger.debug("Token refresh already in flight; awaiting it.")
        # shield: one cancelled caller must not cancel the refresh for the others.
        state = await asyncio.shield(self._inflight)
        return state.access_token  # type: ignore[return-value]

    async def _refresh_if_expired(self) -> TokenState:
        try:
            async with self._lock:
                state = self._state
                if state is not None and not state.is_expired(self._clock()):
                    return state
                return await self._refresh_locked()
        finally:
            self._inflight = None

    async def exchange_authorization_code(self, code: str) -> TokenState:
        """Complete the authorization_code grant and persist the resulting state."""
        async with self._lock:
            issued_at = self._clock()
            grant = await self._oauth.exchange_authorization_code(code)
            state = TokenState.from_grant(grant, now=issued_at, margin_seconds=self._margin)
            self._commit(state)
        logger.info("Authorized marketplace account %s", state.user_id)
        return state

    async def refresh(self) -> TokenState:
        """Force a refresh_token grant."""
        async with self._lock:
            return await self._refresh_locked()

    async def _refresh_locked(self) -> TokenState:
        previous = self.current_state()
        if previous is None or not previous.refresh_token:
            raise OAuthTokenRefreshError(
                "No refresh token stored; authorize the app again at /meli/auth."
            )

        issued_at = self._clock()
        grant = await self._oauth.refresh_token(previous.refresh_token)
        state = TokenState.from_grant(
            grant, now=issued_at, margin_seconds=self._margin, previous=previous
        )
        if grant.refresh_token is None:
            logger.info("Provider did not rotate the refresh token; keeping the stored one.")
        self._commit(state)
        logger.info("Refreshed marketplace access token; valid until %s", state.expires_at)
        return state

    def _commit(self, state: TokenState) -> None:
        self._store.save(state)
        self._state = state
        self._loaded = True


__all__ = ["MeliTokenService"]
