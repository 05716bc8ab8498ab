"""
Mercado Libre OAuth utilities.

These helpers build the consent URL, sign the ``state`` round-trip and run the
token-endpoint grants. Persistence and expiry tracking live in
``app.services.token_lifecycle``.
"""

from __future__ import annotations

import base64
import hmac
import json
import time
import uuid
from hashlib import sha256
from typing import Any, Dict, Optional, Type
from urllib.parse import urlencode

import httpx

from app.core.config import MeliSettings
from app.core.errors import (
    MarketplaceHTTPError,
    OAuthStateError,
    OAuthTokenExchangeError,
    OAuthTokenRefreshError,
)
from app.schemas.auth import OAuthTokenGrant
from app.utils.http import parse_response, request_checked


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


class OAuthStateEncoder:
    """Issue and verify signed, time-limited OAuth ``state`` values."""

    def __init__(self, secret_key: str, *, ttl_seconds: int = 900) -> None:
        self._secret_key = secret_key.encode("utf-8")
        self._ttl_seconds = ttl_seconds

    def issue(self, *, now: Optional[float] = None) -> str:
        payload = {
            "nonce": uuid.uuid4().hex,
            "issued_at": int(time.time() if now is None else now),
        }
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
        return f"{_b64encode(serialized)}.{_b64encode(self._sign(serialized))}"

    def verify(self, token: str, *, now: Optional[float] = None) -> Dict[str, Any]:
        """Return the state payload, or raise ``OAuthStateError``."""
        try:
            encoded_payload, encoded_signature = token.split(".", 1)
            serialized = _b64decode(encoded_payload)
            signature = _b64decode(encoded_signature)
        except ValueError as exc:
            raise OAuthStateError("Malformed OAuth state.") from exc

        if not hmac.compare_digest(signature, self._sign(serialized)):
            raise OAuthStateError("Invalid OAuth state signature.")

        payload = json.loads(serialized)
        current = time.time() if now is None else now
        if current - int(payload.get("issued_at", 0)) > self._ttl_seconds:
            raise OAuthStateError("OAuth state has expired.")
        return payload

    def _sign(self, serialized: bytes) -> bytes:
        return hmac.new(self._secret_key, serialized, sha256).digest()


class MeliOAuthClient:
    """Build authorization URLs and run token grants against Mercado Libre."""

    def __init__(
        self,
        meli_settings: MeliSettings,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._meli = meli_settings
        self._timeout = timeout
        self._transport = transport

    @property
    def token_url(self) -> str:
        return f"{self._meli.api_base_url.rstrip('/')}/oauth/token"

    def build_authorization_url(self, state: str) -> str:
        """Construct the consent URL the seller is redirected to."""
        params = {
            "response_type": "code",
            "client_id": self._meli.client_id,
            "redirect_uri": self._meli.redirect_uri,
            "state": state,
        }
        return f"{self._meli.auth_url}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str) -> OAuthTokenGrant:
        """Exchange an authorization code for an access/refresh token pair."""
        payload = {
            "grant_type": "authorization_code",
            "client_id": self._meli.client_id,
            "client_secret": self._meli.client_secret,
            "code": code,
            "redirect_uri": self._meli.redirect_uri,
        }
        return await self._request_grant(payload, OAuthTokenExchangeError)

    async def refresh_token(self, refresh_token: str) -> OAuthTokenGrant:
        """Obtain a new access token from a stored refresh token."""
        payload = {
            "grant_type": "refresh_token",
            "client_id": self._meli.client_id,
            "client_secret": self._meli.client_secret,
            "refresh_token": refresh_token,
        }
        return await self._request_grant(payload, OAuthTokenRefreshError)

    async def _request_grant(
        self, payload: Dict[str, str], error_cls: Type[MarketplaceHTTPError]
    ) -> OAuthTokenGrant:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await request_checked(
                client,
                "POST",
                self.token_url,
                error_cls=error_cls,
                data=payload,
                headers={"Accept": "application/json"},
            )
        return parse_response(OAuthTokenGrant, response)


__all__ = ["MeliOAuthClient", "OAuthStateEncoder"]
