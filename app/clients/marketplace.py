"""Mercado Libre API wrapper for the post-sale fulfillment flow."""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path
from typing import Optional, TYPE_CHECKING, Union

import httpx

from app.core.config import MeliSettings
from app.core.errors import (
    AttachmentNotFoundError,
    AttachmentReadError,
    AttachmentUploadError,
    MarketplaceHTTPError,
    MessageSendError,
    OrderFetchError,
)
from app.schemas.orders import (
    AttachmentUploadResult,
    MarketplaceUser,
    MessageResult,
    Order,
)
from app.utils.http import parse_response, request_checked

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from app.services.token_lifecycle import MeliTokenService

POST_SALE_TAG = "post_sale"


class MarketplaceClient:
    """Order lookup, attachment upload and post-sale messaging."""

    def __init__(
        self,
        token_service: "MeliTokenService",
        meli_settings: MeliSettings,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token_service = token_service
        self._meli = meli_settings
        self._timeout = timeout
        self._transport = transport

    async def get_order(self, order_id: Union[int, str]) -> Order:
        """Fetch the current snapshot of an order."""
        response = await self._authorized_request(
            "GET", f"/orders/{order_id}", error_cls=OrderFetchError
        )
        return parse_response(Order, response)

    async def upload_attachment(self, file_path: Union[str, Path], filename: str) -> str:
        """Upload a local file for use in post-sale messages and return its provider id."""
        path = Path(file_path)
        if not path.is_file():
            raise AttachmentNotFoundError(path)

        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            # Removed or made unreadable after the is_file check.
            raise AttachmentReadError(path, exc.strerror or str(exc)) from exc
        mime_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        response = await self._authorized_request(
            "POST",
            "/messages/attachments",
            error_cls=AttachmentUploadError,
            params={"tag": POST_SALE_TAG, "site_id": self._meli.site_id},
            files={"file": (filename, content, mime_type)},
        )
        return parse_response(AttachmentUploadResult, response).id

    async def send_message(
        self,
        *,
        pack_id: Union[int, str],
        seller_id: Union[int, str],
        buyer_id: Union[int, str],
        text: str,
        file_id: Optional[str] = None,
    ) -> MessageResult:
        """Send a post-sale message from the seller to the buyer of a pack."""
        body = {
            "from": {"user_id": str(seller_id)},
            "to": {"user_id": str(buyer_id)},
            "text": {"plain": text},
            "attachments": [{"id": file_id}] if file_id else [],
        }
        response = await self._authorized_request(
            "POST",
            f"/messages/packs/{pack_id}/sellers/{seller_id}",
            error_cls=MessageSendError,
            params={"tag": POST_SALE_TAG},
            json=body,
        )
        return parse_response(MessageResult, response)

    async def get_me(self) -> MarketplaceUser:
        """Return the account the stored token belongs to."""
        response = await self._authorized_request(
            "GET", "/users/me", error_cls=MarketplaceHTTPError
        )
        return parse_response(MarketplaceUser, response)

    async def _authorized_request(
        self,
        method: str,
        path: str,
        *,
        error_cls: type[MarketplaceHTTPError],
        **kwargs,
    ) -> httpx.Response:
        access_token = await self._token_service.get_valid_token()
        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        async with httpx.AsyncClient(
            base_url=self._meli.api_base_url,
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            return await request_checked(
                client, method, path, error_cls=error_cls, headers=headers, **kwargs
            )


__all__ = ["MarketplaceClient", "POST_SALE_TAG"]
