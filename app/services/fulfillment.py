"""
Webhook-driven delivery of digital goods through post-sale messages.

Each notification is handled independently: nothing is persisted between
runs, duplicate notifications are processed again, and failures are logged
rather than reported back to the marketplace (which was already answered).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import ValidationError

from app.clients.marketplace import MarketplaceClient
from app.core.errors import MarketplaceError
from app.schemas.orders import Order, OrderItem
from app.schemas.webhook import WebhookNotification
from app.services.attachments import AttachmentResolver
from app.services.token_lifecycle import MeliTokenService

logger = logging.getLogger(__name__)


class FulfillmentOutcome(str, Enum):
    IGNORED = "ignored"
    SKIPPED = "skipped"
    DONE = "done"
    FAILED = "failed"


class ItemStatus(str, Enum):
    DELIVERED = "delivered"
    NO_ATTACHMENT = "no_attachment"
    FAILED = "failed"


@dataclass
class ItemDelivery:
    item_id: str
    status: ItemStatus
    file_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class FulfillmentReport:
    """What happened to one notification."""

    outcome: FulfillmentOutcome
    order_id: Optional[str] = None
    deliveries: List[ItemDelivery] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def delivered(self) -> List[str]:
        return [d.item_id for d in self.deliveries if d.status is ItemStatus.DELIVERED]

    @property
    def failed(self) -> List[str]:
        return [d.item_id for d in self.deliveries if d.status is ItemStatus.FAILED]


class FulfillmentPipeline:
    """Validate a notification, check the order is paid, deliver each mapped item."""

    def __init__(
        self,
        *,
        marketplace: MarketplaceClient,
        resolver: AttachmentResolver,
        token_service: MeliTokenService,
        message_text: str,
        seller_id: Optional[Union[int, str]] = None,
    ) -> None:
        self._marketplace = marketplace
        self._resolver = resolver
        self._token_service = token_service
        self._message_text = message_text
        self._seller_id = seller_id

    async def handle(self, payload: Any) -> FulfillmentReport:
        try:
            notification = WebhookNotification.model_validate(payload)
        except ValidationError:
            logger.info("Ignoring malformed notification: %r", payload)
            return FulfillmentReport(outcome=FulfillmentOutcome.IGNORED)

        if not notification.is_order_event:
            logger.debug(
                "Ignoring notification topic=%s resource=%s",
                notification.topic,
                notification.resource,
            )
            return FulfillmentReport(outcome=FulfillmentOutcome.IGNORED)

        order_id = notification.order_id
        try:
            order = await self._marketplace.get_order(order_id)
        except MarketplaceError as exc:
            logger.error("Could not fetch order %s: %s", order_id, exc)
            return FulfillmentReport(
                outcome=FulfillmentOutcome.FAILED, order_id=order_id, error=str(exc)
            )

        if not order.is_paid:
            logger.info("Order %s has status %s; nothing to deliver.", order_id, order.status)
            return FulfillmentReport(outcome=FulfillmentOutcome.SKIPPED, order_id=order_id)

        seller_id = self._resolve_seller_id()
        if seller_id is None:
            message = "No seller id configured and none known from the stored token."
            logger.error("Cannot deliver order %s: %s", order_id, message)
            return FulfillmentReport(
                outcome=FulfillmentOutcome.FAILED, order_id=order_id, error=message
            )

        report = FulfillmentReport(outcome=FulfillmentOutcome.DONE, order_id=order_id)
        for item in order.order_items:
            report.deliveries.append(await self._deliver_item(order, item, seller_id))

        logger.info(
            "Order %s processed: delivered=%s failed=%s",
            order_id,
            report.delivered,
            report.failed,
        )
        return report

    async def dispatch(self, payload: Any) -> None:
        """
        Background entry point used after the webhook has been acknowledged.

        Never raises: there is no caller left to report to, so anything
        unexpected is logged with its traceback.
        """
        try:
            await self.handle(payload)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unhandled error while fulfilling notification %r", payload)

    async def _deliver_item(
        self, order: Order, item: OrderItem, seller_id: Union[int, str]
    ) -> ItemDelivery:
        item_id = item.item.id
        path = self._resolver.resolve(item_id)
        if path is None:
            return ItemDelivery(item_id=item_id, status=ItemStatus.NO_ATTACHMENT)

        try:
            file_id = await self._marketplace.upload_attachment(
                path, self._resolver.upload_filename(item_id, path)
            )
            await self._marketplace.send_message(
                pack_id=order.messaging_pack_id,
                seller_id=seller_id,
                buyer_id=order.buyer.id,
                text=self._message_text,
                file_id=file_id,
            )
        except MarketplaceError as exc:
            logger.warning(
                "Delivery of item %s for order %s failed: %s", item_id, order.id, exc
            )
            return ItemDelivery(item_id=item_id, status=ItemStatus.FAILED, error=str(exc))

        return ItemDelivery(item_id=item_id, status=ItemStatus.DELIVERED, file_id=file_id)

    def _resolve_seller_id(self) -> Optional[Union[int, str]]:
        if self._seller_id is not None:
            return self._seller_id
        state = self._token_service.current_state()
        return state.user_id if state else None


__all__ = [
    "FulfillmentOutcome",
    "FulfillmentPipeline",
    "FulfillmentReport",
    "ItemDelivery",
    "ItemStatus",
]
