"""Schema for marketplace notification callbacks."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

ORDERS_TOPIC = "orders_v2"
_ORDER_RESOURCE_MARKER = "/orders/"


class WebhookNotification(BaseModel):
    """Notification envelope posted by the marketplace."""

    model_config = ConfigDict(extra="ignore")

    topic: str
    resource: str
    user_id: Optional[Union[int, str]] = None
    application_id: Optional[Union[int, str]] = None
    attempts: Optional[int] = None
    sent: Optional[str] = None
    received: Optional[str] = None

    @property
    def is_order_event(self) -> bool:
        return self.topic == ORDERS_TOPIC and _ORDER_RESOURCE_MARKER in self.resource

    @property
    def order_id(self) -> str:
        """Trailing path segment of ``resource``, e.g. ``/orders/999`` -> ``999``."""
        return self.resource.rstrip("/").rsplit("/", 1)[-1]


__all__ = ["ORDERS_TOPIC", "WebhookNotification"]
