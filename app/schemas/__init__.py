"""Public schema exports."""

from .auth import OAuthTokenGrant
from .orders import (
    PAID_STATUS,
    AttachmentUploadResult,
    Buyer,
    MarketplaceUser,
    MessageResult,
    Order,
    OrderItem,
    OrderItemDetail,
)
from .webhook import ORDERS_TOPIC, WebhookNotification

__all__ = [
    "ORDERS_TOPIC",
    "PAID_STATUS",
    "AttachmentUploadResult",
    "Buyer",
    "MarketplaceUser",
    "MessageResult",
    "OAuthTokenGrant",
    "Order",
    "OrderItem",
    "OrderItemDetail",
    "WebhookNotification",
]
