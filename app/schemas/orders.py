"""
Pydantic models for the marketplace resources the fulfillment flow reads.

Only the fields the flow relies on are declared; everything else the
provider sends is ignored.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

PAID_STATUS = "paid"

MarketplaceId = Union[int, str]


class Buyer(BaseModel):
    """Buyer reference embedded in an order."""

    model_config = ConfigDict(extra="ignore")

    id: MarketplaceId
    nickname: Optional[str] = None


class OrderItemDetail(BaseModel):
    """Listing reference of a purchased line."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Listing identifier, e.g. MLB123456789.")
    title: Optional[str] = None


class OrderItem(BaseModel):
    """One purchased line of an order."""

    model_config = ConfigDict(extra="ignore")

    item: OrderItemDetail
    quantity: int = 1
    unit_price: Optional[float] = None


class Order(BaseModel):
    """Snapshot of an order fetched for a single webhook event."""

    model_config = ConfigDict(extra="ignore")

    id: MarketplaceId
    status: str
    pack_id: Optional[MarketplaceId] = None
    buyer: Buyer
    order_items: List[OrderItem] = Field(default_factory=list)

    @property
    def is_paid(self) -> bool:
        return self.status == PAID_STATUS

    @property
    def messaging_pack_id(self) -> MarketplaceId:
        """Orders outside a pack are messaged through their own id."""
        return self.pack_id if self.pack_id is not None else self.id


class MessageResult(BaseModel):
    """Provider acknowledgement of a post-sale message."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    status: Optional[str] = None


class AttachmentUploadResult(BaseModel):
    """Provider acknowledgement of an attachment upload."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)


class MarketplaceUser(BaseModel):
    """Authenticated account, as reported by ``/users/me``."""

    model_config = ConfigDict(extra="ignore")

    id: MarketplaceId
    nickname: Optional[str] = None

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "nickname": self.nickname}


__all__ = [
    "AttachmentUploadResult",
    "Buyer",
    "MarketplaceUser",
    "MessageResult",
    "Order",
    "OrderItem",
    "OrderItemDetail",
    "PAID_STATUS",
]
