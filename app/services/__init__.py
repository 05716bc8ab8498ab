"""Service layer exports."""

from .attachments import AttachmentResolver, load_attachment_map
from .fulfillment import (
    FulfillmentOutcome,
    FulfillmentPipeline,
    FulfillmentReport,
    ItemDelivery,
    ItemStatus,
)
from .token_cipher import TokenCipherService
from .token_lifecycle import MeliTokenService
from .token_store import TokenFileStore

__all__ = [
    "AttachmentResolver",
    "FulfillmentOutcome",
    "FulfillmentPipeline",
    "FulfillmentReport",
    "ItemDelivery",
    "ItemStatus",
    "MeliTokenService",
    "TokenCipherService",
    "TokenFileStore",
    "load_attachment_map",
]
