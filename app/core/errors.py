"""
Exception hierarchy shared by the marketplace clients and services.

Route handlers translate these into HTTP responses; the webhook pipeline only
logs them.
"""

from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for every failure talking to, or preparing calls for, the marketplace."""


class OAuthTokenNotFoundError(MarketplaceError):
    """Raised when no token is on file and the authorization flow must be completed."""


class OAuthStateError(MarketplaceError):
    """Raised when an OAuth callback carries a tampered or expired state value."""


class MarketplaceHTTPError(MarketplaceError):
    """A provider call answered with a non-2xx status."""

    def __init__(self, *, status_code: int, reason: str = "", body: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"{status_code} {reason}: {body}".strip())


class OAuthTokenExchangeError(MarketplaceHTTPError):
    """The authorization_code grant was rejected."""


class OAuthTokenRefreshError(MarketplaceHTTPError):
    """The refresh_token grant was rejected or could not be attempted."""

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int = 0,
        reason: str = "",
        body: str = "",
    ) -> None:
        super().__init__(status_code=status_code, reason=reason, body=body)
        if message is not None:
            self.args = (message,)


class OrderFetchError(MarketplaceHTTPError):
    """Order lookup failed."""


class AttachmentUploadError(MarketplaceHTTPError):
    """Attachment upload failed."""


class MessageSendError(MarketplaceHTTPError):
    """Post-sale message could not be sent."""


class AttachmentNotFoundError(MarketplaceError):
    """The local file mapped to an item does not exist."""

    def __init__(self, path: object) -> None:
        self.path = path
        super().__init__(f"Attachment file not found: {path}")


class AttachmentReadError(MarketplaceError):
    """The local file mapped to an item exists but could not be read."""

    def __init__(self, path: object, reason: str) -> None:
        self.path = path
        super().__init__(f"Attachment file {path} could not be read: {reason}")


class MarketplacePayloadError(MarketplaceError):
    """A provider response did not match the expected schema."""


class MarketplaceTransportError(MarketplaceError):
    """The request never produced a response (connection reset, DNS, ...)."""


class MarketplaceTimeoutError(MarketplaceTransportError):
    """The request exceeded its timeout."""


__all__ = [
    "AttachmentNotFoundError",
    "AttachmentReadError",
    "AttachmentUploadError",
    "MarketplaceError",
    "MarketplaceHTTPError",
    "MarketplacePayloadError",
    "MarketplaceTimeoutError",
    "MarketplaceTransportError",
    "MessageSendError",
    "OAuthStateError",
    "OAuthTokenExchangeError",
    "OAuthTokenNotFoundError",
    "OAuthTokenRefreshError",
    "OrderFetchError",
]
