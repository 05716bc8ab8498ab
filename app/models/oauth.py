"""
Domain model for the persisted marketplace OAuth credential.
"""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, Field

from app.schemas.auth import OAuthTokenGrant


class TokenState(BaseModel):
    """Current access/refresh token pair and when the access token goes stale."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    user_id: Optional[Union[int, str]] = None
    expires_at: int = Field(
        0, description="Unix timestamp, already reduced by the safety margin."
    )

    def is_expired(self, now: float) -> bool:
        return not self.access_token or self.expires_at <= now

    @property
    def has_credentials(self) -> bool:
        return bool(self.access_token or self.refresh_token)

    @classmethod
    def from_grant(
        cls,
        grant: OAuthTokenGrant,
        *,
        now: float,
        margin_seconds: int,
        previous: "TokenState | None" = None,
    ) -> "TokenState":
        """
        Build the state that follows a successful grant.

        The provider may omit the refresh token or user id on refresh; the
        previous values are kept in that case. The margin never exceeds half of
        the declared lifetime, so a new token is always in the future.
        """
        margin = min(margin_seconds, grant.expires_in // 2)
        return cls(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token
            or (previous.refresh_token if previous else None),
            user_id=grant.user_id
            if grant.user_id is not None
            else (previous.user_id if previous else None),
            expires_at=int(now) + grant.expires_in - margin,
        )


__all__ = ["TokenState"]
