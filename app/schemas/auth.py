"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OAuthTokenGrant(BaseModel):
    """Token endpoint response for both the authorization_code and refresh_token grants."""

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None
    user_id: Optional[Union[int, str]] = None
    expires_in: int = Field(..., gt=0, description="Lifetime in seconds.")
    token_type: Optional[str] = None
    scope: Optional[str] = None


__all__ = ["OAuthTokenGrant"]
