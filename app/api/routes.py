"""
FastAPI routes for the post-sale fulfillment bridge.
"""

from __future__ import annotations

import html
import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from app.core.config import AppSettings
from app.core.errors import (
    MarketplaceError,
    OAuthStateError,
    OAuthTokenNotFoundError,
    OAuthTokenRefreshError,
)
from app.dependencies import (
    SettingsDependency,
    get_fulfillment_pipeline,
    get_marketplace_client,
    get_meli_oauth_client,
    get_oauth_state_encoder,
    get_token_service,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_CONNECTED_PAGE = """<!doctype html>
<html>
  <head><meta charset="utf-8"><title>Mercado Libre connected</title></head>
  <body>
    <h1>Mercado Libre account connected</h1>
    <p>Account {user_id} is authorized. Paid orders will now receive their files.</p>
  </body>
</html>
"""


@router.get("/", response_class=PlainTextResponse)
async def liveness(settings: AppSettings = SettingsDependency) -> str:
    """Plain-text liveness probe."""
    return f"OK - Mercado Libre post-sale bridge ({settings.environment})"


@router.get("/meli/auth")
async def start_meli_oauth_flow(
    oauth_client: Annotated[Any, Depends(get_meli_oauth_client)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
) -> RedirectResponse:
    """Send the seller to the Mercado Libre consent screen."""
    authorization_url = oauth_client.build_authorization_url(state=state_encoder.issue())
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)


@router.get("/meli/callback", response_class=HTMLResponse)
async def handle_meli_oauth_callback(
    token_service: Annotated[Any, Depends(get_token_service)],
    state_encoder: Annotated[Any, Depends(get_oauth_state_encoder)],
    code: str | None = Query(None, description="Authorization code returned by Mercado Libre."),
    state: str | None = Query(None, description="State issued by /meli/auth."),
) -> HTMLResponse:
    """Exchange the authorization code and persist the resulting tokens."""
    if not code:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Missing authorization code."
        )

    # Callbacks started from the developer console carry no state of ours.
    if state is not None:
        try:
            state_encoder.verify(state)
        except OAuthStateError as exc:
            raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc

    try:
        token_state = await token_service.exchange_authorization_code(code)
    except MarketplaceError as exc:
        logger.warning("Authorization code exchange failed: %s", exc)
        raise HTTPException(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail=f"Failed to exchange authorization code: {exc}",
        ) from exc

    return HTMLResponse(_CONNECTED_PAGE.format(user_id=html.escape(str(token_state.user_id))))


@router.post("/meli/webhook", status_code=HTTPStatus.OK)
async def meli_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    pipeline: Annotated[Any, Depends(get_fulfillment_pipeline)],
) -> dict:
    """
    Acknowledge a marketplace notification, then fulfill it in the background.

    The response is always 200: delivery happens after it is sent and its
    failures are only logged.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    background_tasks.add_task(pipeline.dispatch, payload)
    return {"status": "received"}


@router.get("/meli/me", status_code=HTTPStatus.OK)
async def meli_me(
    marketplace: Annotated[Any, Depends(get_marketplace_client)],
) -> dict:
    """Report which marketplace account the stored token belongs to."""
    try:
        user = await marketplace.get_me()
    except (OAuthTokenNotFoundError, OAuthTokenRefreshError) as exc:
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail=str(exc)) from exc
    except MarketplaceError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=str(exc)) from exc
    return user.summary()
