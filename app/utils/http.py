"""HTTP helpers enforcing the marketplace success and error contract."""

from __future__ import annotations

from typing import Any, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.core.errors import (
    MarketplaceHTTPError,
    MarketplacePayloadError,
    MarketplaceTimeoutError,
    MarketplaceTransportError,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


async def request_checked(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    error_cls: Type[MarketplaceHTTPError],
    **kwargs: Any,
) -> httpx.Response:
    """
    Issue a request and return the response only when it is 2xx.

    Any other status raises ``error_cls`` carrying the status, reason phrase and
    raw body. Transport failures are normalized to ``MarketplaceTransportError``.
    Nothing is retried here.
    """
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as exc:
        raise MarketplaceTimeoutError(f"{method} {url} timed out") from exc
    except httpx.TransportError as exc:
        raise MarketplaceTransportError(f"{method} {url} failed: {exc}") from exc

    if not response.is_success:
        raise error_cls(
            status_code=response.status_code,
            reason=response.reason_phrase,
            body=response.text,
        )
    return response


def parse_response(model: Type[ModelT], response: httpx.Response) -> ModelT:
    """Validate a JSON response body against ``model``."""
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        raise MarketplacePayloadError(
            f"Unexpected {model.__name__} payload from {response.request.url}: {exc}"
        ) from exc


__all__ = ["parse_response", "request_checked"]
