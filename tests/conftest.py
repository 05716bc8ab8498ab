"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from app.core.config import get_settings
from app.dependencies import clients


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def fresh_dependencies():
    """Drop cached settings and singletons before and after a test."""
    factories = [
        get_settings,
        clients._settings,
        clients.get_token_cipher_service,
        clients.get_token_store,
        clients.get_oauth_state_encoder,
        clients.get_meli_oauth_client,
        clients.get_token_service,
        clients.get_marketplace_client,
        clients.get_attachment_resolver,
        clients.get_fulfillment_pipeline,
    ]
    for factory in factories:
        factory.cache_clear()
    yield
    for factory in factories:
        factory.cache_clear()
