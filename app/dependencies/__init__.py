"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_attachment_resolver,
    get_fulfillment_pipeline,
    get_marketplace_client,
    get_meli_oauth_client,
    get_oauth_state_encoder,
    get_token_cipher_service,
    get_token_service,
    get_token_store,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_attachment_resolver",
    "get_fulfillment_pipeline",
    "get_marketplace_client",
    "get_meli_oauth_client",
    "get_oauth_state_encoder",
    "get_token_cipher_service",
    "get_token_service",
    "get_token_store",
]
