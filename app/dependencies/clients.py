"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import MarketplaceClient, MeliOAuthClient, OAuthStateEncoder
from app.core.config import get_settings
from app.models.oauth import TokenState
from app.services import (
    AttachmentResolver,
    FulfillmentPipeline,
    MeliTokenService,
    TokenCipherService,
    TokenFileStore,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for the token file."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.meli.client_secret
    return TokenCipherService(
        secret=secret,
        previous_secrets=settings.security.previous_encryption_secrets,
    )


@lru_cache()
def get_token_store() -> TokenFileStore:
    """Provide the JSON document holding the token state."""
    settings = _settings()
    return TokenFileStore(settings.fulfillment.token_file, get_token_cipher_service())


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder keyed by the client secret."""
    settings = _settings()
    return OAuthStateEncoder(
        secret_key=settings.meli.client_secret,
        ttl_seconds=settings.security.oauth_state_ttl_seconds,
    )


@lru_cache()
def get_meli_oauth_client() -> MeliOAuthClient:
    """Create a singleton Mercado Libre OAuth client."""
    settings = _settings()
    return MeliOAuthClient(settings.meli, timeout=settings.http_timeout_seconds)


@lru_cache()
def get_token_service() -> MeliTokenService:
    """Provide the process-wide owner of the marketplace token state."""
    settings = _settings()
    bootstrap = None
    if settings.meli.access_token or settings.meli.refresh_token:
        bootstrap = TokenState(
            access_token=settings.meli.access_token,
            refresh_token=settings.meli.refresh_token,
            expires_at=0,
        )
    return MeliTokenService(
        store=get_token_store(),
        oauth_client=get_meli_oauth_client(),
        expiry_margin_seconds=settings.fulfillment.token_expiry_margin_seconds,
        bootstrap=bootstrap,
    )


@lru_cache()
def get_marketplace_client() -> MarketplaceClient:
    """Provide the authenticated marketplace API client."""
    settings = _settings()
    return MarketplaceClient(
        token_service=get_token_service(),
        meli_settings=settings.meli,
        timeout=settings.http_timeout_seconds,
    )


@lru_cache()
def get_attachment_resolver() -> AttachmentResolver:
    """Load the item-to-file mapping once per process."""
    settings = _settings()
    return AttachmentResolver.from_files(
        settings.fulfillment.attachment_map_path,
        settings.fulfillment.attachments_dir,
    )


@lru_cache()
def get_fulfillment_pipeline() -> FulfillmentPipeline:
    """Build the webhook fulfillment pipeline."""
    settings = _settings()
    return FulfillmentPipeline(
        marketplace=get_marketplace_client(),
        resolver=get_attachment_resolver(),
        token_service=get_token_service(),
        message_text=settings.fulfillment.message_text,
        seller_id=settings.meli.seller_id,
    )


__all__ = [
    "get_attachment_resolver",
    "get_fulfillment_pipeline",
    "get_marketplace_client",
    "get_meli_oauth_client",
    "get_oauth_state_encoder",
    "get_token_cipher_service",
    "get_token_service",
    "get_token_store",
]
