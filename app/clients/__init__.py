"""Expose constructed client wrappers."""

from .marketplace import MarketplaceClient
from .meli_auth import MeliOAuthClient, OAuthStateEncoder

__all__ = [
    "MarketplaceClient",
    "MeliOAuthClient",
    "OAuthStateEncoder",
]
