"""
Application configuration models and helpers.

Centralizes settings management so the webhook API, the token lifecycle and
the ``check_env`` script share one configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional, Union

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()

_SETTINGS_CONFIG = SettingsConfigDict(extra="ignore")


class MeliSettings(BaseSettings):
    """Credentials and endpoints for the Mercado Libre application."""

    model_config = _SETTINGS_CONFIG

    site_id: str = Field("MLB", validation_alias="MELI_SITE_ID")
    client_id: str = Field(..., validation_alias="MELI_APP_ID")
    client_secret: str = Field(..., validation_alias="MELI_CLIENT_SECRET")
    redirect_uri: str = Field(..., validation_alias="MELI_REDIRECT_URI")
    seller_id: Optional[Union[int, str]] = Field(
        None,
        validation_alias="MELI_SELLER_ID",
        description="Seller account messages are sent from. Defaults to the authorized user.",
    )
    access_token: Optional[str] = Field(
        None,
        validation_alias="MELI_ACCESS_TOKEN",
        description="Bootstrap access token used when no token file exists yet.",
    )
    refresh_token: Optional[str] = Field(
        None,
        validation_alias="MELI_REFRESH_TOKEN",
        description="Bootstrap refresh token used when no token file exists yet.",
    )
    api_base_url: str = Field(
        "https://api.mercadolibre.com", validation_alias="MELI_API_BASE_URL"
    )
    auth_url: str = Field(
        "https://auth.mercadolivre.com.br/authorization",
        validation_alias="MELI_AUTH_URL",
    )

    @field_validator("seller_id", mode="before")
    @classmethod
    def _blank_seller_is_unset(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = _SETTINGS_CONFIG

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    previous_encryption_secrets: Annotated[tuple[str, ...], NoDecode] = Field(
        (),
        validation_alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Retired secrets still accepted when reading the token file.",
    )
    oauth_state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")

    @field_validator("previous_encryption_secrets", mode="before")
    @classmethod
    def _split_secrets(
        cls, value: str | tuple[str, ...] | list[str] | None
    ) -> tuple[str, ...]:
        """Support providing retired secrets as a comma-separated string."""
        if value is None:
            return ()
        if isinstance(value, (tuple, list)):
            return tuple(value)
        return tuple(secret.strip() for secret in value.split(",") if secret.strip())


class FulfillmentSettings(BaseSettings):
    """Where digital goods and token state live, and what buyers are told."""

    model_config = _SETTINGS_CONFIG

    attachment_map_path: Path = Field(
        Path("config/pdf-map.json"), validation_alias="ATTACHMENT_MAP_PATH"
    )
    attachments_dir: Path = Field(Path("pdfs"), validation_alias="ATTACHMENTS_DIR")
    token_file: Path = Field(
        Path("/tmp/meli_tokens.json"), validation_alias="MELI_TOKEN_FILE"
    )
    token_expiry_margin_seconds: int = Field(
        60, validation_alias="TOKEN_EXPIRY_MARGIN_SECONDS"
    )
    message_text: str = Field(
        "Olá! Obrigado pela compra. Segue seu arquivo em anexo.",
        validation_alias="FULFILLMENT_MESSAGE_TEXT",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(8080, validation_alias="PORT")
    http_timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    meli: MeliSettings = Field(default_factory=MeliSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    fulfillment: FulfillmentSettings = Field(default_factory=FulfillmentSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "FulfillmentSettings",
    "MeliSettings",
    "SecuritySettings",
    "get_settings",
]
