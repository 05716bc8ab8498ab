"""JSON-file persistence for the marketplace token state."""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from app.core.errors import OAuthTokenNotFoundError
from app.models.oauth import TokenState
from app.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


class TokenFileStore:
    """
    Durable holder of a single ``TokenState`` document.

    Token values are encrypted at rest. A document written by an older
    deployment with plaintext ``access_token``/``refresh_token`` keys is read
    as-is and rewritten in encrypted form.
    """

    def __init__(self, path: str | Path, cipher: TokenCipherService) -> None:
        self._path = Path(path)
        self._cipher = cipher

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[TokenState]:
        if not self._path.exists():
            return None
        try:
            record = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(record, dict):
                raise ValueError("token document is not a JSON object")
            if self._is_legacy(record):
                state = TokenState(
                    access_token=record.get("access_token"),
                    refresh_token=record.get("refresh_token"),
                    user_id=record.get("user_id"),
                    expires_at=record.get("expires_at") or 0,
                )
                logger.info("Migrating plaintext token file %s to encrypted form", self._path)
                self.save(state)
                return state
            return TokenState(
                access_token=self._cipher.decrypt(record.get("access_token_encrypted")),
                refresh_token=self._cipher.decrypt(record.get("refresh_token_encrypted")),
                user_id=record.get("user_id"),
                expires_at=record.get("expires_at") or 0,
            )
        except ValueError as exc:
            raise OAuthTokenNotFoundError(
                f"Token file {self._path} is unreadable ({exc}); authorize the app again."
            ) from exc

    def save(self, state: TokenState) -> None:
        """Atomically replace the token document."""
        record: Dict[str, Any] = {
            "access_token_encrypted": self._cipher.encrypt(state.access_token),
            "refresh_token_encrypted": self._cipher.encrypt(state.refresh_token),
            "user_id": state.user_id,
            "expires_at": state.expires_at,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        if self._path.parent and not self._path.parent.exists():
            self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        tmp_path.write_text(json.dumps(record, indent=2), encoding="utf-8")
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, self._path)

    @staticmethod
    def _is_legacy(record: Dict[str, Any]) -> bool:
        has_plaintext = "access_token" in record or "refresh_token" in record
        has_encrypted = (
            "access_token_encrypted" in record or "refresh_token_encrypted" in record
        )
        return has_plaintext and not has_encrypted


__all__ = ["TokenFileStore"]
