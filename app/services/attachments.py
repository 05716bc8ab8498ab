"""Lookup of the digital good delivered for each listing."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)


def load_attachment_map(path: Path) -> Dict[str, str]:
    """
    Read the ``{item_id: filename}`` JSON mapping.

    A missing file means no item has an attachment; a malformed one raises
    ``ValueError`` so the misconfiguration is caught at startup.
    """
    if not path.exists():
        logger.warning("Attachment map %s not found; no items will be fulfilled.", path)
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not all(
        isinstance(key, str) and isinstance(value, str) and value
        for key, value in data.items()
    ):
        raise ValueError(f"Attachment map {path} must map item ids to file names.")
    return dict(data)


class AttachmentResolver:
    """Resolve listing ids to files under the attachments directory."""

    def __init__(self, mapping: Mapping[str, str], attachments_dir: Path) -> None:
        self._mapping = dict(mapping)
        self._attachments_dir = Path(attachments_dir)

    @classmethod
    def from_files(cls, map_path: Path, attachments_dir: Path) -> "AttachmentResolver":
        return cls(load_attachment_map(map_path), attachments_dir)

    def __len__(self) -> int:
        return len(self._mapping)

    def resolve(self, item_id: str) -> Optional[Path]:
        """Return the file for ``item_id``, or ``None`` when the item has no digital good."""
        filename = self._mapping.get(item_id)
        if not filename:
            return None
        return self._attachments_dir / filename

    def missing_files(self) -> Dict[str, Path]:
        """Mapped items whose file is absent on disk."""
        missing = {}
        for item_id in self._mapping:
            path = self.resolve(item_id)
            if path is not None and not path.is_file():
                missing[item_id] = path
        return missing

    @staticmethod
    def upload_filename(item_id: str, path: Path) -> str:
        """Name shown to the buyer: the listing id with the source file's extension."""
        return f"{item_id}{path.suffix}"


__all__ = ["AttachmentResolver", "load_attachment_map"]
