"""Pre-deployment check of configuration and digital-goods files.

The tool performs two checks:

1. It instantiates ``AppSettings`` from the provided ``.env`` file, surfacing
   missing or malformed entries (client id, secret, redirect URI) before the
   webhook starts failing silently in the background.
2. It loads the attachment map and confirms every mapped file exists, so a
   paid order never reaches an item whose file was forgotten.

Example usages::

    # Validate settings only.
    python -m scripts.check_env settings --env-file /opt/postsale/.env

    # Validate settings and every mapped attachment file.
    python -m scripts.check_env attachments --env-file /opt/postsale/.env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from app.core.config import AppSettings, _load_env_file
from app.services.attachments import AttachmentResolver

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_MISSING_ATTACHMENTS = 3
EXIT_RUNTIME_ERROR = 5


def _load_settings(env_file: Path) -> AppSettings:
    """Ensure required settings can be loaded from the supplied env file."""
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _report_settings(settings: AppSettings) -> int:
    print(f"Settings OK (site {settings.meli.site_id}, app {settings.meli.client_id}).")
    return EXIT_OK


def _check_attachments(settings: AppSettings) -> int:
    """Report mapped items whose file is missing."""
    try:
        resolver = AttachmentResolver.from_files(
            settings.fulfillment.attachment_map_path,
            settings.fulfillment.attachments_dir,
        )
    except ValueError as exc:
        print(f"Attachment map is invalid: {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    missing = resolver.missing_files()
    if missing:
        print("Mapped attachment files are missing:", file=sys.stderr)
        for item_id, path in sorted(missing.items()):
            print(f"  {item_id}: {path}", file=sys.stderr)
        return EXIT_MISSING_ATTACHMENTS

    print(f"Attachment map OK ({len(resolver)} items).")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate settings and the digital-goods attachment map."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("settings", "Validate settings only."),
        ("attachments", "Validate settings and every mapped attachment file."),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file
    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "settings": lambda: _report_settings(settings),
        "attachments": lambda: _check_attachments(settings),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
