"""Tests for the pre-deployment configuration check script."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from scripts import check_env

MANAGED_ENV_KEYS = [
    "MELI_APP_ID",
    "MELI_CLIENT_SECRET",
    "MELI_REDIRECT_URI",
    "ATTACHMENT_MAP_PATH",
    "ATTACHMENTS_DIR",
]


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


@pytest.fixture(autouse=True)
def _clear_managed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # setenv first so monkeypatch restores whatever the env-file loader writes.
    for key in MANAGED_ENV_KEYS:
        monkeypatch.setenv(key, "placeholder")
        monkeypatch.delenv(key)


@pytest.mark.parametrize("command", ["settings", "attachments"])
def test_main_requires_existing_env_file(tmp_path: Path, command: str) -> None:
    exit_code = check_env.main([command, "--env-file", str(tmp_path / ".missing-env")])

    assert exit_code == check_env.EXIT_RUNTIME_ERROR


def test_settings_validation_failure(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, MELI_APP_ID="app-only")

    exit_code = check_env.main(["settings", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_VALIDATION_ERROR


def test_settings_ok(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    env_file = tmp_path / ".env"
    _write_env(
        env_file,
        MELI_APP_ID="app",
        MELI_CLIENT_SECRET="secret",
        MELI_REDIRECT_URI="https://example.com/meli/callback",
    )

    exit_code = check_env.main(["settings", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_OK
    assert "Settings OK" in capsys.readouterr().out


def test_attachments_reports_missing_files(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    pdfs = tmp_path / "pdfs"
    pdfs.mkdir()
    (pdfs / "present.pdf").write_bytes(b"x")
    map_path = tmp_path / "pdf-map.json"
    map_path.write_text(
        json.dumps({"MLB1": "present.pdf", "MLB2": "absent.pdf"}), encoding="utf-8"
    )
    env_file = tmp_path / ".env"
    _write_env(
        env_file,
        MELI_APP_ID="app",
        MELI_CLIENT_SECRET="secret",
        MELI_REDIRECT_URI="https://example.com/meli/callback",
        ATTACHMENT_MAP_PATH=str(map_path),
        ATTACHMENTS_DIR=str(pdfs),
    )

    exit_code = check_env.main(["attachments", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_MISSING_ATTACHMENTS
    assert "MLB2" in capsys.readouterr().err

    (pdfs / "absent.pdf").write_bytes(b"y")
    assert check_env.main(["attachments", "--env-file", str(env_file)]) == check_env.EXIT_OK
