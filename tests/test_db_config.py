from __future__ import annotations

import os
from pathlib import Path

import pytest

from db import config as db_config

REAL_LOAD_ENV_FILES = db_config.load_env_files


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(db_config, "load_env_files", lambda *args, **kwargs: None)
    for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("postgres://u@h/db", "postgresql+psycopg://u@h/db"),
        ("postgresql://u@h/db", "postgresql+psycopg://u@h/db"),
        ("postgresql+psycopg://u@h/db", "postgresql+psycopg://u@h/db"),
    ],
)
def test_normalize_postgres_url(url: str, expected: str) -> None:
    assert db_config.normalize_postgres_url(url) == expected


def test_direct_url_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgres://direct/db")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgres://local/db")

    assert db_config.resolve_database_url() == "postgresql+psycopg://direct/db"


def test_cloud_url_only_in_cloud_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUD_DATABASE_URL", "postgres://cloud/db")
    monkeypatch.setenv("LOCAL_DATABASE_URL", "postgres://local/db")

    assert db_config.find_database_url() == "postgresql+psycopg://local/db"

    monkeypatch.setenv("ENVIRONMENT", "Staging")
    assert db_config.find_database_url() == "postgresql+psycopg://cloud/db"


def test_nothing_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUD_DATABASE_URL", "postgres://cloud/db")

    assert db_config.find_database_url() is None
    with pytest.raises(RuntimeError, match="No database URL configured"):
        db_config.resolve_database_url()


def test_env_files_do_not_override_process_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text(
        "# comment\nPICKUP_TEST_A='from-file'\nPICKUP_TEST_B=from-file\n=orphan\nnot a pair\n",
        encoding="utf-8",
    )
    (tmp_path / ".env.local").write_text('PICKUP_TEST_C="local"\n', encoding="utf-8")
    for name in ("PICKUP_TEST_A", "PICKUP_TEST_C"):
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    monkeypatch.setenv("PICKUP_TEST_B", "from-process")

    REAL_LOAD_ENV_FILES(tmp_path)

    assert os.environ["PICKUP_TEST_A"] == "from-file"
    assert os.environ["PICKUP_TEST_B"] == "from-process"
    assert os.environ["PICKUP_TEST_C"] == "local"
