"""
Environment-driven configuration for the ledger database.
"""

from __future__ import annotations

import os
from pathlib import Path

CLOUD_LIKE_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})
ENV_FILENAMES = (".env", ".env.local")

_PSYCOPG_SCHEME = "postgresql+psycopg://"
_BARE_SCHEMES = ("postgres://", "postgresql://")


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(project_root: Path | None = None) -> None:
    """
    Load KEY=VALUE pairs from `.env` then `.env.local` at the project root.

    Variables already present in the process environment win.
    """

    root = project_root or Path(__file__).resolve().parents[1]
    for filename in ENV_FILENAMES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None and parsed[0] not in os.environ:
                os.environ[parsed[0]] = parsed[1]


def normalize_postgres_url(url: str) -> str:
    """Rewrite bare postgres URLs to the psycopg 3 driver."""
    for scheme in _BARE_SCHEMES:
        if url.startswith(scheme):
            return _PSYCOPG_SCHEME + url[len(scheme):]
    return url


def is_cloud_environment() -> bool:
    return os.getenv("ENVIRONMENT", "local").strip().lower() in CLOUD_LIKE_ENVIRONMENTS


def find_database_url() -> str | None:
    """
    Return the ledger database URL, or None when nothing usable is set.

    DATABASE_URL wins. CLOUD_DATABASE_URL only applies when ENVIRONMENT is
    cloud-like. LOCAL_DATABASE_URL is the last resort.
    """

    load_env_files()

    candidates = ["DATABASE_URL"]
    if is_cloud_environment():
        candidates.append("CLOUD_DATABASE_URL")
    candidates.append("LOCAL_DATABASE_URL")

    for name in candidates:
        value = os.getenv(name, "").strip()
        if value:
            return normalize_postgres_url(value)
    return None


def resolve_database_url() -> str:
    url = find_database_url()
    if url is None:
        raise RuntimeError(
            "No database URL configured. Set DATABASE_URL or LOCAL_DATABASE_URL, "
            "or CLOUD_DATABASE_URL together with a cloud ENVIRONMENT "
            f"({', '.join(sorted(CLOUD_LIKE_ENVIRONMENTS))})."
        )
    return url
