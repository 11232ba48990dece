"""
Container health check: the ledger database must answer SELECT 1.

Prints the ledger size as JSON on success.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.repositories.picked_number_repository import PickedNumberRepository
from db.session import SessionLocal, check_connection, get_engine


def collect_health(engine: Engine, session_factory: Callable[[], Session]) -> dict[str, Any]:
    check_connection(engine)
    with session_factory() as session:
        picked = PickedNumberRepository(session).count()
    return {"status": "ok", "picked_numbers": picked}


def main() -> int:
    try:
        report = collect_health(get_engine(), SessionLocal)
    except (RuntimeError, SQLAlchemyError) as exc:
        print(json.dumps({"status": "unavailable", "error": str(exc)}))
        return 1
    print(json.dumps(report))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
