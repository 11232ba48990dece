"""
Run one number pickup from the CLI, without the chat transport.
"""

from __future__ import annotations

import argparse
import json

from app.logging_utils import configure_logging
from app.portal.errors import AuthenticationFailure
from app.services.pickup_service import build_pickup_service
from db.session import ensure_schema, get_engine


def main() -> int:
    parser = argparse.ArgumentParser(description="Claim portal numbers until none are left.")
    parser.add_argument(
        "--skip-schema-check",
        dest="skip_schema_check",
        action="store_true",
        help="Do not create the ledger table before running.",
    )
    args = parser.parse_args()

    configure_logging()
    if not args.skip_schema_check:
        ensure_schema(get_engine())

    service = build_pickup_service()
    try:
        summary = service.run_once()
    except AuthenticationFailure as exc:
        print(json.dumps({"status": "login_failed", "error": str(exc)}, indent=2))
        return 1

    print(json.dumps({"status": "completed", **summary.to_dict()}, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
