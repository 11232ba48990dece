"""
app/main.py

Process entrypoint: validate configuration, prepare the ledger, serve
chat commands.
"""

from __future__ import annotations

import logging
import os
import threading

from app.logging_utils import configure_logging, log_event

logger = logging.getLogger(__name__)


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Raises RuntimeError listing every missing variable so the operator can
    fix all problems in one restart cycle.
    """

    from db.config import find_database_url, load_env_files

    load_env_files()

    errors: list[str] = []

    for name in ("PORTAL_EMAIL", "PORTAL_PASSWORD", "TELEGRAM_BOT_TOKEN"):
        if not os.getenv(name, "").strip():
            errors.append(f"{name} is not set. Empty strings are not permitted.")

    if find_database_url() is None:
        errors.append(
            "No database URL configured. Set DATABASE_URL or LOCAL_DATABASE_URL, "
            "or CLOUD_DATABASE_URL with ENVIRONMENT set to a cloud environment."
        )

    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _prepare_ledger() -> None:
    """Check DB connectivity and create the ledger schema if absent."""
    from db.session import check_connection, ensure_schema, get_engine

    engine = get_engine()
    check_connection(engine)
    log_event(logger, logging.INFO, "database_connected")
    ensure_schema(engine)


def _log_unhandled_thread_exception(args: threading.ExceptHookArgs) -> None:
    log_event(
        logger,
        logging.ERROR,
        "unhandled_thread_exception",
        thread=args.thread.name if args.thread else None,
        error=str(args.exc_value),
        error_type=args.exc_type.__name__,
    )


def main() -> int:
    configure_logging()
    threading.excepthook = _log_unhandled_thread_exception

    try:
        _validate_env()
        _prepare_ledger()
    except Exception as exc:
        logger.critical("Startup failed: %s", exc)
        return 1

    from app.bot import CommandBot
    from app.config import get_telegram_settings
    from app.notify.telegram import TelegramClient
    from app.services.pickup_service import build_pickup_service

    telegram_settings = get_telegram_settings()
    telegram = TelegramClient(settings=telegram_settings)
    service = build_pickup_service(telegram=telegram)
    bot = CommandBot(
        client=telegram,
        settings=telegram_settings,
        handler=service.handle_pick_command,
    )

    log_event(logger, logging.INFO, "bot_ready", command=telegram_settings.command)
    try:
        bot.run_forever()
    except KeyboardInterrupt:
        log_event(logger, logging.INFO, "bot_interrupted")
    finally:
        bot.shutdown(wait=False)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
