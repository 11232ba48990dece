"""
app/notify/report.py

Markdown rendering of pickup run summaries.
"""

from __future__ import annotations

import random
from datetime import datetime, timezone

from app.domain.pickup import RunSummary

REPORT_TITLE = "AUTO PICKUP BRACKET VNIX"
BOT_VERSION = "1.0"
_COUNT_WIDTH = 13


def _fmt_count(value: int) -> str:
    return f"{value:,}".rjust(_COUNT_WIDTH)


def new_report_id() -> str:
    return f"{random.randint(0, 999_999):06d}"


def build_summary_message(
    summary: RunSummary,
    *,
    generated_at: datetime | None = None,
    report_id: str | None = None,
) -> str:
    """
    Render the end-of-run report sent back to the chat.

    The count table sits in a fenced block so Telegram keeps the alignment.
    """

    timestamp = (generated_at or datetime.now(timezone.utc)).strftime("%A, %B %d, %Y %I:%M %p %Z")
    efficiency = f"{summary.efficiency_rate:.2f}".rjust(7)
    lines = [
        f"🚀 {REPORT_TITLE} 🚀",
        "",
        f"📅 {timestamp.strip()}",
        f"🔢 Report ID: #{report_id or new_report_id()}",
        "",
        "📊 *Process Summary*",
        "```",
        "┌──────────────────┬───────────────┐",
        "│     Category     │     Count     │",
        "├──────────────────┼───────────────┤",
        f"│ 🆕 New Numbers   │ {_fmt_count(summary.total_new)}│",
        f"│ 🔁 Duplicates    │ {_fmt_count(summary.total_duplicate)}│",
        f"│ 📈 Total         │ {_fmt_count(summary.total)}│",
        "├──────────────────┼───────────────┤",
        f"│ 💡 Efficiency    │     {efficiency}% │",
        "└──────────────────┴───────────────┘",
        "```",
        "",
        f"_Generated by {REPORT_TITLE} Bot v{BOT_VERSION}_",
    ]
    return "\n".join(lines)
