"""Plain-text rendering of an event record for downloads and copy/paste."""

from __future__ import annotations

from datetime import date, datetime

from .models import EventRecord


def format_event_date(raw: str) -> str:
    try:
        parsed: date = datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        return raw
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_event_text(record: EventRecord) -> str:
    lines = [record.title]
    if record.date:
        lines.append(f"Date: {format_event_date(record.date)}")
    if record.max_amount != "":
        lines.append(f"Budget: {record.max_amount}")
    lines.append("")
    lines.extend(f"{pair.giver} → {pair.receiver}" for pair in record.results)
    return "\n".join(lines) + "\n"
