"""Catalog item to outbound record transformation (no I/O)."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any

from models import CatalogItem, OutboundRecord

DEFAULT_DESCRIPTION_WORDS = 6
UNKNOWN = "Unknown"
ELLIPSIS = "..."


def truncate_description(text: Any, max_words: int = DEFAULT_DESCRIPTION_WORDS) -> str:
    """Keep the first `max_words` words of `text`, marking the cut with '...'.

    Text that already fits is returned verbatim, original spacing included.
    Empty or missing text yields an empty string without the marker.
    """
    if not text:
        return ""
    value = text if isinstance(text, str) else str(text)

    words = value.split()
    if len(words) <= max_words:
        return value
    return " ".join(words[:max_words]) + ELLIPSIS


def days_ago_text(date_string: Any, today: date | None = None) -> str:
    """Describe how long ago `date_string` was, counted in local calendar days.

    Returns 'Today', 'Yesterday', or '<N> days ago'. Future dates produce a
    negative N. Missing or unparseable dates give 'Unknown'.
    """
    if not date_string or not isinstance(date_string, str):
        return UNKNOWN

    release = _release_date(date_string)
    if release is None:
        return UNKNOWN

    diff_days = ((today or date.today()) - release).days
    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "Yesterday"
    return f"{diff_days} days ago"


def to_outbound_record(
    item: CatalogItem,
    index: int,
    max_words: int = DEFAULT_DESCRIPTION_WORDS,
    today: date | None = None,
) -> OutboundRecord:
    """Map one catalog entry at position `index` to its outbound record."""
    return OutboundRecord(
        index=index,
        name=_text_or_unknown(item.title),
        author=_text_or_unknown(item.author),
        description=truncate_description(item.description, max_words),
        hearts=_as_count(item.hearts),
        days_ago=days_ago_text(item.created_at, today=today),
    )


def _release_date(raw: str) -> date | None:
    value = raw.strip()
    # A bare calendar date names the day itself; no timezone shift applies.
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return parsed.date()


def _text_or_unknown(value: Any) -> str:
    if not value:
        return UNKNOWN
    return value if isinstance(value, str) else str(value)


def _as_count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return int(value)
