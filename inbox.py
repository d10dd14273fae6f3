"""Receiving side of the relay: the companion device's app inbox."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from catalog_feed import CATALOG_PAGE_SIZE
from channels import FailureCallback, SuccessCallback
from models import (
    ITEM_KEYS,
    KEY_APP_AUTHOR,
    KEY_APP_DAYS_AGO,
    KEY_APP_DESCRIPTION,
    KEY_APP_HEARTS,
    KEY_APP_INDEX,
    KEY_APP_NAME,
    KEY_DATA_COMPLETE,
)

LOGGER = logging.getLogger(__name__)

# Device-side buffer sizes, terminator excluded.
NAME_MAX_CHARS = 63
AUTHOR_MAX_CHARS = 63
DESCRIPTION_MAX_CHARS = 127

_DAYS_AGO_RE = re.compile(r"^(-?\d+) days ago$")


@dataclass(slots=True)
class StoredApp:
    name: str
    author: str
    description: str
    hearts: int
    days_ago: str

    @property
    def days(self) -> int | None:
        """Whole days since release, or None when the text carries no count."""
        return parse_days_ago(self.days_ago)


@dataclass(frozen=True, slots=True)
class GlanceSlice:
    message: str
    expires_at: datetime


class CompanionInbox:
    """Collect relayed records into fixed slots, the way the watchapp does.

    Doubles as an in-process MessageChannel so a fetch cycle can be relayed
    without a device attached.
    """

    def __init__(self, capacity: int = CATALOG_PAGE_SIZE) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self.slots: list[StoredApp | None] = [None] * capacity
        self.received = 0
        self.loaded = False
        self.failed = False

    def send(
        self,
        message: dict[str, Any],
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None:
        self.receive(message)
        if on_success is not None:
            on_success()

    def receive(self, message: dict[str, Any]) -> None:
        if KEY_DATA_COMPLETE in message:
            if message[KEY_DATA_COMPLETE] == 1:
                self.loaded = True
                LOGGER.info("All apps received (%s/%s)", self.received, self.capacity)
            else:
                self.failed = True
                LOGGER.warning("Relay reported a failed fetch")
            return

        if not all(key in message for key in ITEM_KEYS):
            LOGGER.debug("Ignoring incomplete record: %s", sorted(message))
            return

        index = message[KEY_APP_INDEX]
        if not isinstance(index, int) or not 0 <= index < self.capacity:
            LOGGER.debug("Ignoring record with out-of-range index %s", index)
            return

        self.slots[index] = StoredApp(
            name=str(message[KEY_APP_NAME])[:NAME_MAX_CHARS],
            author=str(message[KEY_APP_AUTHOR])[:AUTHOR_MAX_CHARS],
            description=str(message[KEY_APP_DESCRIPTION])[:DESCRIPTION_MAX_CHARS],
            hearts=int(message[KEY_APP_HEARTS]),
            days_ago=str(message[KEY_APP_DAYS_AGO]),
        )
        self.received += 1
        LOGGER.info("Received app %s: %s", index, self.slots[index].name)

    def progress(self) -> int:
        """Loading percentage, counted per received record."""
        return self.received * 100 // self.capacity

    def apps(self) -> list[StoredApp]:
        return [app for app in self.slots if app is not None]

    def new_this_week(self) -> int:
        count = 0
        for app in self.apps():
            days = app.days
            if days is not None and 0 <= days <= 6:
                count += 1
        return count

    def glance_text(self) -> str:
        count = self.new_this_week()
        if count == 1:
            return "1 new app this week"
        return f"{count} new apps this week"

    def glance(self, now: datetime | None = None) -> GlanceSlice | None:
        """Launcher summary for a fully loaded inbox; None until loading completes."""
        if not self.loaded:
            return None
        return GlanceSlice(message=self.glance_text(), expires_at=glance_expiration(now or datetime.now()))


def parse_days_ago(text: str) -> int | None:
    """Invert the relay's recency text back to a day count."""
    if text == "Today":
        return 0
    if text == "Yesterday":
        return 1
    match = _DAYS_AGO_RE.match(text)
    return int(match.group(1)) if match else None


def glance_expiration(now: datetime) -> datetime:
    """End of the coming Sunday (23:59:59); on a Sunday, the following one."""
    days_until_sunday = (6 - now.weekday()) % 7 or 7
    end_of_day = now.replace(hour=23, minute=59, second=59, microsecond=0)
    return end_of_day + timedelta(days=days_until_sunday)
