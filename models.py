"""Shared typed models for the storefront relay."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Outbound message keys understood by the companion device.
KEY_APP_INDEX = "APP_INDEX"
KEY_APP_NAME = "APP_NAME"
KEY_APP_AUTHOR = "APP_AUTHOR"
KEY_APP_DESCRIPTION = "APP_DESCRIPTION"
KEY_APP_HEARTS = "APP_HEARTS"
KEY_APP_DAYS_AGO = "APP_DAYS_AGO"
KEY_DATA_COMPLETE = "DATA_COMPLETE"

ITEM_KEYS: tuple[str, ...] = (
    KEY_APP_INDEX,
    KEY_APP_NAME,
    KEY_APP_AUTHOR,
    KEY_APP_DESCRIPTION,
    KEY_APP_HEARTS,
    KEY_APP_DAYS_AGO,
)


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """One raw entry from the catalog `data` array. Every field is optional."""

    title: Any = None
    author: Any = None
    description: Any = None
    hearts: Any = None
    created_at: Any = None

    @classmethod
    def from_payload(cls, payload: Any) -> CatalogItem:
        if not isinstance(payload, dict):
            return cls()
        return cls(
            title=payload.get("title"),
            author=payload.get("author"),
            description=payload.get("description"),
            hearts=payload.get("hearts"),
            created_at=payload.get("created_at"),
        )


@dataclass(frozen=True, slots=True)
class OutboundRecord:
    """Fixed-shape record relayed to the companion device for one catalog item."""

    index: int
    name: str
    author: str
    description: str
    hearts: int
    days_ago: str

    def to_message(self) -> dict[str, Any]:
        return {
            KEY_APP_INDEX: self.index,
            KEY_APP_NAME: self.name,
            KEY_APP_AUTHOR: self.author,
            KEY_APP_DESCRIPTION: self.description,
            KEY_APP_HEARTS: self.hearts,
            KEY_APP_DAYS_AGO: self.days_ago,
        }


def completion_message(success: bool) -> dict[str, int]:
    """Return the end-of-stream signal: 1 after a full relay, 0 on failure."""
    return {KEY_DATA_COMPLETE: 1 if success else 0}
