"""Environment-driven configuration for the storefront relay."""

from __future__ import annotations

import os
from dataclasses import dataclass

from catalog_feed import CATALOG_PAGE_SIZE, REBBLE_API_URL
from transform import DEFAULT_DESCRIPTION_WORDS

# Spacing between outbound sends so the device inbox is not overwhelmed.
MESSAGE_DELAY_MS = 50


@dataclass(frozen=True, slots=True)
class RelayConfig:
    """Settings for one fetch cycle."""

    api_url: str = REBBLE_API_URL
    message_delay_ms: int = MESSAGE_DELAY_MS
    description_max_words: int = DEFAULT_DESCRIPTION_WORDS
    request_timeout_seconds: float | None = None
    webhook_url: str | None = None
    inbox_capacity: int = CATALOG_PAGE_SIZE


def load_config() -> RelayConfig:
    """Build a RelayConfig from environment variables, falling back to defaults.

    Raises:
        ValueError: A numeric variable is malformed or out of range.
    """
    timeout_raw = os.getenv("REQUEST_TIMEOUT_SECONDS", "").strip()
    timeout = _parse_float("REQUEST_TIMEOUT_SECONDS", timeout_raw) if timeout_raw else None

    return RelayConfig(
        api_url=os.getenv("CATALOG_API_URL") or REBBLE_API_URL,
        message_delay_ms=_int_env("MESSAGE_DELAY_MS", MESSAGE_DELAY_MS, minimum=0),
        description_max_words=_int_env("DESCRIPTION_MAX_WORDS", DEFAULT_DESCRIPTION_WORDS, minimum=1),
        request_timeout_seconds=timeout,
        webhook_url=os.getenv("COMPANION_WEBHOOK_URL") or None,
        inbox_capacity=_int_env("INBOX_CAPACITY", CATALOG_PAGE_SIZE, minimum=1),
    )


def _int_env(name: str, default: int, minimum: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _parse_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value
