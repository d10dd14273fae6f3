"""Rebble app catalog ingestion helpers."""

from __future__ import annotations

import json
import logging
from typing import Any

import requests

from models import CatalogItem

# First page of the public Rebble app store collection, every platform.
CATALOG_PAGE_SIZE = 10
REBBLE_API_URL = (
    "https://appstore-api.rebble.io/api/v1/apps/collection/all/apps"
    f"?platform=all&offset=0&limit={CATALOG_PAGE_SIZE}"
)

LOGGER = logging.getLogger(__name__)


class CatalogError(RuntimeError):
    """A fetch cycle could not produce catalog items."""


class CatalogHTTPError(CatalogError):
    """The catalog endpoint answered with a non-200 status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP error: {status_code}")
        self.status_code = status_code


class CatalogParseError(CatalogError):
    """The catalog body was not the expected JSON document."""


class CatalogNetworkError(CatalogError):
    """No response was received from the catalog endpoint."""


def fetch_catalog(url: str = REBBLE_API_URL, timeout: float | None = None) -> list[CatalogItem]:
    """Issue one GET to the catalog endpoint and return its items in order.

    Args:
        url: Catalog endpoint; defaults to the first Rebble page.
        timeout: Optional request timeout in seconds. None waits indefinitely.

    Raises:
        CatalogNetworkError: The request failed before any response arrived.
        CatalogHTTPError: The endpoint answered with a status other than 200.
        CatalogParseError: The body is not a JSON object with a `data` list.
    """
    LOGGER.info("Fetching apps from %s", url)
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise CatalogNetworkError(f"Network error occurred: {exc}") from exc

    return parse_catalog_response(response.status_code, response.text)


def parse_catalog_response(status_code: int, body: str) -> list[CatalogItem]:
    """Validate a raw catalog response and parse its `data` array."""
    if status_code != 200:
        raise CatalogHTTPError(status_code)

    try:
        payload = json.loads(body)
    except (TypeError, ValueError, RecursionError) as exc:
        raise CatalogParseError(f"Error parsing JSON: {exc}") from exc

    items = _parse_catalog_payload(payload)
    LOGGER.info("Received %s apps", len(items))
    return items


def _parse_catalog_payload(payload: Any) -> list[CatalogItem]:
    if not isinstance(payload, dict):
        raise CatalogParseError("Unexpected catalog payload shape: expected an object")

    data = payload.get("data")
    if not isinstance(data, list):
        raise CatalogParseError("Unexpected catalog payload shape: missing 'data' list")

    return [CatalogItem.from_payload(entry) for entry in data]
