"""Outbound channels that carry relay messages to the companion device."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Protocol

import requests

LOGGER = logging.getLogger(__name__)

SuccessCallback = Callable[[], None]
FailureCallback = Callable[[Exception], None]


class ChannelError(RuntimeError):
    """A message could not be delivered over the outbound channel."""


class MessageChannel(Protocol):
    """Send primitive provided by the companion host.

    Delivery outcome is reported only through the callbacks. Implementations
    must not raise on delivery failure.
    """

    def send(
        self,
        message: dict[str, Any],
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None: ...


class LoggingChannel:
    """Dry-run channel: logs every message and reports it as delivered."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    def send(
        self,
        message: dict[str, Any],
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None:
        self.sent.append(dict(message))
        LOGGER.info("[dry-run] Would send: %s", json.dumps(message, sort_keys=True))
        if on_success is not None:
            on_success()


class WebhookChannel:
    """POST each message as JSON to a companion bridge endpoint. No retries."""

    def __init__(self, url: str, timeout: float | None = None) -> None:
        if not url:
            raise ValueError("WebhookChannel requires a URL")
        self.url = url
        self.timeout = timeout

    def send(
        self,
        message: dict[str, Any],
        on_success: SuccessCallback | None = None,
        on_failure: FailureCallback | None = None,
    ) -> None:
        try:
            response = requests.post(self.url, json=message, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            error = ChannelError(_describe_failure(exc))
            LOGGER.debug("Webhook delivery to %s failed: %s", self.url, error)
            if on_failure is not None:
                on_failure(error)
            return

        if on_success is not None:
            on_success()


def _describe_failure(exc: requests.RequestException) -> str:
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        try:
            detail = json.dumps(exc.response.json())
        except ValueError:
            detail = exc.response.text
        return f"{exc} {detail}".strip()
    return str(exc)
