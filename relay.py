"""One fetch cycle: fetch the catalog, transform items, relay them with spacing."""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any, Callable

from catalog_feed import CatalogError, fetch_catalog
from channels import MessageChannel
from config import RelayConfig
from models import CatalogItem, completion_message
from scheduler import MessageScheduler
from transform import to_outbound_record

LOGGER = logging.getLogger(__name__)

Fetcher = Callable[..., list[CatalogItem]]


class CycleState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FAILED = "failed"
    SUCCEEDED = "succeeded"
    STREAMING = "streaming"
    SIGNALED = "signaled"


class FetchCycle:
    """Relay one page of the catalog to the companion channel.

    Item sends go out at `index * message_delay_ms`; the completion signal
    follows at `(count + 1) * message_delay_ms`. Any fetch failure skips the
    items and sends a single failure signal immediately. A cycle runs once.
    """

    def __init__(
        self,
        channel: MessageChannel,
        config: RelayConfig | None = None,
        scheduler: MessageScheduler | None = None,
        fetcher: Fetcher | None = None,
        today: date | None = None,
    ) -> None:
        self.channel = channel
        self.config = config or RelayConfig()
        self.scheduler = scheduler or MessageScheduler()
        self.state = CycleState.IDLE
        self.sent_count = 0
        self.failed_count = 0
        self._fetcher = fetcher or fetch_catalog
        self._today = today

    def start(self) -> bool:
        """Fetch and schedule every send. Returns False when the cycle failed."""
        if self.state is not CycleState.IDLE:
            raise RuntimeError(f"Fetch cycle already started (state={self.state.value})")

        self.state = CycleState.FETCHING
        try:
            items = self._fetcher(
                self.config.api_url,
                timeout=self.config.request_timeout_seconds,
            )
        except CatalogError as exc:
            self.state = CycleState.FAILED
            LOGGER.warning("Fetch cycle failed: %s", exc)
            self._deliver(completion_message(False), "failure signal")
            self.state = CycleState.SIGNALED
            return False

        self.state = CycleState.SUCCEEDED
        delay_ms = self.config.message_delay_ms
        for index, item in enumerate(items):
            self.scheduler.call_later(index * delay_ms, self._send_item, index, item)
        self.scheduler.call_later((len(items) + 1) * delay_ms, self._send_complete)
        self.state = CycleState.STREAMING
        LOGGER.info("Scheduled %s app sends at %sms spacing", len(items), delay_ms)
        return True

    def run(self) -> bool:
        """Start the cycle and drain the scheduler until the final signal."""
        ok = self.start()
        self.scheduler.run()
        return ok

    def _send_item(self, index: int, item: CatalogItem) -> None:
        record = to_outbound_record(
            item,
            index,
            max_words=self.config.description_max_words,
            today=self._today,
        )
        LOGGER.info("Sending app %s: %s", index, record.name)
        self._deliver(record.to_message(), f"app {index}")

    def _send_complete(self) -> None:
        self._deliver(completion_message(True), "data complete signal")
        self.state = CycleState.SIGNALED

    def _deliver(self, message: dict[str, Any], label: str) -> None:
        def on_success() -> None:
            self.sent_count += 1
            LOGGER.info("Sent %s successfully", label)

        def on_failure(error: Exception) -> None:
            self.failed_count += 1
            LOGGER.warning("Failed to send %s: %s", label, error)

        try:
            self.channel.send(message, on_success, on_failure)
        except Exception as exc:  # broad so one bad send cannot stop the queue
            on_failure(exc)
