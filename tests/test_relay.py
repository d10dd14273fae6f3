"""Tests for the fetch cycle (relay.FetchCycle) driven by a fake clock."""

from __future__ import annotations

import json
from datetime import date
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
import requests

from catalog_feed import CatalogHTTPError
from channels import ChannelError
from config import RelayConfig
from models import CatalogItem
from relay import CycleState, FetchCycle
from scheduler import MessageScheduler

TODAY = date(2026, 2, 22)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


class RecordingChannel:
    """Capture (elapsed_ms, message) for each send; optionally fail some indexes."""

    def __init__(self, clock: FakeClock, fail_indexes: tuple[int, ...] = ()) -> None:
        self.clock = clock
        self.fail_indexes = fail_indexes
        self.sent: list[tuple[int, dict[str, Any]]] = []

    def send(self, message, on_success=None, on_failure=None) -> None:
        self.sent.append((round(self.clock.now * 1000), dict(message)))
        if message.get("APP_INDEX") in self.fail_indexes:
            if on_failure is not None:
                on_failure(ChannelError("inbox full"))
        elif on_success is not None:
            on_success()


def _mock_resp(status_code: int = 200, body: str = "") -> MagicMock:
    mock = MagicMock()
    mock.status_code = status_code
    mock.text = body
    return mock


def _cycle(clock: FakeClock, channel: Any, **kwargs: Any) -> FetchCycle:
    return FetchCycle(
        channel,
        scheduler=MessageScheduler(timefunc=clock.time, delayfunc=clock.sleep),
        today=TODAY,
        **kwargs,
    )


def _three_items_body() -> str:
    return json.dumps(
        {
            "data": [
                {"title": "One", "author": "A", "description": "first", "hearts": 3, "created_at": "2026-02-22"},
                {"title": "Two", "author": "B", "description": "second", "hearts": 2, "created_at": "2026-02-21"},
                {"title": "Three", "author": "C", "description": "third", "hearts": 1, "created_at": "2026-02-01"},
            ]
        }
    )


def test_three_items_produce_four_spaced_sends() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)

    with patch("catalog_feed.requests.get", return_value=_mock_resp(200, _three_items_body())):
        ok = _cycle(clock, channel).run()

    assert ok is True
    assert [ms for ms, _ in channel.sent] == [0, 50, 100, 200]
    assert [msg.get("APP_INDEX") for _, msg in channel.sent[:3]] == [0, 1, 2]
    assert channel.sent[3][1] == {"DATA_COMPLETE": 1}


def test_item_messages_carry_transformed_fields() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)

    with patch("catalog_feed.requests.get", return_value=_mock_resp(200, _three_items_body())):
        _cycle(clock, channel).run()

    assert channel.sent[1][1] == {
        "APP_INDEX": 1,
        "APP_NAME": "Two",
        "APP_AUTHOR": "B",
        "APP_DESCRIPTION": "second",
        "APP_HEARTS": 2,
        "APP_DAYS_AGO": "Yesterday",
    }
    assert channel.sent[0][1]["APP_DAYS_AGO"] == "Today"
    assert channel.sent[2][1]["APP_DAYS_AGO"] == "21 days ago"


def test_missing_fields_get_defaults_in_relayed_record() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)

    with patch("catalog_feed.requests.get", return_value=_mock_resp(200, '{"data": [{}]}')):
        _cycle(clock, channel).run()

    assert channel.sent[0][1] == {
        "APP_INDEX": 0,
        "APP_NAME": "Unknown",
        "APP_AUTHOR": "Unknown",
        "APP_DESCRIPTION": "",
        "APP_HEARTS": 0,
        "APP_DAYS_AGO": "Unknown",
    }


def test_http_404_sends_single_failure_signal() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)

    with patch("catalog_feed.requests.get", return_value=_mock_resp(404, "Not Found")):
        cycle = _cycle(clock, channel)
        ok = cycle.run()

    assert ok is False
    assert channel.sent == [(0, {"DATA_COMPLETE": 0})]
    assert cycle.state is CycleState.SIGNALED
    assert cycle.scheduler.pending == 0


def test_malformed_json_matches_http_failure_signal() -> None:
    clock_a, clock_b = FakeClock(), FakeClock()
    http_channel = RecordingChannel(clock_a)
    json_channel = RecordingChannel(clock_b)

    with patch("catalog_feed.requests.get", return_value=_mock_resp(500, "")):
        _cycle(clock_a, http_channel).run()
    with patch("catalog_feed.requests.get", return_value=_mock_resp(200, "{not json")):
        _cycle(clock_b, json_channel).run()

    assert json_channel.sent == http_channel.sent == [(0, {"DATA_COMPLETE": 0})]


def test_deeply_nested_body_is_a_parse_failure() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)

    with patch("catalog_feed.requests.get", return_value=_mock_resp(200, "[" * 200000)):
        cycle = _cycle(clock, channel)
        assert cycle.run() is False

    assert channel.sent == [(0, {"DATA_COMPLETE": 0})]
    assert cycle.state is CycleState.SIGNALED


def test_missing_data_key_is_a_failure() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)

    with patch("catalog_feed.requests.get", return_value=_mock_resp(200, '{"links": {}}')):
        assert _cycle(clock, channel).run() is False

    assert channel.sent == [(0, {"DATA_COMPLETE": 0})]


def test_network_error_sends_failure_signal() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)

    with patch("catalog_feed.requests.get", side_effect=requests.ConnectionError("unreachable")):
        assert _cycle(clock, channel).run() is False

    assert channel.sent == [(0, {"DATA_COMPLETE": 0})]


def test_empty_catalog_still_signals_completion() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)

    with patch("catalog_feed.requests.get", return_value=_mock_resp(200, '{"data": []}')):
        assert _cycle(clock, channel).run() is True

    assert channel.sent == [(50, {"DATA_COMPLETE": 1})]


def test_send_failure_does_not_stop_remaining_sends() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock, fail_indexes=(1,))

    with patch("catalog_feed.requests.get", return_value=_mock_resp(200, _three_items_body())):
        cycle = _cycle(clock, channel)
        assert cycle.run() is True

    assert len(channel.sent) == 4
    assert channel.sent[-1][1] == {"DATA_COMPLETE": 1}
    assert cycle.failed_count == 1
    assert cycle.sent_count == 3


def test_raising_channel_is_contained() -> None:
    clock = FakeClock()
    channel = MagicMock()
    channel.send.side_effect = [RuntimeError("boom"), None]

    items = [CatalogItem(title="Only")]
    cycle = _cycle(clock, channel, fetcher=lambda url, timeout=None: items)
    assert cycle.run() is True

    assert channel.send.call_count == 2
    assert cycle.failed_count == 1
    assert cycle.state is CycleState.SIGNALED


def test_custom_delay_and_url_come_from_config() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)
    fetcher = MagicMock(return_value=[CatalogItem(title="a"), CatalogItem(title="b")])
    config = RelayConfig(api_url="https://example.test/apps", message_delay_ms=200, request_timeout_seconds=3.0)

    _cycle(clock, channel, config=config, fetcher=fetcher).run()

    fetcher.assert_called_once_with("https://example.test/apps", timeout=3.0)
    assert [ms for ms, _ in channel.sent] == [0, 200, 600]


def test_state_transitions_through_streaming() -> None:
    clock = FakeClock()
    channel = RecordingChannel(clock)
    cycle = _cycle(clock, channel, fetcher=lambda url, timeout=None: [CatalogItem()])

    assert cycle.state is CycleState.IDLE
    assert cycle.start() is True
    assert cycle.state is CycleState.STREAMING
    assert channel.sent == []

    cycle.scheduler.run()
    assert cycle.state is CycleState.SIGNALED


def test_failed_cycle_passes_through_failed_state() -> None:
    clock = FakeClock()
    seen: list[CycleState] = []
    cycle: FetchCycle

    class StateChannel(RecordingChannel):
        def send(self, message, on_success=None, on_failure=None) -> None:
            seen.append(cycle.state)
            super().send(message, on_success, on_failure)

    def failing_fetcher(url: str, timeout: float | None = None) -> list[CatalogItem]:
        seen.append(cycle.state)
        raise CatalogHTTPError(404)

    cycle = _cycle(clock, StateChannel(clock), fetcher=failing_fetcher)
    cycle.run()

    assert seen == [CycleState.FETCHING, CycleState.FAILED]
    assert cycle.state is CycleState.SIGNALED


def test_cycle_runs_only_once() -> None:
    clock = FakeClock()
    cycle = _cycle(clock, RecordingChannel(clock), fetcher=lambda url, timeout=None: [])
    cycle.run()

    with pytest.raises(RuntimeError, match="already started"):
        cycle.run()
