"""Tests for the poll loop.

Tests the coordination between functional core and imperative shell.
Uses mocks for the upstream client and station cache, and fake
WebSocket subscribers on a real broadcast hub.
"""

import asyncio
import logging
from unittest.mock import Mock

import pytest
from fastapi.websockets import WebSocketState

from trem_monitor.core.area import AreaStore, MonitoredArea
from trem_monitor.core.config import Config
from trem_monitor.core.errors import NetworkError
from trem_monitor.core.station import parse_station_directory
from trem_monitor.orchestrator import CycleResult, PollLoop
from trem_monitor.shell.broadcast_hub import BroadcastHub
from trem_monitor.shell.upstream_client import FetchResult


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeWebSocket:
    def __init__(self) -> None:
        self.client_state = WebSocketState.CONNECTED
        self.sent: list[dict] = []

    async def accept(self) -> None:
        pass

    async def send_json(self, data: dict) -> None:
        self.sent.append(data)


REALTIME = {
    "time": 1712131089000,
    "station": {
        "S1": {"pga": 5.0, "pgv": 0.1, "i": 1.2, "I": 1},
        "S2": {"pga": 9.9, "pgv": 0.3, "i": 3.1, "I": 3},
    },
}

STATIONS = parse_station_directory({
    "S1": {"info": [{"code": 106, "lat": 25.0, "lon": 121.5}]},
    "S2": {"info": [{"code": 999, "lat": 23.0, "lon": 120.0}]},
})


@pytest.fixture
def config():
    return Config(
        poll_interval_seconds=1.0,
        heartbeat_every=60,
        monitored_areas=[MonitoredArea(code=106, name="A")],
    )


@pytest.fixture
def store(config):
    return AreaStore(config.monitored_areas)


@pytest.fixture
def mock_client():
    client = Mock()
    client.fetch_realtime.return_value = FetchResult(success=True, data=REALTIME)
    return client


@pytest.fixture
def mock_cache():
    cache = Mock()
    cache.get_station_info.return_value = STATIONS
    return cache


@pytest.fixture
def hub(store):
    return BroadcastHub(store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def poll_loop(config, store, mock_client, mock_cache, hub, clock):
    return PollLoop(config, store, mock_client, mock_cache, hub, clock=clock)


@pytest.fixture
def subscriber(hub):
    ws = FakeWebSocket()
    asyncio.run(hub.connect(ws))
    return ws


class TestCycleResult:
    """Tests for CycleResult dataclass."""

    def test_success_when_no_errors(self):
        assert CycleResult(ran=True).success is True

    def test_summary_for_skipped_tick(self):
        assert "Skipped" in CycleResult(ran=False).summary

    def test_summary(self):
        result = CycleResult(ran=True, tick=3, fetched=True, delivered=2)
        assert result.summary == "Tick 3: fetched, 0 areas changed, 2 subscribers updated"


class TestRunCycle:
    """Tests for PollLoop.run_cycle."""

    def test_successful_cycle(self, poll_loop, store, subscriber):
        result = asyncio.run(poll_loop.run_cycle())

        assert result.ran is True
        assert result.tick == 1
        assert result.fetched is True
        assert result.broadcast is True
        assert result.delivered == 1
        assert [c.code for c in result.changed] == [106]
        assert store.get(106).pga == 5.0
        assert store.get(106).last_update is not None
        assert subscriber.sent[-1]["data"]["106"]["intensity"] == 1

    def test_second_identical_cycle_has_no_changes_but_broadcasts(
        self, poll_loop, store, subscriber, clock
    ):
        """The full snapshot is pushed every successful tick."""
        asyncio.run(poll_loop.run_cycle())
        first_update = store.get(106).last_update
        clock.now += 1.0

        result = asyncio.run(poll_loop.run_cycle())

        assert result.changed == []
        assert result.broadcast is True
        assert store.get(106).last_update == first_update
        assert len(subscriber.sent) == 3

    def test_tick_inside_interval_is_dropped(self, poll_loop, mock_client, clock):
        asyncio.run(poll_loop.run_cycle())
        clock.now += 0.5

        result = asyncio.run(poll_loop.run_cycle())

        assert result.ran is False
        assert mock_client.fetch_realtime.call_count == 1
        assert poll_loop.tick_count == 1

    def test_fetch_failure_skips_reconcile_and_broadcast(
        self, poll_loop, mock_client, mock_cache, store, subscriber
    ):
        mock_client.fetch_realtime.return_value = FetchResult(
            success=False, error=NetworkError("refused"),
        )

        result = asyncio.run(poll_loop.run_cycle())

        assert result.fetched is False
        assert result.broadcast is False
        assert result.success is False
        assert mock_cache.get_station_info.call_count == 0
        assert store.get(106).last_update is None
        assert len(subscriber.sent) == 1

    def test_missing_metadata_still_broadcasts(self, poll_loop, mock_cache, store, subscriber):
        mock_cache.get_station_info.return_value = None

        result = asyncio.run(poll_loop.run_cycle())

        assert result.changed == []
        assert result.broadcast is True
        assert "station metadata unavailable" in result.errors[0]
        assert store.get(106).last_update is None

    def test_logs_changes_above_threshold(self, poll_loop, caplog):
        with caplog.at_level(logging.INFO, logger="trem_monitor.orchestrator"):
            asyncio.run(poll_loop.run_cycle())

        assert any("A intensity updated to 1.2" in r.getMessage() for r in caplog.records)

    def test_does_not_log_changes_at_threshold(self, poll_loop, config, caplog):
        config.display_threshold = 1

        with caplog.at_level(logging.INFO, logger="trem_monitor.orchestrator"):
            asyncio.run(poll_loop.run_cycle())

        assert not any("intensity updated" in r.getMessage() for r in caplog.records)


class TestHeartbeat:
    """Every Nth tick forces a refresh."""

    def test_heartbeat_broadcasts_even_when_fetch_fails(
        self, config, store, mock_client, mock_cache, hub, clock, subscriber
    ):
        config.heartbeat_every = 2
        mock_client.fetch_realtime.return_value = FetchResult(
            success=False, error=NetworkError("refused"),
        )
        poll_loop = PollLoop(config, store, mock_client, mock_cache, hub, clock=clock)

        first = asyncio.run(poll_loop.run_cycle())
        clock.now += 1.0
        second = asyncio.run(poll_loop.run_cycle())

        assert first.heartbeat is False
        assert first.broadcast is False
        assert second.heartbeat is True
        assert second.broadcast is True
        assert len(subscriber.sent) == 2

    def test_heartbeat_logs_summary(self, config, store, mock_client, mock_cache, hub, clock, caplog):
        config.heartbeat_every = 1
        poll_loop = PollLoop(config, store, mock_client, mock_cache, hub, clock=clock)

        with caplog.at_level(logging.INFO, logger="trem_monitor.orchestrator"):
            result = asyncio.run(poll_loop.run_cycle())

        assert result.heartbeat is True
        assert result.delivered == 0
        assert any("Area intensity status" in r.getMessage() for r in caplog.records)


class TestRunForever:
    """Tests for PollLoop.run_forever."""

    def _loop(self, config, store, mock_client, mock_cache, hub):
        config.poll_interval_seconds = 0.01
        return PollLoop(config, store, mock_client, mock_cache, hub)

    def test_ticks_until_stopped(self, config, store, mock_client, mock_cache, hub):
        poll_loop = self._loop(config, store, mock_client, mock_cache, hub)

        async def scenario():
            stop_event = asyncio.Event()
            loop = asyncio.get_running_loop()
            calls = []

            def fetch():
                calls.append(1)
                if len(calls) >= 3:
                    loop.call_soon_threadsafe(stop_event.set)
                return FetchResult(success=True, data=REALTIME)

            mock_client.fetch_realtime.side_effect = fetch
            await asyncio.wait_for(poll_loop.run_forever(stop_event), timeout=5)

        asyncio.run(scenario())

        assert poll_loop.tick_count == 3

    def test_survives_failing_cycle(self, config, store, mock_client, mock_cache, hub, caplog):
        poll_loop = self._loop(config, store, mock_client, mock_cache, hub)

        async def scenario():
            stop_event = asyncio.Event()
            loop = asyncio.get_running_loop()
            calls = []

            def fetch():
                calls.append(1)
                if len(calls) == 1:
                    raise RuntimeError("boom")
                loop.call_soon_threadsafe(stop_event.set)
                return FetchResult(success=True, data=REALTIME)

            mock_client.fetch_realtime.side_effect = fetch
            await asyncio.wait_for(poll_loop.run_forever(stop_event), timeout=5)

        with caplog.at_level(logging.ERROR):
            asyncio.run(scenario())

        assert poll_loop.tick_count == 2
        assert any("Unexpected error in poll cycle" in r.getMessage() for r in caplog.records)

    def test_stops_immediately_when_already_set(self, config, store, mock_client, mock_cache, hub):
        poll_loop = self._loop(config, store, mock_client, mock_cache, hub)

        async def scenario():
            stop_event = asyncio.Event()
            stop_event.set()
            await poll_loop.run_forever(stop_event)

        asyncio.run(scenario())

        assert mock_client.fetch_realtime.call_count == 0
