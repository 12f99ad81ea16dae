import logging

import pytest
from pydantic import BaseModel

from mapify import add_listener, aio, enable_tracing, find_list, find_one
from mapify.lifecycle import (
    QueryEvent,
    clear_events,
    disable_tracing,
    emit_event,
    get_events,
    is_tracing_enabled,
    remove_listener,
)


class Metric(BaseModel):
    name: str
    value: float

    class Settings:
        trace_name = "metrics"


ROWS = [{"name": "cpu", "value": 0.5}, {"name": "mem", "value": 0.9}]


class TestTracingState:
    def test_disabled_by_default(self):
        assert not is_tracing_enabled()
        find_list(ROWS, Metric)
        assert get_events() == []

    def test_enable_and_disable(self):
        enable_tracing(capture_events=True)
        assert is_tracing_enabled()
        find_list(ROWS, Metric)
        assert len(get_events()) == 1
        disable_tracing()
        assert not is_tracing_enabled()
        assert get_events() == []

    def test_clear_events(self):
        enable_tracing(capture_events=True)
        find_list(ROWS, Metric)
        clear_events()
        assert get_events() == []


class TestQueryEvents:
    def test_find_event(self):
        enable_tracing(capture_events=True)
        find_list(ROWS, Metric, "value > 0.6")
        (event,) = get_events()
        assert event.operation == "find"
        assert event.source == "memory"
        assert event.target == "metrics"
        assert event.filter == "value > 0.6"
        assert event.result_count == 1
        assert event.duration_ms >= 0

    def test_find_one_limits_to_one(self):
        enable_tracing(capture_events=True)
        find_one(ROWS, Metric, None)
        assert get_events()[0].result_count == 1

    async def test_async_count_and_find(self):
        enable_tracing(capture_events=True)
        await aio.get_paged_list(ROWS, Metric, 1, 1)
        assert [e.operation for e in get_events()] == ["count", "find"]
        assert [e.result_count for e in get_events()] == [2, 1]

    def test_listener(self):
        received: list[QueryEvent] = []
        enable_tracing()
        add_listener(received.append)
        find_list(ROWS, Metric)
        assert len(received) == 1
        remove_listener(received.append)
        find_list(ROWS, Metric)
        assert len(received) == 1

    def test_events_not_captured_without_flag(self):
        received: list[QueryEvent] = []
        enable_tracing()
        add_listener(received.append)
        find_list(ROWS, Metric)
        assert get_events() == []
        assert received

    def test_failed_query_still_emits(self):
        enable_tracing(capture_events=True)
        with pytest.raises(AttributeError):
            find_list(ROWS, Metric, lambda m: m.missing)
        (event,) = get_events()
        assert event.result_count is None


class TestSlowQueries:
    def test_slow_query_warning(self, caplog):
        enable_tracing(slow_query_ms=5)
        with caplog.at_level(logging.WARNING, logger="mapify"):
            emit_event(QueryEvent(operation="find", source="orders", target="Order", duration_ms=12.5))
        assert "Slow query" in caplog.text
        assert "orders" in caplog.text

    def test_fast_query_is_quiet(self, caplog):
        enable_tracing(slow_query_ms=50)
        with caplog.at_level(logging.WARNING, logger="mapify"):
            emit_event(QueryEvent(operation="find", source="orders", duration_ms=1.0))
        assert "Slow query" not in caplog.text
