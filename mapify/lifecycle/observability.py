from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator

logger = logging.getLogger("mapify")


@dataclass(frozen=True)
class QueryEvent:
    """Represents a single executed query for tracing."""

    operation: str
    source: str
    target: str = ""
    filter: str | None = None
    duration_ms: float = 0.0
    result_count: int | None = None


class _ObservabilityState:
    """Global mutable state for observability."""

    def __init__(self) -> None:
        self.enabled: bool = False
        self.slow_query_threshold_ms: float = 100.0
        self.listeners: list[Callable[[QueryEvent], Any]] = []
        self.events: list[QueryEvent] = []
        self.capture_events: bool = False


_state = _ObservabilityState()


def enable_tracing(slow_query_ms: float = 100.0, capture_events: bool = False) -> None:
    """Enable query tracing and observability."""
    _state.enabled = True
    _state.slow_query_threshold_ms = slow_query_ms
    _state.capture_events = capture_events


def disable_tracing() -> None:
    """Disable tracing and clear all state."""
    _state.enabled = False
    _state.slow_query_threshold_ms = 100.0
    _state.listeners.clear()
    _state.events.clear()
    _state.capture_events = False


def is_tracing_enabled() -> bool:
    return _state.enabled


def get_events() -> list[QueryEvent]:
    """Return captured events."""
    return list(_state.events)


def clear_events() -> None:
    _state.events.clear()


def add_listener(callback: Callable[[QueryEvent], Any]) -> None:
    """Register a listener that receives a QueryEvent for each executed query."""
    _state.listeners.append(callback)


def remove_listener(callback: Callable[[QueryEvent], Any]) -> None:
    _state.listeners.remove(callback)


def emit_event(event: QueryEvent) -> None:
    """Emit a query event: store, log slow queries, notify listeners."""
    if not _state.enabled:
        return

    if _state.capture_events:
        _state.events.append(event)

    if event.duration_ms > _state.slow_query_threshold_ms:
        logger.warning(
            "Slow query: %s on %s (%s) took %.1fms (threshold: %.1fms)",
            event.operation,
            event.source,
            event.target,
            event.duration_ms,
            _state.slow_query_threshold_ms,
        )

    for listener in _state.listeners:
        listener(event)

    _try_emit_otel_span(event)


def _try_emit_otel_span(event: QueryEvent) -> None:
    """Attempt to emit an OpenTelemetry span if the library is available."""
    try:
        from opentelemetry import trace
    except ImportError:
        return

    tracer = trace.get_tracer("mapify")
    with tracer.start_as_current_span(f"mapify.{event.operation}") as span:
        span.set_attribute("db.collection", event.source)
        span.set_attribute("db.operation", event.operation)
        span.set_attribute("mapify.target", event.target)
        if event.duration_ms:
            span.set_attribute("db.duration_ms", event.duration_ms)


def _finish(operation: str, source: str, target: str, filter: str | None, start: float, ctx: dict[str, Any]) -> None:
    emit_event(
        QueryEvent(
            operation=operation,
            source=source,
            target=target,
            filter=filter,
            duration_ms=(time.perf_counter() - start) * 1000,
            result_count=ctx.get("result_count"),
        )
    )


@contextmanager
def track_query_sync(operation: str, source: str, target: str = "", filter: str | None = None) -> Iterator[dict[str, Any]]:
    """Context manager that times a blocking query and emits a QueryEvent."""
    if not _state.enabled:
        yield {"result_count": None}
        return

    start = time.perf_counter()
    ctx: dict[str, Any] = {"result_count": None}
    try:
        yield ctx
    finally:
        _finish(operation, source, target, filter, start, ctx)


@asynccontextmanager
async def track_query(operation: str, source: str, target: str = "", filter: str | None = None):
    """Async context manager that times a query and emits a QueryEvent."""
    if not _state.enabled:
        yield {"result_count": None}
        return

    start = time.perf_counter()
    ctx: dict[str, Any] = {"result_count": None}
    try:
        yield ctx
    finally:
        _finish(operation, source, target, filter, start, ctx)
