from mapify.lifecycle.observability import (
    enable_tracing,
    disable_tracing,
    is_tracing_enabled,
    QueryEvent,
    add_listener,
    remove_listener,
    get_events,
    clear_events,
    emit_event,
    track_query,
    track_query_sync,
)

__all__ = [
    "enable_tracing",
    "disable_tracing",
    "is_tracing_enabled",
    "QueryEvent",
    "add_listener",
    "remove_listener",
    "get_events",
    "clear_events",
    "emit_event",
    "track_query",
    "track_query_sync",
]
