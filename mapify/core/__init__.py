from mapify.core.queryset import QuerySet, AsyncQuerySet, as_queryset, as_async_queryset
from mapify.core.sources import QueryPlan, MemorySource, MongoSource, AsyncMongoSource
from mapify.core.projection import project, field_map, source_path, mongo_projection, to_source_record

__all__ = [
    "QuerySet",
    "AsyncQuerySet",
    "as_queryset",
    "as_async_queryset",
    "QueryPlan",
    "MemorySource",
    "MongoSource",
    "AsyncMongoSource",
    "project",
    "field_map",
    "source_path",
    "mongo_projection",
    "to_source_record",
]
