from mapify.core import (
    QuerySet,
    AsyncQuerySet,
    as_queryset,
    as_async_queryset,
    MemorySource,
    MongoSource,
    AsyncMongoSource,
)
from mapify.extensions import (
    aio,
    find_by_id,
    find_one,
    find_single,
    find_list,
    get_paged_list,
    get_paged_result,
)
from mapify.fields import PyObjectId
from mapify.lifecycle import (
    enable_tracing,
    disable_tracing,
    QueryEvent,
    add_listener,
)
from mapify.query import (
    F,
    TextFilter,
    ExpressionFilter,
    TextOrder,
    KeyOrder,
    parse_filter,
    parse_order,
)
from mapify.utils import (
    MapifyError,
    FilterError,
    FilterSyntaxError,
    UnknownFieldError,
    FilterValueError,
    UnsupportedExpression,
    QuerySetError,
    MultipleDocumentsFound,
    PagedResult,
)

__all__ = [
    # Core
    "QuerySet",
    "AsyncQuerySet",
    "as_queryset",
    "as_async_queryset",
    "MemorySource",
    "MongoSource",
    "AsyncMongoSource",
    # Helpers
    "aio",
    "find_by_id",
    "find_one",
    "find_single",
    "find_list",
    "get_paged_list",
    "get_paged_result",
    # Fields
    "PyObjectId",
    # Lifecycle
    "enable_tracing",
    "disable_tracing",
    "QueryEvent",
    "add_listener",
    # Query
    "F",
    "TextFilter",
    "ExpressionFilter",
    "TextOrder",
    "KeyOrder",
    "parse_filter",
    "parse_order",
    # Utils
    "MapifyError",
    "FilterError",
    "FilterSyntaxError",
    "UnknownFieldError",
    "FilterValueError",
    "UnsupportedExpression",
    "QuerySetError",
    "MultipleDocumentsFound",
    "PagedResult",
]
