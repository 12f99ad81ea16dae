from mapify.utils.exceptions import (
    MapifyError,
    FilterError,
    FilterSyntaxError,
    UnknownFieldError,
    FilterValueError,
    UnsupportedExpression,
    QuerySetError,
    MultipleDocumentsFound,
)
from mapify.utils.pagination import PagedResult
from mapify.utils.settings import SettingsResolver
from mapify.utils.types import (
    Record,
    FilterSpec,
    SortSpec,
    FieldMap,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
)

__all__ = [
    "MapifyError",
    "FilterError",
    "FilterSyntaxError",
    "UnknownFieldError",
    "FilterValueError",
    "UnsupportedExpression",
    "QuerySetError",
    "MultipleDocumentsFound",
    "PagedResult",
    "SettingsResolver",
    "Record",
    "FilterSpec",
    "SortSpec",
    "FieldMap",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
]
