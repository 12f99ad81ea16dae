from typing import Any, TypeVar

# Type aliases for better clarity
Record = Any  # dict-like document or attribute object
FilterSpec = dict[str, Any]
SortSpec = list[tuple[str, int]]
FieldMap = dict[str, str]

# Generic type variable for projected targets
T = TypeVar("T")

# Default page size used when callers leave it open
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
