from mapify.extensions import aio
from mapify.extensions.sync import (
    find_by_id,
    find_one,
    find_single,
    find_list,
    get_paged_list,
    get_paged_result,
)

__all__ = [
    "aio",
    "find_by_id",
    "find_one",
    "find_single",
    "find_list",
    "get_paged_list",
    "get_paged_result",
]
