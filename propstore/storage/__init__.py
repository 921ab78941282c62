"""Storage for time-indexed samples.

`allocate` / `allocate_for_timeline` pick a container from a representative
sample; `write`, `read` and `fetch` move samples in and out of its 1-based
slots.
"""

from .containers import BlockStorage, FlatStorage, StorageContainer, StorageLayout
from .allocate import allocate, allocate_for_timeline
from .access import fetch, read, write

__all__ = [
    "BlockStorage",
    "FlatStorage",
    "StorageContainer",
    "StorageLayout",
    "allocate",
    "allocate_for_timeline",
    "fetch",
    "read",
    "write",
]
