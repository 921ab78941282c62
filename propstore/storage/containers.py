"""Storage containers.

Two layouts, chosen once at allocation:

- `FlatStorage`: one opaque sample per slot (scalars, tuples, matrices)
- `BlockStorage`: a `(rows, count)` numpy array or torch tensor holding one
  vector sample per column

Slots are addressed with 1-based indices `1..count`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import numbers
from typing import Any, ClassVar, Optional, Union

import numpy as np
import torch

from propstore.errors import IndexOutOfRange
from propstore.types import FIRST_INDEX


class StorageLayout(Enum):
    FLAT = "flat"
    BLOCK = "block"


def _position(index: Any, count: int) -> int:
    """Map a 1-based slot index to a 0-based position."""
    if isinstance(index, bool) or not isinstance(index, numbers.Integral):
        raise TypeError(f"slot index must be an integer, got {type(index).__name__}")
    if not FIRST_INDEX <= index < FIRST_INDEX + count:
        raise IndexOutOfRange(index, count)
    return int(index) - FIRST_INDEX


@dataclass(eq=False)
class FlatStorage:
    """One sample per slot, all of `element_type`.

    `arity` is the tuple length for tuple samples, `element_shape` the array
    shape for array samples; both are None otherwise. Unwritten slots hold
    None.
    """

    slots: list
    element_type: type
    arity: Optional[int] = None
    element_shape: Optional[tuple] = None
    copy_samples: bool = True

    layout: ClassVar[StorageLayout] = StorageLayout.FLAT

    @property
    def count(self) -> int:
        return len(self.slots)

    def __len__(self) -> int:
        return self.count

    def position(self, index: Any) -> int:
        return _position(index, self.count)


@dataclass(eq=False)
class BlockStorage:
    """Vector samples stored column-wise in a `(rows, count)` array."""

    data: Union[np.ndarray, torch.Tensor]

    layout: ClassVar[StorageLayout] = StorageLayout.BLOCK

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    @property
    def count(self) -> int:
        return int(self.data.shape[1])

    @property
    def dtype(self) -> Any:
        return self.data.dtype

    @property
    def is_tensor(self) -> bool:
        return isinstance(self.data, torch.Tensor)

    def __len__(self) -> int:
        return self.count

    def position(self, index: Any) -> int:
        return _position(index, self.count)


StorageContainer = Union[FlatStorage, BlockStorage]
