from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class StorageConfig:
    """Configuration for allocation and recording."""

    # Flat slots receive a copy of array/tensor samples. Without it a driver
    # that mutates its state in place would alias every slot.
    copy_samples: bool = True

    # ObservableCollection fails with SampleLayoutDrift when a later sample
    # changes layout (vector vs tuple) or element type.
    strict_layout: bool = True

    # Block storage dtype / device. None follows the sample.
    dtype: Any = None
    device: str | None = None

    # Report allocations through the console.
    verbose: bool = False


DEFAULT_CONFIG = StorageConfig()
