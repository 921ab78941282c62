"""Create storage for propagation.

```python
storage = allocate_for_timeline(state, tlist)
```

creates storage suitable for recording `state` itself at each point in
`tlist`.

```python
storage = allocate_for_timeline(state, tlist, observables)
```

creates storage suitable for the data generated by `observables` applied to
`state` (see `aggregate`), for each point in `tlist`.

```python
storage = allocate(sample, nt)
```

creates storage for `nt` copies of `sample`: a `BlockStorage` of shape
`(n, nt)` with the sample's dtype if `sample` is a 1-d array or tensor of
length `n`, a `FlatStorage` of length `nt` otherwise.
"""

from __future__ import annotations

import numbers
from typing import Any, Optional

import numpy as np
import torch

from propstore.config import DEFAULT_CONFIG, StorageConfig
from propstore.console import console
from propstore.observables.aggregate import aggregate
from propstore.storage.containers import BlockStorage, FlatStorage, StorageContainer
from propstore.types import FIRST_INDEX, describe, is_vector_like


def _allocate_block(sample: Any, count: int, config: StorageConfig) -> BlockStorage:
    n = sample.shape[0]
    if isinstance(sample, torch.Tensor):
        data = torch.empty(
            (n, count),
            dtype=config.dtype if config.dtype is not None else sample.dtype,
            device=config.device if config.device is not None else sample.device,
        )
    else:
        data = np.empty((n, count), dtype=config.dtype if config.dtype is not None else sample.dtype)
    return BlockStorage(data)


def _allocate_flat(sample: Any, count: int, config: StorageConfig) -> FlatStorage:
    arity = len(sample) if isinstance(sample, tuple) else None
    element_shape = tuple(sample.shape) if isinstance(sample, (np.ndarray, torch.Tensor)) else None
    return FlatStorage(
        slots=[None] * count,
        element_type=type(sample),
        arity=arity,
        element_shape=element_shape,
        copy_samples=config.copy_samples,
    )


def allocate(sample: Any, count: int, config: Optional[StorageConfig] = None) -> StorageContainer:
    """Allocate storage for `count` samples shaped like `sample`.

    Contents are unspecified until written; every slot must be written
    before it is read.
    """
    if isinstance(count, bool) or not isinstance(count, numbers.Integral) or count < 0:
        raise ValueError(f"count must be a non-negative integer, got {count!r}")
    config = config if config is not None else DEFAULT_CONFIG

    if is_vector_like(sample):
        storage: StorageContainer = _allocate_block(sample, int(count), config)
        if config.verbose:
            console.info(
                "Allocated block storage",
                detail=f"rows={storage.rows} count={storage.count} dtype={storage.dtype}",
            )
    else:
        storage = _allocate_flat(sample, int(count), config)
        if config.verbose:
            console.info("Allocated flat storage", detail=f"count={storage.count} sample={describe(sample)}")
    return storage


def allocate_for_timeline(
    sample_or_state: Any,
    tlist: Any,
    observables: Any = None,
    config: Optional[StorageConfig] = None,
) -> StorageContainer:
    """Allocate one slot per point in `tlist`.

    With `observables`, the storage is sized from the sample the observables
    produce for `sample_or_state` at the first time index. This assumes the
    sample's layout does not depend on the time index.
    """
    sample = sample_or_state
    if observables is not None:
        sample = aggregate(observables, tlist, FIRST_INDEX, sample_or_state)
    return allocate(sample, len(tlist), config)
