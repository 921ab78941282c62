"""Place data into storage and get it back out.

`write(storage, i, data)` corresponds roughly to `storage[i] = data`, but
each container decides how a slot is stored: `FlatStorage` replaces the slot
wholesale, `BlockStorage` copies the vector into column `i`. `read` is the
in-place inverse; `fetch` returns a fresh copy.

Every check runs before the container is touched, so a failed `write`
leaves all slots as they were.
"""

from __future__ import annotations

from collections.abc import MutableSequence
from typing import Any

import numpy as np
import torch

from propstore.errors import ShapeMismatch
from propstore.storage.containers import BlockStorage, FlatStorage, StorageContainer
from propstore.types import NUMERIC_TYPES, copy_value, describe, is_numeric, is_vector_like, to_numpy


def _check_container(storage: Any) -> None:
    if not isinstance(storage, (FlatStorage, BlockStorage)):
        raise TypeError(
            f"storage must be a FlatStorage or BlockStorage created by allocate(), "
            f"got {type(storage).__name__}"
        )


# =============================================================================
# Write
# =============================================================================

def _coerce_flat(storage: FlatStorage, sample: Any) -> Any:
    """Return the value to store in a flat slot, or raise ShapeMismatch."""
    expected = storage.element_type
    if isinstance(sample, expected):
        if storage.arity is not None and len(sample) != storage.arity:
            raise ShapeMismatch(
                f"tuple sample of length {len(sample)} does not fit slots of length {storage.arity}",
                expected=storage.arity,
                got=len(sample),
            )
        if storage.element_shape is not None and tuple(sample.shape) != storage.element_shape:
            raise ShapeMismatch(
                f"array sample of shape {tuple(sample.shape)} does not fit slots of shape "
                f"{storage.element_shape}",
                expected=storage.element_shape,
                got=tuple(sample.shape),
            )
        return copy_value(sample) if storage.copy_samples else sample
    if issubclass(expected, NUMERIC_TYPES) and is_numeric(sample):
        # Scalar conversion within one kind, e.g. a Python float into float64
        # slots. Complex into real or float into int is refused.
        if np.can_cast(np.asarray(sample).dtype, np.dtype(expected), casting="same_kind"):
            return expected(sample)
    raise ShapeMismatch(
        f"cannot store {describe(sample)} in flat storage of {expected.__name__}",
        expected=expected,
        got=type(sample),
    )


def _check_block_sample(storage: BlockStorage, sample: Any) -> None:
    if not is_vector_like(sample):
        raise ShapeMismatch(
            f"block storage needs a 1-d vector sample, got {describe(sample)}",
            expected=storage.rows,
            got=describe(sample),
        )
    n = sample.shape[0]
    if n != storage.rows:
        raise ShapeMismatch(
            f"vector sample of length {n} does not match block storage with {storage.rows} rows",
            expected=storage.rows,
            got=n,
        )
    if storage.is_tensor:
        castable = isinstance(sample, torch.Tensor) and torch.can_cast(sample.dtype, storage.dtype)
    else:
        castable = np.can_cast(to_numpy(sample).dtype, storage.dtype, casting="same_kind")
    if not castable:
        raise ShapeMismatch(
            f"cannot store {describe(sample)} samples in block storage of {storage.dtype}",
            expected=storage.dtype,
            got=sample.dtype,
        )


def write(storage: StorageContainer, index: int, sample: Any) -> None:
    """Store `sample` at the 1-based slot `index`.

    Raises:
        IndexOutOfRange: if `index` is outside `[1, count]`.
        ShapeMismatch: if the sample does not fit the container layout.
    """
    _check_container(storage)
    pos = storage.position(index)
    if isinstance(storage, FlatStorage):
        storage.slots[pos] = _coerce_flat(storage, sample)
        return
    _check_block_sample(storage, sample)
    if storage.is_tensor:
        storage.data[:, pos] = sample.to(device=storage.data.device, dtype=storage.dtype)
    else:
        storage.data[:, pos] = to_numpy(sample)


# =============================================================================
# Read
# =============================================================================

def _size(value: Any) -> int:
    if isinstance(value, torch.Tensor):
        return value.numel()
    if isinstance(value, (tuple, list)):
        return len(value)
    return int(np.size(value))


def _fill(out: Any, value: Any) -> None:
    """Copy `value` into the pre-sized buffer `out`."""
    n_out, n_value = _size(out), _size(value)
    if n_out != n_value:
        raise ShapeMismatch(
            f"output buffer of size {n_out} cannot receive a value of size {n_value}",
            expected=n_value,
            got=n_out,
        )
    if isinstance(out, np.ndarray):
        out[...] = np.reshape(to_numpy(value), out.shape)
    elif isinstance(out, torch.Tensor):
        out.copy_(torch.as_tensor(value, device=out.device).reshape(out.shape))
    elif isinstance(out, MutableSequence):
        if isinstance(value, (torch.Tensor, np.ndarray)):
            out[:] = value.reshape(-1).tolist()
        elif isinstance(value, (tuple, list)):
            out[:] = list(value)
        else:
            out[:] = [value]
    else:
        raise TypeError(
            f"out must be a numpy array, torch tensor or mutable sequence, got {type(out).__name__}"
        )


def read(out: Any, storage: StorageContainer, index: int) -> None:
    """Copy the sample at slot `index` into `out` in place.

    `out` must already have room for exactly one sample: a buffer of the
    block's row count, or of the stored value's size for flat storage.

    Raises:
        IndexOutOfRange: if `index` is outside `[1, count]`.
        ShapeMismatch: if `out`'s size disagrees with the stored sample.
    """
    _check_container(storage)
    pos = storage.position(index)
    if isinstance(storage, FlatStorage):
        _fill(out, storage.slots[pos])
    else:
        _fill(out, storage.data[:, pos])


def fetch(storage: StorageContainer, index: int) -> Any:
    """Return an independent copy of the sample at slot `index`."""
    _check_container(storage)
    pos = storage.position(index)
    if isinstance(storage, FlatStorage):
        return copy_value(storage.slots[pos])
    return copy_value(storage.data[:, pos])
