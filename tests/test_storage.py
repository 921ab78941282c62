"""Tests for storage allocation and slot access.

Covers:
- Container choice (flat vs block) from a representative sample
- write/read/fetch round trips in any write order
- Shape, type and index errors, and that failed writes leave data intact
"""

from __future__ import annotations

import numpy as np
import pytest
import torch

from propstore import (
    BlockStorage,
    FlatStorage,
    IndexOutOfRange,
    ShapeMismatch,
    StorageConfig,
    StorageLayout,
    aggregate,
    allocate,
    allocate_for_timeline,
    fetch,
    read,
    write,
)


SIGMA_X = np.array([[0.0, 1.0], [1.0, 0.0]])
SIGMA_Z = np.array([[1.0, 0.0], [0.0, -1.0]])


@pytest.fixture
def tlist():
    return np.linspace(0.0, 1.0, 6)


@pytest.fixture
def psi0():
    return np.array([1.0, 0.0], dtype=np.complex128)


# =============================================================================
# Allocation
# =============================================================================

def test_vector_sample_gets_block_storage():
    storage = allocate(np.zeros(3), 5)
    assert isinstance(storage, BlockStorage)
    assert storage.layout is StorageLayout.BLOCK
    assert storage.data.shape == (3, 5)
    assert storage.dtype == np.float64
    assert (storage.rows, storage.count, len(storage)) == (3, 5, 5)


def test_block_storage_keeps_sample_dtype():
    storage = allocate(np.zeros(2, dtype=np.complex128), 4)
    assert storage.dtype == np.complex128


def test_block_dtype_override():
    storage = allocate(np.zeros(3), 2, StorageConfig(dtype=np.float32))
    assert storage.dtype == np.float32


def test_tensor_sample_gets_tensor_block():
    storage = allocate(torch.zeros(3, dtype=torch.float64), 4)
    assert isinstance(storage.data, torch.Tensor)
    assert storage.is_tensor
    assert tuple(storage.data.shape) == (3, 4)
    assert storage.dtype == torch.float64


def test_scalar_sample_gets_flat_storage():
    storage = allocate(1.0, 4)
    assert isinstance(storage, FlatStorage)
    assert storage.layout is StorageLayout.FLAT
    assert storage.element_type is float
    assert storage.count == 4
    assert storage.slots == [None] * 4


def test_tuple_sample_gets_flat_storage():
    storage = allocate((1.0, "a"), 3)
    assert isinstance(storage, FlatStorage)
    assert storage.arity == 2


def test_matrix_sample_gets_flat_storage():
    storage = allocate(np.eye(2), 3)
    assert isinstance(storage, FlatStorage)
    assert storage.element_shape == (2, 2)


@pytest.mark.parametrize("count", [-1, 2.5, True])
def test_invalid_count_is_rejected(count):
    with pytest.raises(ValueError):
        allocate(1.0, count)


def test_zero_count_is_allowed():
    assert allocate(np.zeros(2), 0).count == 0


def test_timeline_allocation_for_state(tlist, psi0):
    storage = allocate_for_timeline(psi0, tlist)
    assert isinstance(storage, BlockStorage)
    assert storage.data.shape == (2, len(tlist))
    assert storage.dtype == np.complex128


def test_timeline_allocation_for_single_observable(tlist, psi0):
    storage = allocate_for_timeline(psi0, tlist, (SIGMA_Z,))
    assert isinstance(storage, FlatStorage)
    assert storage.count == len(tlist)
    assert storage.element_type is np.complex128


def test_timeline_allocation_matches_first_sample(tlist, psi0):
    observables = (SIGMA_Z, SIGMA_X, lambda state: np.complex128(0.0))
    storage = allocate_for_timeline(psi0, tlist, observables)
    first = aggregate(observables, tlist, 1, psi0)
    assert isinstance(storage, BlockStorage)
    assert storage.rows == len(first)
    assert storage.dtype == first.dtype

    for i in range(1, len(tlist) + 1):
        write(storage, i, aggregate(observables, tlist, i, psi0))
    with pytest.raises(IndexOutOfRange):
        write(storage, len(tlist) + 1, first)


def test_timeline_allocation_for_mixed_observables(tlist, psi0):
    storage = allocate_for_timeline(psi0, tlist, (SIGMA_Z, lambda state: "x"))
    assert isinstance(storage, FlatStorage)
    assert storage.arity == 2


# =============================================================================
# Round trips
# =============================================================================

def test_block_round_trip_in_any_write_order():
    n, nt = 3, 5
    samples = {i: np.arange(n, dtype=np.float64) + 10 * i for i in range(1, nt + 1)}
    storage = allocate(samples[1], nt)
    for i in [4, 1, 5, 3, 2]:
        write(storage, i, samples[i])

    out = np.empty(n)
    for i in range(1, nt + 1):
        read(out, storage, i)
        np.testing.assert_array_equal(out, samples[i])


def test_flat_scalar_round_trip():
    storage = allocate(np.float64(0.0), 3)
    for i, value in [(3, 0.3), (1, 0.1), (2, 0.2)]:
        write(storage, i, np.float64(value))

    out = [None]
    read(out, storage, 2)
    assert out == [0.2]

    out = np.empty(())
    read(out, storage, 3)
    assert out == 0.3


def test_flat_tuple_round_trip():
    storage = allocate((0.0, "a"), 2)
    write(storage, 1, (1.5, "b"))
    write(storage, 2, (2.5, "c"))

    out = [None, None]
    read(out, storage, 2)
    assert out == [2.5, "c"]
    assert fetch(storage, 1) == (1.5, "b")


def test_flat_matrix_reads_into_list_in_place():
    storage = allocate(np.eye(2), 1)
    write(storage, 1, np.array([[1.0, 2.0], [3.0, 4.0]]))

    out = [None] * 4
    buffer = out
    read(out, storage, 1)
    assert out is buffer
    assert out == [1.0, 2.0, 3.0, 4.0]


def test_tensor_block_round_trip():
    storage = allocate(torch.zeros(2, dtype=torch.complex128), 3)
    sample = torch.tensor([1.0 + 1.0j, -2.0j], dtype=torch.complex128)
    write(storage, 2, sample)

    out = torch.empty(2, dtype=torch.complex128)
    read(out, storage, 2)
    torch.testing.assert_close(out, sample)


def test_read_into_numpy_from_tensor_block():
    storage = allocate(torch.zeros(2, dtype=torch.float64), 1)
    write(storage, 1, torch.tensor([3.0, 4.0], dtype=torch.float64))
    out = np.zeros(2)
    read(out, storage, 1)
    np.testing.assert_array_equal(out, [3.0, 4.0])


def test_fetch_returns_independent_copy():
    storage = allocate(np.zeros(2), 2)
    write(storage, 1, np.array([1.0, 2.0]))
    sample = fetch(storage, 1)
    sample[0] = 99.0
    np.testing.assert_array_equal(storage.data[:, 0], [1.0, 2.0])


def test_flat_storage_copies_array_samples():
    state = np.eye(2)
    storage = allocate(state, 2)
    write(storage, 1, state)
    state[0, 0] = -1.0
    assert storage.slots[0][0, 0] == 1.0


def test_flat_storage_can_keep_references():
    state = np.eye(2)
    storage = allocate(state, 2, StorageConfig(copy_samples=False))
    write(storage, 1, state)
    assert storage.slots[0] is state


def test_python_scalar_converts_to_element_type():
    storage = allocate(np.float64(0.0), 2)
    write(storage, 1, 2.5)
    write(storage, 2, 3)
    assert type(storage.slots[0]) is np.float64
    assert storage.slots[1] == 3.0


# =============================================================================
# Errors
# =============================================================================

def test_write_wrong_vector_length_is_shape_mismatch():
    storage = allocate(np.zeros(3), 2)
    write(storage, 1, np.array([1.0, 2.0, 3.0]))
    with pytest.raises(ShapeMismatch) as excinfo:
        write(storage, 2, np.array([1.0, 2.0]))
    assert excinfo.value.expected == 3
    assert excinfo.value.got == 2
    np.testing.assert_array_equal(storage.data[:, 0], [1.0, 2.0, 3.0])


def test_failed_write_leaves_slot_untouched():
    storage = allocate(np.zeros(2), 2)
    write(storage, 1, np.array([1.0, 2.0]))
    with pytest.raises(ShapeMismatch):
        write(storage, 1, np.array([1.0, 2.0, 3.0]))
    np.testing.assert_array_equal(storage.data[:, 0], [1.0, 2.0])


def test_write_vector_into_flat_scalar_storage():
    storage = allocate(1.0, 2)
    with pytest.raises(ShapeMismatch):
        write(storage, 1, np.array([1.0, 2.0]))


def test_write_scalar_into_block_storage():
    storage = allocate(np.zeros(2), 2)
    with pytest.raises(ShapeMismatch):
        write(storage, 1, 1.0)


def test_write_tuple_of_wrong_arity():
    storage = allocate((1.0, "a"), 2)
    with pytest.raises(ShapeMismatch):
        write(storage, 1, (1.0, "a", None))


def test_write_matrix_of_wrong_shape_into_flat_storage():
    storage = allocate(np.eye(2), 2)
    with pytest.raises(ShapeMismatch):
        write(storage, 1, np.eye(3))


def test_complex_sample_into_real_block_is_refused():
    storage = allocate(np.zeros(2), 1)
    with pytest.raises(ShapeMismatch):
        write(storage, 1, np.array([1.0j, 0.0]))


def test_float_into_integer_slots_is_refused():
    storage = allocate(1, 2)
    with pytest.raises(ShapeMismatch):
        write(storage, 1, 2.5)


@pytest.mark.parametrize("index", [0, 3, -1])
def test_out_of_range_index(index):
    storage = allocate(np.zeros(2), 2)
    with pytest.raises(IndexOutOfRange):
        write(storage, index, np.zeros(2))
    with pytest.raises(IndexOutOfRange):
        read(np.empty(2), storage, index)
    with pytest.raises(IndexOutOfRange):
        fetch(storage, index)


def test_read_past_last_slot():
    nt = 4
    storage = allocate(1.0, nt)
    with pytest.raises(IndexOutOfRange) as excinfo:
        read([None], storage, nt + 1)
    assert excinfo.value.index == nt + 1
    assert excinfo.value.count == nt
    assert isinstance(excinfo.value, IndexError)


def test_read_into_wrong_size_buffer():
    storage = allocate(np.zeros(3), 1)
    write(storage, 1, np.ones(3))
    with pytest.raises(ShapeMismatch):
        read(np.empty(2), storage, 1)


def test_non_integer_index_is_rejected():
    storage = allocate(1.0, 2)
    with pytest.raises(TypeError):
        write(storage, 1.0, 2.0)


def test_foreign_container_is_rejected():
    with pytest.raises(TypeError):
        write(np.zeros((2, 3)), 1, np.zeros(2))
