"""Apply a collection of observables to one state and unify the results.

The unified value (the "sample") has one of three layouts:

- `SampleLayout.SCALAR`: a single value, returned unwrapped for a one-element
  collection (it need not be a number; a density matrix is a "scalar" here)
- `SampleLayout.VECTOR`: a 1-d array when every result has the same type,
  which the allocator stores compactly as one column per time step
- `SampleLayout.TUPLE`: a tuple of results of mixed types

Callers must not mix result types across time steps for the same
collection: the allocator sizes storage from the first sample only.
`ObservableCollection` freezes the layout on the first step and, with
`StorageConfig.strict_layout`, raises `SampleLayoutDrift` when a later
step disagrees.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, Optional, Sequence

import numpy as np
import torch

from propstore.config import DEFAULT_CONFIG, StorageConfig
from propstore.errors import SampleLayoutDrift
from propstore.observables.evaluate import evaluate
from propstore.observables.variants import OBSERVABLE_VARIANTS, Observable, as_observable
from propstore.types import describe, is_matrix_like, is_numeric, is_vector_like, is_zero_dim_tensor


class SampleLayout(Enum):
    SCALAR = "scalar"
    VECTOR = "vector"
    TUPLE = "tuple"


def sample_layout(sample: Any) -> SampleLayout:
    """Classify a sample by the storage it needs."""
    if is_vector_like(sample):
        return SampleLayout.VECTOR
    if isinstance(sample, tuple):
        return SampleLayout.TUPLE
    return SampleLayout.SCALAR


# =============================================================================
# Unification
# =============================================================================

def _is_uniform(values: Sequence[Any]) -> bool:
    first = type(values[0])
    return all(type(v) is first for v in values[1:])


def unify(values: tuple) -> Any:
    """Convert a tuple of results into a vector if all share the same type.

    Numeric results become a numeric ndarray and 0-d tensors of one dtype a
    1-d tensor. Any other uniform type becomes an object ndarray so the
    values are stored as-is. Mixed types stay a tuple.
    """
    if not _is_uniform(values):
        return values
    first = values[0]
    if isinstance(first, torch.Tensor):
        if all(is_zero_dim_tensor(v) and v.dtype == first.dtype for v in values):
            return torch.stack(values)
    elif is_numeric(first):
        return np.asarray(values)
    vector = np.empty(len(values), dtype=object)
    for k, v in enumerate(values):
        vector[k] = v
    return vector


def _is_single_observable(observables: Any) -> bool:
    return (
        isinstance(observables, OBSERVABLE_VARIANTS)
        or is_matrix_like(observables)
        or callable(observables)
    )


def aggregate(observables: Any, tlist: Any, i: int, state: Any) -> Any:
    """Obtain "observable" data from `state` at time index `i`.

    For a single observable (a collection of length 1) return the result of
    `evaluate` unwrapped. For several, evaluate each in declared order and
    `unify` the results. A bare observable (callable or matrix) is treated
    as a collection of one, and an `ObservableCollection` delegates to its
    own frozen-layout `aggregate`.
    """
    if isinstance(observables, ObservableCollection):
        return observables.aggregate(tlist, i, state)
    if _is_single_observable(observables):
        return evaluate(observables, tlist, i, state)
    if len(observables) == 0:
        raise ValueError("observables must contain at least one observable")
    if len(observables) == 1:
        return evaluate(observables[0], tlist, i, state)
    return unify(tuple(evaluate(o, tlist, i, state) for o in observables))


# =============================================================================
# ObservableCollection
# =============================================================================

def _fingerprint(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return (np.ndarray, value.shape, value.dtype)
    if isinstance(value, torch.Tensor):
        return (torch.Tensor, tuple(value.shape), value.dtype)
    return type(value)


class ObservableCollection:
    """An ordered, fixed set of observables with a frozen sample layout.

    Observables are resolved to variants on construction. The layout is
    decided from the declared `result_type`s when every observable has one,
    otherwise from the first aggregated sample; it never changes afterwards.

    Example:
        observables = ObservableCollection((sigma_z, lambda psi: np.linalg.norm(psi)))
        storage = allocate_for_timeline(psi0, tlist, observables)
        for i in range(1, len(tlist) + 1):
            psi = step(psi)
            write(storage, i, observables.aggregate(tlist, i, psi))
    """

    def __init__(self, observables: Any, config: Optional[StorageConfig] = None) -> None:
        if _is_single_observable(observables):
            observables = (observables,)
        if len(observables) == 0:
            raise ValueError("observables must contain at least one observable")
        self.observables: tuple[Observable, ...] = tuple(as_observable(o) for o in observables)
        self.config = config if config is not None else DEFAULT_CONFIG
        self._layout: Optional[SampleLayout] = self._declared_layout()
        self._fingerprint: Any = None

    def _declared_layout(self) -> Optional[SampleLayout]:
        declared = [o.result_type for o in self.observables]
        if any(t is None for t in declared):
            return None
        if len(declared) == 1:
            # An array result may or may not be 1-d; wait for the first sample.
            if issubclass(declared[0], (np.ndarray, torch.Tensor)):
                return None
            if issubclass(declared[0], tuple):
                return SampleLayout.TUPLE
            return SampleLayout.SCALAR
        if all(t is declared[0] for t in declared[1:]):
            return SampleLayout.VECTOR
        return SampleLayout.TUPLE

    @property
    def layout(self) -> Optional[SampleLayout]:
        """The frozen sample layout, or None before it can be decided."""
        return self._layout

    def __len__(self) -> int:
        return len(self.observables)

    def __iter__(self) -> Iterator[Observable]:
        return iter(self.observables)

    def __getitem__(self, k: int) -> Observable:
        return self.observables[k]

    def _check_declared(self, values: tuple) -> None:
        for k, (o, v) in enumerate(zip(self.observables, values)):
            if o.result_type is not None and not isinstance(v, o.result_type):
                raise SampleLayoutDrift(
                    f"observable {k} declared result type {o.result_type.__name__} "
                    f"but returned {describe(v)}",
                    expected=o.result_type,
                    got=type(v),
                )

    def aggregate(self, tlist: Any, i: int, state: Any) -> Any:
        values = tuple(o.apply(tlist, i, state) for o in self.observables)
        if len(values) == 1:
            sample = values[0]
        else:
            sample = unify(values)
        if not self.config.strict_layout:
            if self._layout is None:
                self._layout = sample_layout(sample)
            return sample

        fingerprint = tuple(_fingerprint(v) for v in values)
        if self._fingerprint is None:
            self._check_declared(values)
            layout = sample_layout(sample)
            if self._layout is not None and layout is not self._layout:
                raise SampleLayoutDrift(
                    f"declared result types imply a {self._layout.value} sample, "
                    f"got {describe(sample)}",
                    expected=self._layout,
                    got=layout,
                )
            self._layout = layout
            self._fingerprint = fingerprint
        elif fingerprint != self._fingerprint:
            raise SampleLayoutDrift(
                f"sample at index {i} changed from {self._fingerprint} to {fingerprint}",
                expected=self._fingerprint,
                got=fingerprint,
            )
        return sample
