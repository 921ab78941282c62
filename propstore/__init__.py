"""Recording layer for time-indexed simulation output.

Inside a propagation loop, at every step:

    storage = allocate_for_timeline(psi0, tlist, observables)   # once
    data = aggregate(observables, tlist, i, psi)                 # each step
    write(storage, i, data)

and afterwards `read(out, storage, i)` or `fetch(storage, i)`. Time and slot
indices are 1-based: slot `i` holds the sample for `tlist[i - 1]`.
"""

from __future__ import annotations

# Errors
from .errors import (
    PropstoreError,
    UnsupportedObservableSignature,
    ShapeMismatch,
    SampleLayoutDrift,
    IndexOutOfRange,
)

# Configuration
from .config import StorageConfig, DEFAULT_CONFIG

# Observables
from .observables import (
    Observable,
    StateOnly,
    StateTimeIndex,
    OperatorExpectation,
    ObservableCollection,
    SampleLayout,
    as_observable,
    expectation_value,
    evaluate,
    aggregate,
    sample_layout,
)

# Storage
from .storage import (
    BlockStorage,
    FlatStorage,
    StorageLayout,
    allocate,
    allocate_for_timeline,
    write,
    read,
    fetch,
)

# Instruments
from .instrument import InstrumentProtocol, ObservableRecorder

__all__ = [
    # Errors
    "PropstoreError",
    "UnsupportedObservableSignature",
    "ShapeMismatch",
    "SampleLayoutDrift",
    "IndexOutOfRange",
    # Configuration
    "StorageConfig",
    "DEFAULT_CONFIG",
    # Observables
    "Observable",
    "StateOnly",
    "StateTimeIndex",
    "OperatorExpectation",
    "ObservableCollection",
    "SampleLayout",
    "as_observable",
    "expectation_value",
    "evaluate",
    "aggregate",
    "sample_layout",
    # Storage
    "BlockStorage",
    "FlatStorage",
    "StorageLayout",
    "allocate",
    "allocate_for_timeline",
    "write",
    "read",
    "fetch",
    # Instruments
    "InstrumentProtocol",
    "ObservableRecorder",
]
