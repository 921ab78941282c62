"""Observables: rules for deriving recorded values from a state.

An observable is a `StateOnly(fn)`, a `StateTimeIndex(fn)` or an
`OperatorExpectation(matrix)`. Plain callables and matrices are resolved to
one of these by `as_observable`.
"""

from .variants import (
    Observable,
    StateOnly,
    StateTimeIndex,
    OperatorExpectation,
    as_observable,
)
from .expectation import expectation_value
from .evaluate import evaluate
from .aggregate import (
    ObservableCollection,
    SampleLayout,
    aggregate,
    sample_layout,
    unify,
)

__all__ = [
    # Variants
    "Observable",
    "StateOnly",
    "StateTimeIndex",
    "OperatorExpectation",
    "as_observable",
    # Evaluation
    "expectation_value",
    "evaluate",
    # Aggregation
    "ObservableCollection",
    "SampleLayout",
    "aggregate",
    "sample_layout",
    "unify",
]
