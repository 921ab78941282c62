"""Observable variants.

An observable is one of a closed set of variants:

- `StateTimeIndex(fn)`: `fn(state, tlist, i)` for a quantity defined at `tlist[i]`
- `StateOnly(fn)`: `fn(state)` for a time-independent quantity
- `OperatorExpectation(operator)`: ⟨state|operator|state⟩

Raw callables and matrices are resolved into a variant once, by
`as_observable`, when a collection is registered. Calling conventions are
therefore probed a single time per observable rather than on every step.

Each variant may declare the concrete type of its result (`result_type`).
When every observable of a collection declares one, the collection knows
its sample layout before the first step.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

import numpy as np

from propstore.errors import UnsupportedObservableSignature
from propstore.observables.expectation import expectation_value
from propstore.types import is_matrix_like


# =============================================================================
# Variants
# =============================================================================

@dataclass(frozen=True)
class StateOnly:
    """Time-independent observable `fn(state)`."""

    fn: Callable[[Any], Any]
    result_type: Optional[type] = None

    def apply(self, tlist: Any, i: int, state: Any) -> Any:
        return self.fn(state)


@dataclass(frozen=True)
class StateTimeIndex:
    """Observable `fn(state, tlist, i)`, where `state` is defined at time index `i`.

    `i` is 1-based, so the time point itself is `tlist[i - 1]`.
    """

    fn: Callable[[Any, Any, int], Any]
    result_type: Optional[type] = None

    def apply(self, tlist: Any, i: int, state: Any) -> Any:
        return self.fn(state, tlist, i)


@dataclass(frozen=True, eq=False)
class OperatorExpectation:
    """Expectation value of a fixed operator (numpy matrix or torch tensor)."""

    operator: Any
    result_type: Optional[type] = None

    def __post_init__(self) -> None:
        if not is_matrix_like(self.operator):
            raise UnsupportedObservableSignature(
                self.operator,
                f"OperatorExpectation needs a 2-d matrix, got {type(self.operator).__name__}",
            )

    def apply(self, tlist: Any, i: int, state: Any) -> Any:
        return expectation_value(self.operator, state)


Observable = Union[StateOnly, StateTimeIndex, OperatorExpectation]

OBSERVABLE_VARIANTS = (StateOnly, StateTimeIndex, OperatorExpectation)


# =============================================================================
# Resolution
# =============================================================================

def _binds(signature: inspect.Signature, nargs: int) -> bool:
    try:
        signature.bind(*([None] * nargs))
    except TypeError:
        return False
    return True


def as_observable(obj: Any, result_type: Optional[type] = None) -> Observable:
    """Resolve `obj` into an observable variant.

    Variants are returned unchanged. A 2-d array or tensor becomes an
    `OperatorExpectation`. A callable is probed for the three-argument
    convention `(state, tlist, i)` first and the one-argument convention
    `(state)` second; when both bind (defaults, `*args`), the three-argument
    form wins. Library functions with optional parameters, such as
    `np.linalg.norm(x, ord=None, axis=None)`, therefore bind as
    `fn(state, tlist, i)` and must be wrapped in `StateOnly` explicitly.

    Raises:
        UnsupportedObservableSignature: for callables matching neither
            convention, callables whose signature cannot be inspected, and
            objects that are neither callable nor matrices.
    """
    if isinstance(obj, OBSERVABLE_VARIANTS):
        return obj
    if is_matrix_like(obj):
        return OperatorExpectation(obj, result_type)
    if not callable(obj):
        raise UnsupportedObservableSignature(
            obj,
            f"The observable {obj!r} is neither callable nor a matrix.",
        )

    if isinstance(obj, np.ufunc):
        # ufuncs carry no inspectable signature, only an input count.
        if obj.nin == 3:
            return StateTimeIndex(obj, result_type)
        if obj.nin == 1:
            return StateOnly(obj, result_type)
        raise UnsupportedObservableSignature(obj)

    try:
        signature = inspect.signature(obj)
    except (TypeError, ValueError):
        raise UnsupportedObservableSignature(
            obj,
            f"The signature of observable {obj!r} cannot be inspected; wrap it "
            "explicitly in StateOnly or StateTimeIndex.",
        ) from None

    if _binds(signature, 3):
        return StateTimeIndex(obj, result_type)
    if _binds(signature, 1):
        return StateOnly(obj, result_type)
    raise UnsupportedObservableSignature(obj)
