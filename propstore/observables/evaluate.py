from __future__ import annotations

from typing import Any

from propstore.observables.variants import as_observable


def evaluate(observable: Any, tlist: Any, i: int, state: Any) -> Any:
    """Apply a single `observable` to `state`, defined at time `tlist[i - 1]`.

    `observable` can be:

    * a function taking the three arguments `state`, `tlist`, `i`
    * a function taking a single argument `state` (time-independent)
    * a matrix, for which the expectation value with respect to the vector
      `state` is returned
    * an already resolved variant (`StateOnly`, `StateTimeIndex`,
      `OperatorExpectation`), which skips signature probing

    Raises:
        UnsupportedObservableSignature: if a callable matches neither
            calling convention.
    """
    return as_observable(observable).apply(tlist, i, state)
