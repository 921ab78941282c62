"""Expectation value of a linear operator in a vector state."""

from __future__ import annotations

from typing import Any

import numpy as np
import torch

from propstore.errors import ShapeMismatch
from propstore.types import describe, is_matrix_like, is_vector_like, to_numpy


def expectation_value(operator: Any, state: Any) -> Any:
    """Return ⟨state|operator|state⟩.

    The bra is complex-conjugated, so complex input gives the Hermitian
    quadratic form and real input the plain symmetric one. numpy input
    returns a numpy scalar; torch input returns a 0-d tensor. A numpy
    operator applied to a torch state (or the reverse) is converted to the
    state's backend first.

    Raises:
        ShapeMismatch: if `operator` is not 2-d, `state` is not 1-d, or the
            operator's column count differs from the state's length.
    """
    if not is_matrix_like(operator):
        raise ShapeMismatch(
            f"operator observable must be a 2-d matrix, got {describe(operator)}",
            expected="matrix",
            got=describe(operator),
        )
    if not is_vector_like(state):
        raise ShapeMismatch(
            f"operator observable requires a 1-d vector state, got {describe(state)}",
            expected="vector",
            got=describe(state),
        )
    n = state.shape[0]
    if tuple(operator.shape) != (n, n):
        raise ShapeMismatch(
            f"operator of shape {tuple(operator.shape)} cannot act on a state of length {n}",
            expected=(n, n),
            got=tuple(operator.shape),
        )

    if isinstance(state, torch.Tensor):
        op = torch.as_tensor(operator, device=state.device)
        dtype = torch.promote_types(op.dtype, state.dtype)
        psi = state.to(dtype)
        return torch.vdot(psi, op.to(dtype) @ psi)

    op = to_numpy(operator)
    # np.matrix @ vector yields a (1, n) matrix; vdot flattens it.
    return np.vdot(state, op @ state)
