"""Array helpers shared by the observable and storage layers.

States, operators and samples may be numpy arrays or torch tensors. These
helpers answer the few structural questions the rest of the package asks
("is this a vector?", "is this a matrix?") without caring which backend
produced the value.
"""

from __future__ import annotations

import numbers
from typing import Any

import numpy as np
import torch


# =============================================================================
# Index convention
# =============================================================================

FIRST_INDEX = 1  # Slots and observable time indices are 1-based.


# =============================================================================
# Structural predicates
# =============================================================================

def is_vector_like(value: Any) -> bool:
    """True for 1-d numpy arrays and 1-d torch tensors."""
    if isinstance(value, np.ndarray):
        return value.ndim == 1
    if isinstance(value, torch.Tensor):
        return value.dim() == 1
    return False


def is_matrix_like(value: Any) -> bool:
    """True for 2-d numpy arrays (incl. np.matrix) and 2-d torch tensors."""
    if isinstance(value, np.ndarray):
        return value.ndim == 2
    if isinstance(value, torch.Tensor):
        return value.dim() == 2
    return False


def is_zero_dim_tensor(value: Any) -> bool:
    return isinstance(value, torch.Tensor) and value.dim() == 0


NUMERIC_TYPES = (numbers.Number, np.number, np.bool_)


def is_numeric(value: Any) -> bool:
    return isinstance(value, NUMERIC_TYPES)


# =============================================================================
# Conversion
# =============================================================================

def to_numpy(tensor: Any) -> np.ndarray:
    """Convert tensor to numpy array."""
    if isinstance(tensor, np.ndarray):
        return tensor
    if isinstance(tensor, torch.Tensor):
        return tensor.detach().cpu().numpy()
    return np.array(tensor)


def copy_value(value: Any) -> Any:
    """Detached copy of arrays and tensors; other values pass through."""
    if isinstance(value, np.ndarray):
        return value.copy()
    if isinstance(value, torch.Tensor):
        return value.detach().clone()
    return value


def describe(value: Any) -> str:
    """Short type/shape description for error messages and console output."""
    if isinstance(value, np.ndarray):
        return f"ndarray(shape={value.shape}, dtype={value.dtype})"
    if isinstance(value, torch.Tensor):
        return f"Tensor(shape={tuple(value.shape)}, dtype={value.dtype}, device={value.device})"
    if isinstance(value, tuple):
        return f"tuple(len={len(value)})"
    return type(value).__name__
