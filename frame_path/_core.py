"""
Core utilities: types, constants, errors, and backend-agnostic operations.

This module provides the foundational building blocks used throughout frame_path.
All internal modules depend on this module.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional, Tuple, TypeVar, Union

import numpy as np
import torch
import torch.nn.functional as F


# =============================================================================
# Type Definitions
# =============================================================================

T = TypeVar("T", np.ndarray, torch.Tensor)
ArrayLike = Union[np.ndarray, torch.Tensor]
Backend = Literal["numpy", "torch"]


# =============================================================================
# Numerical Constants
# =============================================================================

EPS = 1e-8  # General epsilon for division safety
SEPS = float(np.sqrt(np.finfo(np.float64).eps))  # Default build tolerance
SMALL_ANGLE_THRESHOLD = 1e-6  # Below this, use Taylor approximations


# =============================================================================
# Enums
# =============================================================================


class SegmentKind(str, Enum):
    """Rule that produced the parameter increment of a segment."""

    TRANSLATIONAL = "translational"
    ROTATIONAL = "rotational"


# =============================================================================
# Errors
# =============================================================================


class PathError(ValueError):
    """Base class for errors raised while building a path."""

    pass


class InvalidInputError(PathError):
    """Raised when frame data violates a structural precondition."""

    def __init__(self, constraint: str, index: Optional[int] = None) -> None:
        self.constraint = constraint
        self.index = index
        message = constraint if index is None else f"{constraint} (index {index})"
        super().__init__(message)


class DegenerateSegmentError(PathError):
    """Raised when two consecutive frames coincide in position and orientation."""

    def __init__(self, first: int, second: int, rotational: bool) -> None:
        self.indices = (first, second)
        if rotational:
            what = f"r[{second}] == r[{first}] and q[{second}] == q[{first}]"
        else:
            what = f"r[{second}] == r[{first}]"
        super().__init__(f"Degenerate segment: {what}")


# =============================================================================
# Backend Detection
# =============================================================================


def get_backend(x: ArrayLike) -> Backend:
    """Determine backend from input type."""
    return "torch" if isinstance(x, torch.Tensor) else "numpy"


def to_backend(
    x,
    backend: Backend,
    dtype=None,
    device=None,
) -> ArrayLike:
    """Convert array to specified backend."""
    if backend == "torch":
        if isinstance(x, torch.Tensor):
            return x.to(dtype=dtype, device=device) if dtype or device else x
        if isinstance(x, (list, tuple)) and len(x) > 0 and isinstance(x[0], torch.Tensor):
            return torch.stack(list(x)).to(dtype=dtype, device=device)
        return torch.as_tensor(np.asarray(x), dtype=dtype, device=device)
    if isinstance(x, torch.Tensor):
        x = x.detach().cpu().numpy()
    return np.asarray(x, dtype=dtype)


def infer_backend(x) -> Backend:
    """Backend of an array or of a sequence of per-frame arrays."""
    if isinstance(x, torch.Tensor):
        return "torch"
    if isinstance(x, (list, tuple)) and len(x) > 0 and isinstance(x[0], torch.Tensor):
        return "torch"
    return "numpy"


# =============================================================================
# Backend-Agnostic Operations
# =============================================================================


def normalize(x: ArrayLike, dim: int = -1, eps: float = EPS) -> ArrayLike:
    """Normalize vectors along specified dimension."""
    if isinstance(x, torch.Tensor):
        return F.normalize(x, dim=dim, eps=eps)
    norm = np.linalg.norm(x, axis=dim, keepdims=True)
    return x / np.maximum(norm, eps)


def vector_norm(x: ArrayLike, dim: int = -1) -> ArrayLike:
    """Euclidean norm along specified dimension."""
    if isinstance(x, torch.Tensor):
        return torch.linalg.vector_norm(x, dim=dim)
    return np.linalg.norm(x, axis=dim)


def identity_quaternion(
    batch_shape: Tuple[int, ...],
    backend: Backend,
    dtype=None,
    device=None,
) -> ArrayLike:
    """Identity quaternion(s) [0, 0, 0, 1] with the given batch shape."""
    if backend == "torch":
        q = torch.zeros(batch_shape + (4,), dtype=dtype, device=device)
    else:
        q = np.zeros(batch_shape + (4,), dtype=dtype or np.float64)
    q[..., 3] = 1.0
    return q
