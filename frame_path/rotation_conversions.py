"""
Quaternion operations used to build and query frame paths.

Conventions:
- quaternion (xyzw, scalar-last, matching SciPy/ROS)
- rotation vector / axis-angle (angle in radians)

All functions support:
- NumPy arrays and PyTorch tensors
- Arbitrary batch dimensions
"""

from __future__ import annotations

from typing import Union, overload

import numpy as np
import torch
from scipy.spatial.transform import Rotation as ScipyRotation

from ._core import (
    ArrayLike,
    SMALL_ANGLE_THRESHOLD,
    get_backend,
    normalize,
)


# =============================================================================
# Quaternion Operations (xyzw convention)
# =============================================================================


# Pre-allocated for common NumPy dtypes (no lookup overhead)
_CONJ_SIGN_F32 = np.array([-1, -1, -1, 1], dtype=np.float32)
_CONJ_SIGN_F64 = np.array([-1, -1, -1, 1], dtype=np.float64)


def quaternion_conjugate(q: ArrayLike) -> ArrayLike:
    """Compute quaternion conjugate. For unit quaternions, equals inverse."""
    if isinstance(q, torch.Tensor):
        return q * torch.tensor([-1, -1, -1, 1], dtype=q.dtype, device=q.device)
    if q.dtype == np.float32:
        return q * _CONJ_SIGN_F32
    if q.dtype == np.float64:
        return q * _CONJ_SIGN_F64
    return q * np.array([-1, -1, -1, 1], dtype=q.dtype)


@overload
def quaternion_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray: ...
@overload
def quaternion_multiply(q1: torch.Tensor, q2: torch.Tensor) -> torch.Tensor: ...


def quaternion_multiply(q1: ArrayLike, q2: ArrayLike) -> ArrayLike:
    """
    Multiply two quaternions (Hamilton product).

    The result represents the composition of rotations: first q2, then q1.

    Args:
        q1: First quaternion(s) in xyzw format (..., 4)
        q2: Second quaternion(s) in xyzw format (..., 4)

    Returns:
        Product quaternion(s) in xyzw format (..., 4)
    """
    backend = get_backend(q1)

    x1, y1, z1, w1 = q1[..., 0], q1[..., 1], q1[..., 2], q1[..., 3]
    x2, y2, z2, w2 = q2[..., 0], q2[..., 1], q2[..., 2], q2[..., 3]

    w = w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2
    x = w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2
    y = w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2
    z = w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2

    if backend == "numpy":
        return np.stack([x, y, z, w], axis=-1)

    return torch.stack([x, y, z, w], dim=-1)


def quaternion_relative(q1: ArrayLike, q2: ArrayLike) -> ArrayLike:
    """
    Relative rotation taking frame q1 to frame q2: conj(q1) * q2.

    Args:
        q1, q2: Unit quaternions in xyzw format (..., 4)

    Returns:
        Relative quaternion(s) (..., 4)
    """
    return quaternion_multiply(quaternion_conjugate(q1), q2)


def quaternion_angle(q: ArrayLike) -> ArrayLike:
    """
    Planar rotation angle of unit quaternion(s), in [0, 2*pi].

    Equals 2*acos(w) for unit quaternions, but is evaluated as 2*atan2(|xyz|, w):
    acos amplifies a one-ulp error in w near 1 to ~3e-8 rad, while the xyz part of
    conj(q) * q is exactly zero. atan2 has no domain restriction, so the
    [-1-eps, 1+eps] clamp that guards acos against |w| > 1 is not needed here.
    """
    w = q[..., 3]
    if isinstance(q, torch.Tensor):
        return 2 * torch.atan2(torch.linalg.vector_norm(q[..., :3], dim=-1), w)
    return 2 * np.arctan2(np.linalg.norm(q[..., :3], axis=-1), w)


# =============================================================================
# Rotation Vector / Axis-Angle
# =============================================================================


@overload
def rotvec_to_quaternion(rotvec: np.ndarray) -> np.ndarray: ...
@overload
def rotvec_to_quaternion(rotvec: torch.Tensor) -> torch.Tensor: ...


def rotvec_to_quaternion(rotvec: ArrayLike) -> ArrayLike:
    """
    Convert rotation vector to quaternion (xyzw).

    Uses the formula: q = [axis * sin(θ/2), cos(θ/2)] where θ = ||rotvec||.
    """
    backend = get_backend(rotvec)

    if backend == "numpy":
        rotvec = np.asarray(rotvec, dtype=np.float64)
        batch_shape = rotvec.shape[:-1]
        rotvec_flat = rotvec.reshape(-1, 3)
        quat_flat = ScipyRotation.from_rotvec(rotvec_flat).as_quat()
        return quat_flat.reshape(*batch_shape, 4)

    angle = torch.norm(rotvec, dim=-1, keepdim=True)
    half_angle = angle / 2

    scale = torch.where(
        angle > SMALL_ANGLE_THRESHOLD,
        torch.sin(half_angle) / angle,
        0.5 * torch.ones_like(angle),
    )

    xyz = rotvec * scale
    w = torch.cos(half_angle)

    return torch.cat([xyz, w], dim=-1)


def axis_angle_to_quaternion(
    axis: ArrayLike,
    angle: Union[float, ArrayLike],
    degrees: bool = False,
) -> ArrayLike:
    """
    Quaternion (xyzw) rotating by `angle` about `axis`.

    Args:
        axis: Rotation axis (..., 3), normalized internally
        angle: Rotation angle(s), broadcast against the batch shape of axis
        degrees: If True, angle is given in degrees

    Returns:
        Quaternion(s) (..., 4)

    Example:
        >>> q = axis_angle_to_quaternion(np.array([0.0, 0.0, 1.0]), 90, degrees=True)
    """
    if isinstance(axis, torch.Tensor):
        angle = torch.as_tensor(angle, dtype=axis.dtype, device=axis.device)
        if degrees:
            angle = torch.deg2rad(angle)
        return rotvec_to_quaternion(normalize(axis) * angle.unsqueeze(-1))

    axis = np.asarray(axis, dtype=np.float64)
    angle = np.asarray(angle, dtype=np.float64)
    if degrees:
        angle = np.deg2rad(angle)
    return rotvec_to_quaternion(normalize(axis) * angle[..., np.newaxis])
