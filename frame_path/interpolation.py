"""
Interpolation Module for frame_path.

Query API:
    end_parameter(path)               # path parameter of the last frame
    locate_interval(path, t)          # segment index i with t[i] <= t < t[i+1]
    interpolate(path, t)              # (position, quaternion) at t
    interpolate_position(path, t)     # position at t

Time-scaled sampling:
    parameter_at_time(path, time, stop_time)
    sample_path(path, times, stop_time)

All queries accept a scalar or a 1-D batch of path parameters. Outside of
[0, end_parameter] the frame is extrapolated through the first two or the
last two frames.
"""

from __future__ import annotations

from typing import Tuple, Union

import numpy as np
import torch

from ._core import (
    ArrayLike,
    InvalidInputError,
    identity_quaternion,
    normalize,
)
from .path import Path


# =============================================================================
# Unified API
# =============================================================================


def end_parameter(path: Path) -> float:
    """Return the path parameter of the last frame (first frame is at 0)."""
    return path.end_parameter


def locate_interval(path: Path, t: Union[float, ArrayLike]) -> Union[int, ArrayLike]:
    """
    Locate the segment used to evaluate the path at parameter t.

    Returns i such that path.t[i] <= t < path.t[i+1]. Queries at or before the
    first frame map to 0, queries at or past the last frame to n-2, so that
    out-of-range queries extrapolate along the first / last segment.

    Args:
        path: Built Path
        t: Path parameter(s), scalar or (M,)

    Returns:
        int for scalar t, integer array (M,) otherwise
    """
    n = path.n_frames
    tq = _as_query(path, t)

    if path.backend == "numpy":
        indices = np.clip(np.searchsorted(path.t, tq, side="right") - 1, 0, n - 2)
    else:
        flat = torch.searchsorted(path.t, tq.reshape(-1), right=True) - 1
        indices = torch.clamp(flat, 0, n - 2).reshape(tq.shape)

    if indices.ndim == 0:
        return int(indices)
    return indices


def interpolate(
    path: Path,
    t: Union[float, ArrayLike],
) -> Tuple[ArrayLike, ArrayLike]:
    """
    Return position and quaternion of the path at parameter t.

    Position and quaternion are linearly interpolated between the frames of the
    enclosing segment; the quaternion is renormalized afterwards. If the path has
    no orientation, the identity quaternion is returned.

    Args:
        path: Built Path
        t: Path parameter(s), scalar or (M,)

    Returns:
        position (3,) or (M, 3), quaternion (4,) or (M, 4) in xyzw format

    Example:
        >>> r, q = interpolate(path, 0.5 * end_parameter(path))
    """
    i, fac = _segment_fraction(path, t)
    position = _linear_blend(path.r, i, fac)

    if path.q is None:
        if path.backend == "torch":
            quat = identity_quaternion(tuple(position.shape[:-1]), "torch", path.r.dtype, path.r.device)
        else:
            quat = identity_quaternion(position.shape[:-1], "numpy")
        return position, quat

    return position, normalize(_linear_blend(path.q, i, fac))


def interpolate_position(path: Path, t: Union[float, ArrayLike]) -> ArrayLike:
    """
    Return position of the path at parameter t, skipping the orientation.

    Args:
        path: Built Path
        t: Path parameter(s), scalar or (M,)

    Returns:
        position (3,) or (M, 3)
    """
    i, fac = _segment_fraction(path, t)
    return _linear_blend(path.r, i, fac)


# =============================================================================
# Time-Scaled Sampling
# =============================================================================


def parameter_at_time(
    path: Path,
    time: Union[float, ArrayLike],
    stop_time: float,
) -> Union[float, ArrayLike]:
    """
    Map time in [0, stop_time] linearly onto the path parameter [0, end_parameter].

    Use this to traverse the whole path during a simulation that starts at the
    first frame and reaches the last frame at stop_time.
    """
    if not stop_time > 0.0:
        raise InvalidInputError(f"stop_time must be > 0, got {stop_time}")
    if isinstance(time, (list, tuple)):
        time = np.asarray(time, dtype=np.float64)
    return time * (path.end_parameter / stop_time)


def sample_path(
    path: Path,
    times: ArrayLike,
    stop_time: float,
) -> Tuple[ArrayLike, ArrayLike]:
    """
    Interpolate the path at simulation times, scaled so stop_time hits the last frame.

    Example:
        >>> times = np.arange(0.0, 2.0 + 1e-9, 0.1)
        >>> positions, quats = sample_path(path, times, stop_time=2.0)
    """
    return interpolate(path, parameter_at_time(path, times, stop_time))


# =============================================================================
# Internal
# =============================================================================


def _as_query(path: Path, t: Union[float, ArrayLike]) -> ArrayLike:
    """Query parameter(s) in the backend and dtype of the path."""
    if path.backend == "numpy":
        if isinstance(t, torch.Tensor):
            t = t.detach().cpu().numpy()
        return np.asarray(t, dtype=np.float64)
    return torch.as_tensor(t, dtype=path.t.dtype, device=path.t.device)


def _segment_fraction(path: Path, t: Union[float, ArrayLike]):
    """Segment index and unclamped position within it (fac < 0 or > 1 extrapolates)."""
    tq = _as_query(path, t)
    i = locate_interval(path, tq)
    t0, t1 = path.t[i], path.t[i + 1]
    fac = (tq - t0) / (t1 - t0)
    return i, fac


def _linear_blend(values: ArrayLike, i, fac) -> ArrayLike:
    """(1 - fac) * values[i] + fac * values[i+1], exact at fac == 0 and fac == 1."""
    if isinstance(values, torch.Tensor):
        fac = fac.unsqueeze(-1)
    else:
        fac = np.asarray(fac)[..., np.newaxis]
    return (1 - fac) * values[i] + fac * values[i + 1]
