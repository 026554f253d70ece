"""
Path class: an immutable, parameterized sequence of frames.

A path parameter `t` is defined on n frames in the following way:

- t[0] = 0
- t[k+1] = t[k] + |r[k+1] - r[k]| / avg(v[k], v[k+1])   if the origins differ
- t[k+1] = t[k] + angle(q[k], q[k+1]) / avg(v[k], v[k+1]) if the origins coincide

where `angle` is the planar rotation angle between the two frames in [rad].
If v[k] is the desired velocity (or angular velocity) at frame k, then `t` is
approximately the time needed to move along the path.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import torch

from ._core import (
    ArrayLike,
    Backend,
    DegenerateSegmentError,
    InvalidInputError,
    SEPS,
    SegmentKind,
    get_backend,
    infer_backend,
    to_backend,
    vector_norm,
)
from .rotation_conversions import quaternion_angle, quaternion_relative

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True, eq=False)
class Path:
    """
    Immutable path over a sequence of frames.

    Holds three co-indexed sequences: path parameter `t` (n,), positions `r` (n, 3)
    and quaternions `q` (n, 4) in xyzw format. `q` is None when the frames carry
    no orientation. Build with `build_path()` or `Path.from_frames()`.

    Example:
        >>> path = Path.from_frames(positions, quaternions)
        >>> t_end = path.end_parameter
        >>> r, q = interpolate(path, 0.5 * t_end)
    """

    t: ArrayLike  # (n,)
    r: ArrayLike  # (n, 3)
    q: Optional[ArrayLike]  # (n, 4) or None
    kinds: Tuple[SegmentKind, ...]  # (n-1,)

    @classmethod
    def from_frames(
        cls,
        positions,
        quaternions=None,
        speeds=None,
        epsilon: float = SEPS,
    ) -> "Path":
        """Build a path from frame data. See `build_path`."""
        return build_path(positions, quaternions, speeds, epsilon)

    @property
    def backend(self) -> Backend:
        return get_backend(self.t)

    @property
    def n_frames(self) -> int:
        return int(self.t.shape[0])

    @property
    def n_segments(self) -> int:
        return self.n_frames - 1

    @property
    def has_orientation(self) -> bool:
        return self.q is not None

    @property
    def end_parameter(self) -> float:
        """Path parameter of the last frame (first frame is at 0)."""
        t_end = self.t[-1]
        if isinstance(t_end, torch.Tensor):
            t_end = t_end.detach()
        return float(t_end)

    def __len__(self) -> int:
        return self.n_frames

    def __repr__(self) -> str:
        return (
            f"Path(n_frames={self.n_frames}, end_parameter={self.end_parameter:.6g}, "
            f"has_orientation={self.has_orientation}, backend={self.backend!r})"
        )


# =============================================================================
# Building
# =============================================================================


def build_path(
    positions,
    quaternions=None,
    speeds: Optional[Sequence[float]] = None,
    epsilon: float = SEPS,
) -> Path:
    """
    Build a Path from frame positions, optional orientations and speeds.

    Args:
        positions: Frame origins (n, 3), n >= 2
        quaternions: Frame orientations (n, 4) in xyzw format describing the rotation
            from the world frame to each frame; None or empty if absent
        speeds: Desired speed at each frame (n,), defaults to ones. Interior speeds
            must be > 0, the first and last speed >= 0
        epsilon: Distance / angle below which two frames are considered to coincide

    Returns:
        Path

    Raises:
        InvalidInputError: a structural precondition is violated
        DegenerateSegmentError: two consecutive frames coincide
    """
    if not epsilon > 0.0:
        raise InvalidInputError(f"epsilon must be > 0, got {epsilon}")

    backend = infer_backend(positions)
    r = _copy_frames(positions, backend)
    if backend == "torch":
        dtype = r.dtype if r.is_floating_point() else torch.float64
        device = r.device
        r = r.to(dtype=dtype)
    else:
        dtype, device = np.float64, None

    if r.ndim != 2 or r.shape[-1] != 3:
        raise InvalidInputError(f"positions must have shape (n, 3), got {tuple(r.shape)}")
    n = r.shape[0]
    if n < 2:
        raise InvalidInputError(f"at least 2 frames are required, got {n}")

    if speeds is None:
        v = torch.ones(n, dtype=dtype, device=device) if backend == "torch" else np.ones(n)
    else:
        v = to_backend(_copy_frames(speeds, backend), backend, dtype=dtype, device=device)
        if v.ndim != 1 or v.shape[0] != n:
            raise InvalidInputError(f"speeds must have length {n}, got shape {tuple(v.shape)}")

    q = None
    if quaternions is not None and len(quaternions) > 0:
        q = to_backend(_copy_frames(quaternions, backend), backend, dtype=dtype, device=device)
        if q.ndim != 2 or tuple(q.shape) != (n, 4):
            raise InvalidInputError(f"quaternions must have shape ({n}, 4), got {tuple(q.shape)}")

    _check_speeds(v)

    if backend == "numpy":
        increments, rotational, degenerate = _segment_increments_numpy(r, q, v, epsilon)
        bad = np.flatnonzero(degenerate)
        first_bad = int(bad[0]) if bad.size else None
    else:
        increments, rotational, degenerate = _segment_increments_torch(r, q, v, epsilon)
        bad = torch.nonzero(degenerate).flatten()
        first_bad = int(bad[0]) if bad.numel() else None

    if first_bad is not None:
        raise DegenerateSegmentError(first_bad, first_bad + 1, rotational=q is not None)

    if backend == "numpy":
        t = np.concatenate([np.zeros(1), np.cumsum(increments)])
        for arr in (t, r, q):
            if arr is not None:
                arr.flags.writeable = False
    else:
        t = torch.cat([torch.zeros(1, dtype=dtype, device=device), torch.cumsum(increments, dim=0)])
    kinds = tuple(SegmentKind.ROTATIONAL if k else SegmentKind.TRANSLATIONAL for k in rotational.tolist())
    path = Path(t=t, r=r, q=q, kinds=kinds)

    logger.debug(
        "Built path: %d frames, %d rotational segments, end parameter %.6g",
        n,
        sum(k is SegmentKind.ROTATIONAL for k in kinds),
        path.end_parameter,
    )
    return path


# =============================================================================
# Internal: Validation
# =============================================================================


def _copy_frames(x, backend: Backend):
    """Private copy of caller-owned frame data."""
    if backend == "torch":
        if isinstance(x, torch.Tensor):
            return x.clone()
        return to_backend(x, "torch").clone()
    return np.array(to_backend(x, "numpy"), dtype=np.float64, copy=True)


def _check_speeds(v: ArrayLike) -> None:
    n = v.shape[0]
    if not v[0] >= 0.0:
        raise InvalidInputError("speeds[0] must be >= 0", index=0)
    if not v[-1] >= 0.0:
        raise InvalidInputError("speeds[-1] must be >= 0", index=n - 1)
    # Only reachable with two frames: a segment needs a positive average speed
    if n == 2 and not v[0] + v[1] > 0.0:
        raise InvalidInputError("speeds[0] and speeds[1] must not both be 0", index=0)
    interior = v[1:-1]
    if isinstance(v, torch.Tensor):
        bad = torch.nonzero(~(interior > 0.0)).flatten()
        if bad.numel():
            raise InvalidInputError("interior speeds must be > 0", index=int(bad[0]) + 1)
        return
    bad = np.flatnonzero(~(interior > 0.0))
    if bad.size:
        raise InvalidInputError("interior speeds must be > 0", index=int(bad[0]) + 1)


# =============================================================================
# Internal: Segment Increments
# =============================================================================


def _segment_increments_numpy(
    r: np.ndarray, q: Optional[np.ndarray], v: np.ndarray, epsilon: float
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Per-segment parameter increments, rotational mask and degenerate mask."""
    slen = vector_norm(r[1:] - r[:-1])
    avg_speed = (v[1:] + v[:-1]) / 2
    translational = slen > epsilon

    if q is None:
        return slen / avg_speed, np.zeros_like(translational), ~translational

    # Only segments without translation fall back to the rotation angle
    angle = quaternion_angle(quaternion_relative(q[:-1], q[1:]))
    rotational = ~translational & ~(angle < epsilon)
    degenerate = ~translational & ~rotational
    increments = np.where(translational, slen, angle) / avg_speed
    return increments, rotational, degenerate


def _segment_increments_torch(
    r: torch.Tensor, q: Optional[torch.Tensor], v: torch.Tensor, epsilon: float
) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """Per-segment parameter increments, rotational mask and degenerate mask."""
    slen = vector_norm(r[1:] - r[:-1])
    avg_speed = (v[1:] + v[:-1]) / 2
    translational = slen > epsilon

    if q is None:
        return slen / avg_speed, torch.zeros_like(translational), ~translational

    angle = quaternion_angle(quaternion_relative(q[:-1], q[1:]))
    rotational = ~translational & ~(angle < epsilon)
    degenerate = ~translational & ~rotational
    increments = torch.where(translational, slen, angle) / avg_speed
    return increments, rotational, degenerate
