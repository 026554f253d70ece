"""
Frame paths: speed-weighted parameterization and interpolation of frame sequences.

Supports both NumPy and PyTorch backends.

A Path is built once from an ordered sequence of frames (positions, optional
orientation quaternions, optional speeds) and queried any number of times:

Usage Examples
--------------
Build a path:
    path = build_path(positions)                       # (n, 3)
    path = build_path(positions, quaternions)          # + (n, 4), xyzw
    path = Path.from_frames(positions, speeds=speeds)  # + (n,)

Query a path:
    t_end = end_parameter(path)
    r, q = interpolate(path, 0.5 * t_end)
    r = interpolate_position(path, np.linspace(0.0, t_end, 50))

Traverse a path in a simulation ending at stop_time:
    r, q = sample_path(path, time, stop_time)

Conventions
-----------
- Quaternion: xyzw (matches SciPy/ROS convention), rotation from the world
  frame to the respective frame
- Path parameter: t[0] = 0, strictly increasing; distance (or rotation angle
  where the origins coincide) divided by the average speed of each segment
- Queries outside [0, t_end] extrapolate through the first / last two frames
"""

# Types and constants
from ._core import (
    ArrayLike,
    Backend,
    DegenerateSegmentError,
    EPS,
    InvalidInputError,
    PathError,
    SEPS,
    SMALL_ANGLE_THRESHOLD,
    SegmentKind,
)

# Quaternion operations
from .rotation_conversions import (
    axis_angle_to_quaternion,
    quaternion_angle,
    quaternion_conjugate,
    quaternion_multiply,
    quaternion_relative,
    rotvec_to_quaternion,
)

# Path
from .path import Path, build_path

# Interpolation
from .interpolation import (
    end_parameter,
    interpolate,
    interpolate_position,
    locate_interval,
    parameter_at_time,
    sample_path,
)

__all__ = [
    # Types
    "ArrayLike",
    "Backend",
    "SegmentKind",
    # Constants
    "EPS",
    "SEPS",
    "SMALL_ANGLE_THRESHOLD",
    # Errors
    "PathError",
    "InvalidInputError",
    "DegenerateSegmentError",
    # Path
    "Path",
    "build_path",
    # Interpolation
    "end_parameter",
    "locate_interval",
    "interpolate",
    "interpolate_position",
    "parameter_at_time",
    "sample_path",
    # Quaternion
    "quaternion_conjugate",
    "quaternion_multiply",
    "quaternion_relative",
    "quaternion_angle",
    "rotvec_to_quaternion",
    "axis_angle_to_quaternion",
]

__version__ = "0.1.0"
