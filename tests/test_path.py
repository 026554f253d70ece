import logging
import warnings

import numpy as np
import pytest
import torch

from frame_path import (
    DegenerateSegmentError,
    InvalidInputError,
    Path,
    PathError,
    SegmentKind,
    axis_angle_to_quaternion,
    build_path,
)


Z_AXIS = np.array([0.0, 0.0, 1.0])


def test_corner_parameters(convert, to_numpy, corner_positions, backend):
    path = build_path(convert(corner_positions))

    np.testing.assert_allclose(to_numpy(path.t), [0.0, 1.0, 2.0])
    assert path.backend == backend
    assert path.kinds == (SegmentKind.TRANSLATIONAL, SegmentKind.TRANSLATIONAL)
    assert not path.has_orientation
    assert path.q is None
    assert path.n_frames == len(path) == 3
    assert path.n_segments == 2
    assert path.end_parameter == pytest.approx(2.0)


def test_parameter_strictly_increasing_from_zero(convert, to_numpy):
    rng = np.random.default_rng(0)
    positions = np.cumsum(rng.normal(size=(20, 3)), axis=0)
    speeds = rng.uniform(0.5, 2.0, size=20)

    t = to_numpy(build_path(convert(positions), speeds=convert(speeds)).t)

    assert t[0] == 0.0
    assert np.all(np.diff(t) > 0)


def test_speeds_scale_increments(convert, to_numpy, corner_positions):
    path = build_path(convert(corner_positions), speeds=convert([1.0, 2.0, 2.0]))

    np.testing.assert_allclose(to_numpy(path.t), [0.0, 1.0 / 1.5, 1.0 / 1.5 + 0.5])


def test_zero_endpoint_speeds_allowed(convert, to_numpy, corner_positions):
    path = build_path(convert(corner_positions), speeds=convert([0.0, 1.0, 0.0]))

    np.testing.assert_allclose(to_numpy(path.t), [0.0, 2.0, 4.0])


def test_rotational_segment_uses_angle(convert, to_numpy):
    positions = np.zeros((2, 3))
    quats = np.stack([
        np.array([0.0, 0.0, 0.0, 1.0]),
        axis_angle_to_quaternion(Z_AXIS, np.pi / 2),
    ])

    path = build_path(convert(positions), convert(quats))

    np.testing.assert_allclose(to_numpy(path.t), [0.0, np.pi / 2], atol=1e-12)
    assert path.kinds == (SegmentKind.ROTATIONAL,)
    assert path.has_orientation


def test_translation_takes_precedence_over_rotation(convert, to_numpy):
    positions = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    quats = np.stack([
        np.array([0.0, 0.0, 0.0, 1.0]),
        axis_angle_to_quaternion(Z_AXIS, np.pi),
    ])

    path = build_path(convert(positions), convert(quats))

    np.testing.assert_allclose(to_numpy(path.t), [0.0, 2.0])
    assert path.kinds == (SegmentKind.TRANSLATIONAL,)


def test_mixed_segments(convert, to_numpy):
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
    quats = np.stack([
        np.array([0.0, 0.0, 0.0, 1.0]),
        np.array([0.0, 0.0, 0.0, 1.0]),
        axis_angle_to_quaternion(Z_AXIS, 0.5),
    ])

    path = build_path(convert(positions), convert(quats))

    np.testing.assert_allclose(to_numpy(path.t), [0.0, 1.0, 1.5], atol=1e-12)
    assert path.kinds == (SegmentKind.TRANSLATIONAL, SegmentKind.ROTATIONAL)


def test_empty_quaternions_mean_absent(corner_positions):
    path = build_path(corner_positions, quaternions=[])

    assert path.q is None


def test_from_frames_matches_build_path(corner_positions):
    a = Path.from_frames(corner_positions, speeds=[1.0, 2.0, 1.0])
    b = build_path(corner_positions, speeds=[1.0, 2.0, 1.0])

    np.testing.assert_array_equal(a.t, b.t)


def test_accepts_list_of_tensors():
    positions = [torch.tensor([0.0, 0.0, 0.0]), torch.tensor([0.0, 3.0, 4.0])]

    path = build_path(positions)

    assert path.backend == "torch"
    assert path.end_parameter == pytest.approx(5.0)


def test_inputs_are_copied(corner_positions):
    positions = corner_positions.copy()
    path = build_path(positions)
    positions[1] = [10.0, 10.0, 10.0]

    np.testing.assert_array_equal(path.r[1], [1.0, 0.0, 0.0])
    with pytest.raises(ValueError):
        path.r[1, 0] = 5.0
    with pytest.raises(ValueError):
        path.t[0] = 1.0


def test_path_is_frozen(corner_positions):
    path = build_path(corner_positions)

    with pytest.raises(AttributeError):
        path.t = np.zeros(3)


def test_gradient_tracking_positions_build_quietly(corner_positions):
    positions = torch.tensor(corner_positions, requires_grad=True)

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        path = build_path(positions)
        t_end = path.end_parameter

    assert t_end == pytest.approx(2.0)
    assert path.t.requires_grad


def test_logs_build_summary(corner_positions, caplog):
    with caplog.at_level(logging.DEBUG, logger="frame_path.path"):
        build_path(corner_positions)

    assert "3 frames" in caplog.text


# =============================================================================
# Degenerate segments
# =============================================================================


def test_coincident_positions_without_quaternions(convert):
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0, 0.0]])

    with pytest.raises(DegenerateSegmentError) as excinfo:
        build_path(convert(positions))

    assert excinfo.value.indices == (1, 2)
    assert isinstance(excinfo.value, PathError)


@pytest.mark.parametrize("angle", [0.0, 0.1, 0.3, 0.7, 1.0, 2.0, 3.0])
@pytest.mark.parametrize("axis", [[0.0, 0.0, 1.0], [1.0, 0.0, 0.0], [1.0, -2.0, 0.5]])
def test_coincident_frames_with_quaternions(convert, axis, angle):
    positions = np.zeros((2, 3))
    q = axis_angle_to_quaternion(np.array(axis), angle)
    quats = np.stack([q, q])

    with pytest.raises(DegenerateSegmentError) as excinfo:
        build_path(convert(positions), convert(quats))

    assert excinfo.value.indices == (0, 1)


def test_first_degenerate_segment_is_reported():
    positions = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0, 0.0]])

    with pytest.raises(DegenerateSegmentError) as excinfo:
        build_path(positions)

    assert excinfo.value.indices == (0, 1)


def test_epsilon_controls_coincidence():
    positions = np.array([[0.0, 0.0, 0.0], [1e-3, 0.0, 0.0]])

    assert build_path(positions).end_parameter == pytest.approx(1e-3)
    with pytest.raises(DegenerateSegmentError):
        build_path(positions, epsilon=1e-2)


# =============================================================================
# Invalid input
# =============================================================================


@pytest.mark.parametrize("epsilon", [0.0, -1e-8, float("nan")])
def test_non_positive_epsilon(corner_positions, epsilon):
    with pytest.raises(InvalidInputError, match="epsilon"):
        build_path(corner_positions, epsilon=epsilon)


def test_single_frame(convert):
    with pytest.raises(InvalidInputError, match="at least 2 frames"):
        build_path(convert([[0.0, 0.0, 0.0]]))


def test_positions_must_be_3d(convert):
    with pytest.raises(InvalidInputError, match="positions"):
        build_path(convert([[0.0, 0.0], [1.0, 0.0]]))


def test_speeds_length_mismatch(convert, corner_positions):
    with pytest.raises(InvalidInputError, match="speeds must have length 3"):
        build_path(convert(corner_positions), speeds=convert([1.0, 1.0]))


def test_quaternions_length_mismatch(convert, corner_positions):
    quats = np.tile([0.0, 0.0, 0.0, 1.0], (2, 1))

    with pytest.raises(InvalidInputError, match="quaternions"):
        build_path(convert(corner_positions), convert(quats))


def test_zero_interior_speed(convert, corner_positions):
    with pytest.raises(InvalidInputError) as excinfo:
        build_path(convert(corner_positions), speeds=convert([1.0, 0.0, 1.0]))

    assert excinfo.value.index == 1
    assert "interior" in excinfo.value.constraint


@pytest.mark.parametrize("speeds, index", [([-1.0, 1.0, 1.0], 0), ([1.0, 1.0, -0.5], 2)])
def test_negative_endpoint_speed(convert, corner_positions, speeds, index):
    with pytest.raises(InvalidInputError) as excinfo:
        build_path(convert(corner_positions), speeds=convert(speeds))

    assert excinfo.value.index == index


def test_two_resting_frames():
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])

    with pytest.raises(InvalidInputError, match="both be 0"):
        build_path(positions, speeds=[0.0, 0.0])
