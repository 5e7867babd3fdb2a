"""Unit tests for iterative parabolic time parameterization."""

from __future__ import annotations

import numpy as np
from hypothesis import given, settings
from planning_fakes import interpolate, make_arm_group
from planning_strategies import joint_vectors

from stomp_planning.kinematics import JointVector
from stomp_planning.motion_planning import IterativeParabolicTimeParameterization, Trajectory

GROUP = make_arm_group()


def straight_trajectory(start: JointVector, goal: JointVector, n: int = 10) -> Trajectory:
    """Construct an untimed straight-line trajectory for the arm group."""
    return Trajectory.from_matrix(interpolate(start, goal, n), GROUP.joint_names, GROUP.name)


@settings(deadline=None)
@given(joint_vectors(), joint_vectors())
def test_timestamps_increase_and_respect_velocity_limits(
    start: JointVector,
    goal: JointVector,
) -> None:
    """Verify that timing yields increasing timestamps and segment speeds within limits."""
    # Arrange
    trajectory = straight_trajectory(start, goal)
    timing = IterativeParabolicTimeParameterization(GROUP)

    # Act
    success = timing.compute_timestamps(trajectory, velocity_scale=0.5)

    # Assert - Expect average segment speeds no faster than the scaled velocity limits
    assert success
    durations = np.diff(trajectory.timestamps)
    assert np.all(durations > 0)
    speeds = np.abs(np.diff(trajectory.to_matrix(), axis=1)) / durations
    assert np.all(speeds <= GROUP.max_velocities[:, None] * 0.5 + 1e-9)


def test_endpoints_are_at_rest() -> None:
    """Verify that the timed trajectory starts and ends with zero velocity."""
    trajectory = straight_trajectory(np.zeros(3), np.ones(3))

    IterativeParabolicTimeParameterization(GROUP).compute_timestamps(trajectory)

    assert trajectory.points[0].time_s == 0.0
    assert all(v == 0.0 for v in trajectory.points[0].velocities.values())
    assert all(v == 0.0 for v in trajectory.points[-1].velocities.values())


def test_invalid_velocity_scale_uses_full_speed() -> None:
    """Verify that an out-of-range velocity scale is replaced by full speed."""
    # Arrange - Time two identical trajectories, one with an invalid scale
    expected = straight_trajectory(np.zeros(3), np.ones(3))
    result = straight_trajectory(np.zeros(3), np.ones(3))
    timing = IterativeParabolicTimeParameterization(GROUP)

    # Act
    timing.compute_timestamps(expected, velocity_scale=1.0)
    timing.compute_timestamps(result, velocity_scale=3.0)

    # Assert
    assert np.allclose(result.timestamps, expected.timestamps)


def test_unknown_joints_fail_timing() -> None:
    """Verify that a trajectory over joints outside the group cannot be timed."""
    trajectory = Trajectory.from_matrix(np.zeros((1, 3)), ["elbow"], GROUP.name)
    assert not IterativeParabolicTimeParameterization(GROUP).compute_timestamps(trajectory)


def test_segments_stretch_until_accelerations_are_within_limits() -> None:
    """Verify that sharp reversals are slowed until every acceleration respects its limit."""
    # Arrange - A zig-zag on the first joint, reversing direction at every interior point
    matrix = np.zeros((3, 7))
    matrix[0] = [0.0, 0.1, 0.0, 0.1, 0.0, 0.1, 0.0]
    trajectory = Trajectory.from_matrix(matrix, GROUP.joint_names, GROUP.name)
    velocity_limited_duration_s = 6 * 0.1 / GROUP.max_velocities[0]

    # Act
    success = IterativeParabolicTimeParameterization(GROUP).compute_timestamps(trajectory)

    # Assert - Expect longer segments than the velocity limits alone require
    assert success
    assert trajectory.duration_s > velocity_limited_duration_s
    accelerations = trajectory.to_matrix("accelerations")
    assert np.all(np.abs(accelerations) <= GROUP.max_accelerations[:, None] + 1e-9)
