"""Unit tests for trajectories and seed trajectory conversions."""

from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given
from planning_fakes import ARM_JOINT_NAMES
from planning_strategies import seed_trajectories

from stomp_planning.motion_planning import Constraints, SeedTrajectory, Trajectory, TrajectoryPoint


@given(seed_trajectories())
def test_seed_trajectory_to_constraints_and_back(seed: SeedTrajectory) -> None:
    """Verify that a seed is unchanged after converting to and from joint-constraint waypoints."""
    # Arrange/Act - Encode the seed as waypoints, then decode the waypoints
    waypoints = seed.to_constraints()
    result = SeedTrajectory.from_constraints(waypoints, seed.joint_names)

    # Assert - Expect one waypoint per timestep and an equal matrix
    assert len(waypoints) == seed.num_timesteps
    assert np.allclose(result.matrix, seed.matrix)


def test_seed_from_constraints_rejects_missing_joint() -> None:
    """Verify that a waypoint lacking one of the joints is rejected."""
    waypoints = (Constraints.from_configuration({"joint_1": 0.0, "joint_2": 0.0}),)
    with pytest.raises(ValueError, match="does not have 3 constraints"):
        SeedTrajectory.from_constraints(waypoints, ARM_JOINT_NAMES)


def test_trajectory_from_matrix_and_back() -> None:
    """Verify that a trajectory built from a matrix reproduces the matrix."""
    # Arrange
    matrix = np.arange(12, dtype=np.float64).reshape(3, 4)

    # Act
    trajectory = Trajectory.from_matrix(matrix, ARM_JOINT_NAMES, "manipulator")

    # Assert
    assert len(trajectory) == 4
    assert trajectory.joint_names == list(ARM_JOINT_NAMES)
    assert np.array_equal(trajectory.to_matrix(), matrix)
    assert np.array_equal(trajectory.to_matrix("velocities"), np.zeros((3, 4)))


def test_trajectory_rejects_inconsistent_joint_names() -> None:
    """Verify that trajectory points must all name the same joints."""
    points = [TrajectoryPoint(0.0, {"joint_1": 0.0}), TrajectoryPoint(1.0, {"joint_2": 0.0})]
    with pytest.raises(ValueError):
        Trajectory("manipulator", points)
