"""Unit tests for the SeedRepairer class and the polynomial smoothing it applies."""

from __future__ import annotations

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from planning_fakes import interpolate, make_arm_group
from planning_strategies import joint_vectors, offsets_beyond, offsets_within, straight_seeds

from stomp_planning.kinematics import JointVector, Pose3D
from stomp_planning.motion_planning import CartesianGoal, JointGoal, PlanningError, SeedRepairer
from stomp_planning.motion_planning.errors import PlanningErrorCode
from stomp_planning.motion_planning.smoothing import SmoothingError, apply_polynomial_smoothing

GROUP = make_arm_group()


def joint_goal(values: JointVector) -> JointGoal:
    """Construct a joint-space goal from a joint vector."""
    return JointGoal(tuple(float(v) for v in values))


@given(joint_vectors(), st.integers(min_value=0, max_value=2))
def test_repair_rejects_seeds_shorter_than_three_timesteps(start: JointVector, n: int) -> None:
    """Verify that seeds with fewer than three columns are rejected as too short."""
    # Arrange - Create a seed with too few timesteps
    seed = np.tile(start[:, None], (1, n))
    repairer = SeedRepairer(GROUP)

    # Act/Assert - Expect that repair fails with an insufficient seed length
    with pytest.raises(PlanningError) as error_info:
        repairer.repair(seed, start, [joint_goal(start)])
    assert error_info.value.code is PlanningErrorCode.INSUFFICIENT_SEED_LENGTH


@settings(deadline=None)
@given(straight_seeds(), offsets_within(max_l1=0.5))
def test_repair_snaps_nearby_start_exactly(seed_data: tuple, offset: JointVector) -> None:
    """Verify that a seed starting within the deviation limit is snapped to the request start."""
    # Arrange - Shift the seed's start away from the request's start by a tolerable amount
    _, start, goal = seed_data
    num_timesteps = seed_data[0].shape[1]
    seed = interpolate(start + offset, goal, num_timesteps)
    repairer = SeedRepairer(GROUP)

    # Act - Repair the seed, then repair the result again
    repaired = repairer.repair(seed, start, [joint_goal(goal)])
    repaired_twice = repairer.repair(repaired.matrix, start, [joint_goal(goal)])

    # Assert - Expect exact endpoints, an untouched input, and idempotent repair
    assert np.array_equal(repaired.matrix[:, 0], start)
    assert np.array_equal(repaired.matrix[:, -1], goal)
    assert np.array_equal(seed[:, 0], start + offset), "Expected the input seed to be unmodified"
    assert repaired.num_timesteps == num_timesteps
    assert np.allclose(repaired_twice.matrix, repaired.matrix, atol=1e-8)


@given(straight_seeds(), offsets_beyond(min_l1=0.5))
def test_repair_rejects_distant_start(seed_data: tuple, offset: JointVector) -> None:
    """Verify that a seed starting beyond the deviation limit is rejected."""
    # Arrange - Shift the seed's start away from the request's start by too much
    _, start, goal = seed_data
    seed = interpolate(start + offset, goal, seed_data[0].shape[1])
    repairer = SeedRepairer(GROUP)

    # Act/Assert - Expect that repair fails with a start mismatch
    with pytest.raises(PlanningError) as error_info:
        repairer.repair(seed, start, [joint_goal(goal)])
    assert error_info.value.code is PlanningErrorCode.SEED_START_MISMATCH


def test_repair_rejects_distant_goal() -> None:
    """Verify that a seed ending far from every goal is rejected."""
    # Arrange - Create a seed ending one radian (summed) away from the requested goal
    start = np.zeros(3)
    goal = np.array([1.0, 1.0, 1.0])
    seed = interpolate(start, goal + np.array([1.0, 0.0, 0.0]), 5)
    repairer = SeedRepairer(GROUP)

    # Act/Assert - Expect that repair fails with a goal mismatch
    with pytest.raises(PlanningError) as error_info:
        repairer.repair(seed, start, [joint_goal(goal)])
    assert error_info.value.code is PlanningErrorCode.SEED_GOAL_MISMATCH


def test_repair_uses_first_satisfiable_goal() -> None:
    """Verify that goals are tried in order, skipping unsatisfiable ones."""
    # Arrange - Provide an out-of-bounds goal followed by a valid goal
    start = np.zeros(3)
    goal = np.array([0.5, 0.5, 0.5])
    seed = interpolate(start, goal, 6)
    goals = [joint_goal(np.array([10.0, 0.0, 0.0])), joint_goal(goal)]

    # Act
    repaired = SeedRepairer(GROUP).repair(seed, start, goals)

    # Assert - Expect that the valid goal was used
    assert np.array_equal(repaired.goal, goal)
    assert repaired.goal_deviation == pytest.approx(0.0)


def test_repair_fails_without_satisfiable_goal() -> None:
    """Verify that repair fails when no goal can be resolved to a configuration."""
    # Arrange - Provide only a Cartesian goal, without an IK resolver to solve it
    start = np.zeros(3)
    seed = interpolate(start, np.ones(3), 4)
    goals = [CartesianGoal(Pose3D.from_xyz_yaw(1.0, 1.0, 1.0))]

    # Act/Assert
    with pytest.raises(PlanningError) as error_info:
        SeedRepairer(GROUP).repair(seed, start, goals)
    assert error_info.value.code is PlanningErrorCode.NO_SATISFIABLE_GOAL


def test_repair_resolves_cartesian_goal_hinted_by_seed_end(ik_solver, ik_resolver) -> None:
    """Verify that a Cartesian goal is solved through IK, warm-started at the seed's end."""
    # Arrange - Create a seed ending at the configuration the Cartesian goal resolves to
    start = np.zeros(3)
    goal = np.array([0.4, -0.2, 0.3])
    seed = interpolate(start, goal, 5)
    repairer = SeedRepairer(GROUP, ik_resolver)

    # Act
    repaired = repairer.repair(seed, start, [CartesianGoal(Pose3D.from_xyz_yaw(*goal))])

    # Assert - Expect the IK solution as the goal and the seed's last column as the IK hint
    assert np.allclose(repaired.goal, goal)
    assert np.allclose(ik_solver.hints[-1], seed[:, -1])


def test_repair_deviation_limit_scales_with_dof() -> None:
    """Verify that the deviation limit can be interpreted per degree of freedom."""
    # Arrange - Shift the seed's start by 0.9 in total (above 0.5 but below 0.5 * 3 DOF)
    start = np.zeros(3)
    goal = np.ones(3)
    seed = interpolate(start + np.array([0.3, 0.3, 0.3]), goal, 5)

    # Act - Repair with a DOF-scaled limit
    repaired = SeedRepairer(GROUP, scale_deviation_with_dof=True).repair(
        seed,
        start,
        [joint_goal(goal)],
    )

    # Assert - Expect that the start was snapped rather than rejected
    assert repaired.start_deviation == pytest.approx(0.9)
    assert np.array_equal(repaired.matrix[:, 0], start)


def test_repair_rejects_seed_with_wrong_joint_count() -> None:
    """Verify that a seed with the wrong number of rows is rejected as invalid."""
    seed = np.zeros((2, 5))
    with pytest.raises(PlanningError) as error_info:
        SeedRepairer(GROUP).repair(seed, np.zeros(3), [joint_goal(np.zeros(3))])
    assert error_info.value.code is PlanningErrorCode.INVALID_SEED


def test_smoothing_keeps_endpoints_and_limits() -> None:
    """Verify that smoothing preserves endpoints exactly and keeps samples within limits."""
    # Arrange - Create a noisy trajectory that strays beyond the upper limit mid-way
    matrix = np.array([[0.0, 0.5, 1.2, 0.9, 1.1, 0.6, 0.0]])
    lower = np.array([-1.0])
    upper = np.array([1.0])

    # Act
    smoothed = apply_polynomial_smoothing(matrix, lower, upper, degree=5)

    # Assert
    assert smoothed[0, 0] == matrix[0, 0]
    assert smoothed[0, -1] == matrix[0, -1]
    assert np.all(smoothed <= upper[0] + 1e-5)
    assert np.all(smoothed >= lower[0] - 1e-5)


def test_smoothing_rejects_single_timestep() -> None:
    """Verify that a trajectory of one timestep cannot be smoothed."""
    with pytest.raises(SmoothingError):
        apply_polynomial_smoothing(np.zeros((3, 1)), -np.ones(3), np.ones(3))



@pytest.mark.parametrize("column", [0, 2, -1], ids=["start", "interior", "goal"])
def test_repair_rejects_non_finite_seed(column: int) -> None:
    """Verify that a seed containing NaN positions is invalid rather than snapped."""
    # Arrange
    start = np.zeros(3)
    goal = np.ones(3)
    seed = interpolate(start, goal, 5)
    seed[0, column] = np.nan

    # Act/Assert
    with pytest.raises(PlanningError) as error_info:
        SeedRepairer(GROUP).repair(seed, start, [joint_goal(goal)])
    assert error_info.value.code is PlanningErrorCode.INVALID_SEED


def test_repair_reports_smoothing_failure() -> None:
    """Verify that a seed which cannot be smoothed fails with a smoothing error code."""
    # Arrange - A repairer whose polynomial degree no fit can use
    start = np.zeros(3)
    goal = np.ones(3)
    repairer = SeedRepairer(GROUP, smoothing_degree=0)

    # Act/Assert
    with pytest.raises(PlanningError) as error_info:
        repairer.repair(interpolate(start, goal, 5), start, [joint_goal(goal)])
    assert error_info.value.code is PlanningErrorCode.SMOOTHING_FAILED


def test_smoothing_rejects_non_finite_positions() -> None:
    """Verify that smoothing refuses a trajectory with NaN samples instead of passing them on."""
    matrix = np.array([[0.0, 0.2, np.nan, 0.6, 1.0]])
    with pytest.raises(SmoothingError):
        apply_polynomial_smoothing(matrix, np.array([-1.0]), np.array([1.0]))
