"""Define a class that validates a seed trajectory and repairs its endpoints to match a request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from stomp_planning.io.logging import log_debug, log_error
from stomp_planning.kinematics.configuration import as_joint_vector, l1_distance
from stomp_planning.motion_planning.errors import PlanningError, PlanningErrorCode
from stomp_planning.motion_planning.goals import GoalContext, resolve_first_goal
from stomp_planning.motion_planning.smoothing import SmoothingError, apply_polynomial_smoothing

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import ArrayLike, NDArray

    from stomp_planning.kinematics.configuration import JointVector
    from stomp_planning.kinematics.ik_chain import IKChainResolver
    from stomp_planning.kinematics.robot_model import JointGroup
    from stomp_planning.motion_planning.goals import GoalDescription

MIN_SEED_TIMESTEPS = 3


@dataclass(frozen=True)
class RepairedSeed:
    """A seed trajectory whose endpoints exactly match the request's start and goal."""

    matrix: NDArray[np.float64]
    start: JointVector
    goal: JointVector
    start_deviation: float
    """Summed absolute difference between the original seed's first column and the start."""

    goal_deviation: float
    """Summed absolute difference between the original seed's last column and the goal."""

    @property
    def num_timesteps(self) -> int:
        """Retrieve the number of timesteps (matrix columns) in the repaired seed."""
        return int(self.matrix.shape[1])


class SeedRepairer:
    """Validates a seed trajectory against a request, snapping its endpoints and smoothing it."""

    def __init__(
        self,
        group: JointGroup,
        ik_resolver: IKChainResolver | None = None,
        max_deviation: float = 0.5,
        smoothing_degree: int = 5,
        smoothing_tolerance: float = 1e-5,
        scale_deviation_with_dof: bool = False,
    ) -> None:
        """Initialize the repairer for a planning group.

        :param group: Planning group whose joint limits the repaired seed must respect
        :param ik_resolver: Resolver used for Cartesian goal candidates (None rejects them)
        :param max_deviation: Largest summed absolute joint difference that may be snapped
        :param smoothing_degree: Maximum degree of the smoothing polynomials
        :param smoothing_tolerance: Tolerance of the smoothing fit
        :param scale_deviation_with_dof: Whether `max_deviation` is per-DOF (multiplied by DOF)
        """
        self.group = group
        self.ik_resolver = ik_resolver
        self.smoothing_degree = smoothing_degree
        self.smoothing_tolerance = smoothing_tolerance

        self.max_deviation = max_deviation
        if scale_deviation_with_dof:
            self.max_deviation *= group.dof

    def repair(
        self,
        seed_matrix: ArrayLike,
        request_start: ArrayLike,
        goal_candidates: Sequence[GoalDescription],
    ) -> RepairedSeed:
        """Repair a seed so it starts at the request's start and ends at its first viable goal.

        :param seed_matrix: Seed trajectory with one row per joint and one column per timestep
        :param request_start: Actual start configuration of the request
        :param goal_candidates: Goal descriptions of the request, in priority order
        :return: Repaired seed (the input matrix is left unmodified)
        :raises PlanningError: If the seed is malformed or too short, too far from the start or
            goal, no goal is satisfiable, or smoothing fails
        """
        parameters = np.array(seed_matrix, dtype=np.float64)
        start = as_joint_vector(request_start)

        if parameters.ndim != 2 or parameters.shape[0] != self.group.dof:
            raise PlanningError(
                PlanningErrorCode.INVALID_SEED,
                f"Seed matrix of shape {parameters.shape} doesn't describe {self.group.dof} joints",
            )

        if parameters.shape[1] < MIN_SEED_TIMESTEPS:
            message = f"Found less than {MIN_SEED_TIMESTEPS} points in seed trajectory"
            log_error(f"STOMP {message}")
            raise PlanningError(PlanningErrorCode.INSUFFICIENT_SEED_LENGTH, message)

        if not np.all(np.isfinite(parameters)):
            message = "Seed trajectory contains non-finite joint positions"
            log_error(f"STOMP {message}")
            raise PlanningError(PlanningErrorCode.INVALID_SEED, message)

        start_deviation = l1_distance(parameters[:, 0], start)
        if not start_deviation <= self.max_deviation:  # NaN deviations are rejected too
            message = (
                f"Start State is in discrepancy with the seed trajectory "
                f"(deviation {start_deviation:.4f} > {self.max_deviation})"
            )
            log_error(f"STOMP {message}")
            raise PlanningError(PlanningErrorCode.SEED_START_MISMATCH, message)
        parameters[:, 0] = start

        hint = as_joint_vector(parameters[:, -1])
        context = GoalContext(group=self.group, ik_resolver=self.ik_resolver, hint=hint)
        goal = resolve_first_goal(goal_candidates, context)
        if goal is None:
            message = "No goal of the request is satisfiable"
            log_error(f"STOMP {message}")
            raise PlanningError(PlanningErrorCode.NO_SATISFIABLE_GOAL, message)

        goal_deviation = l1_distance(parameters[:, -1], goal)
        if not goal_deviation <= self.max_deviation:
            message = (
                f"Goal in seed too far away from Goal requested "
                f"(deviation {goal_deviation:.4f} > {self.max_deviation})"
            )
            log_error(f"STOMP {message}")
            raise PlanningError(PlanningErrorCode.SEED_GOAL_MISMATCH, message)
        parameters[:, -1] = goal

        try:
            smoothed = apply_polynomial_smoothing(
                parameters,
                self.group.lower_bounds,
                self.group.upper_bounds,
                degree=self.smoothing_degree,
                tolerance=self.smoothing_tolerance,
            )
        except SmoothingError as error:
            log_error(f"STOMP failed to smooth the seed trajectory: {error}")
            raise PlanningError(PlanningErrorCode.SMOOTHING_FAILED, str(error)) from error

        log_debug(f"STOMP repaired seed ({start_deviation=:.4f}, {goal_deviation=:.4f})")
        return RepairedSeed(smoothed, start, goal, start_deviation, goal_deviation)
