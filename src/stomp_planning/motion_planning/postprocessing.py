"""Define the conversion of optimized trajectory matrices into timed, validated trajectories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from stomp_planning.io.logging import log_error
from stomp_planning.motion_planning.errors import PlanningError, PlanningErrorCode
from stomp_planning.motion_planning.trajectories import Trajectory

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stomp_planning.kinematics.robot_model import JointGroup
    from stomp_planning.motion_planning.goal_resolution import ResolvedProblem
    from stomp_planning.motion_planning.interfaces import PlanningScene
    from stomp_planning.motion_planning.time_parameterization import TimeParameterizer


@dataclass(frozen=True)
class PostprocessResult:
    """A timed trajectory and whether it passed validation against the planning scene."""

    trajectory: Trajectory
    valid: bool


class ResultPostprocessor:
    """Converts optimizer output into a time-parameterized trajectory and validates it."""

    def __init__(
        self,
        group: JointGroup,
        time_parameterizer: TimeParameterizer,
        planning_scene: PlanningScene | None = None,
    ) -> None:
        """Initialize the postprocessor.

        :param group: Planning group whose joints the optimizer's matrix rows describe
        :param time_parameterizer: Pass assigning timestamps to the trajectory's points
        :param planning_scene: Scene used to validate the trajectory (None skips validation)
        """
        self.group = group
        self.time_parameterizer = time_parameterizer
        self.planning_scene = planning_scene

    def postprocess(
        self,
        parameters: NDArray[np.float64],
        problem: ResolvedProblem,
    ) -> PostprocessResult:
        """Time-parameterize an optimized matrix and check it against the planning scene.

        A trajectory in collision is still returned (marked invalid) for diagnostic purposes.

        :param parameters: Optimized joint positions, one row per joint and one column per step
        :param problem: Resolved problem the trajectory was optimized for
        :return: Timed trajectory and whether it is valid
        :raises PlanningError: If the trajectory cannot be time-parameterized
        """
        matrix = np.asarray(parameters, dtype=np.float64)
        try:
            trajectory = Trajectory.from_matrix(matrix, self.group.joint_names, self.group.name)
        except ValueError as error:
            raise PlanningError(PlanningErrorCode.PLANNING_FAILED, str(error)) from error

        velocity_scale = problem.request.max_velocity_scaling_factor
        if not self.time_parameterizer.compute_timestamps(trajectory, velocity_scale):
            log_error("STOMP Failed to generate timing data")
            raise PlanningError(
                PlanningErrorCode.TIME_PARAMETERIZATION_FAILED,
                "Failed to generate timing data",
            )

        if len(trajectory) > 1 and np.any(np.diff(trajectory.timestamps) <= 0.0):
            raise PlanningError(
                PlanningErrorCode.TIME_PARAMETERIZATION_FAILED,
                "Timing data is not monotonically increasing",
            )

        valid = True
        if self.planning_scene is not None:
            valid = self.planning_scene.is_path_valid(trajectory, self.group.name, verbose=True)
            if not valid:
                log_error("STOMP Trajectory is in collision")

        return PostprocessResult(trajectory, valid)
