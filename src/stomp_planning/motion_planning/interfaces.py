"""Define the interfaces of the collaborators a planning session delegates to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

    from stomp_planning.io.config_schema import OptimizationConfig
    from stomp_planning.kinematics.configuration import JointVector
    from stomp_planning.motion_planning.goal_resolution import ResolvedProblem
    from stomp_planning.motion_planning.trajectories import Trajectory


class Optimizer(Protocol):
    """A stochastic trajectory optimizer (e.g., STOMP) producing (DOF x timesteps) matrices."""

    def set_config(self, config: OptimizationConfig) -> None:
        """Replace the optimizer's configuration for subsequent solves."""
        ...

    def solve(self, start: JointVector, goal: JointVector) -> NDArray[np.float64] | None:
        """Optimize a trajectory between the given start and goal configurations.

        :return: Optimized (DOF x timesteps) matrix, or None if optimization failed
        """
        ...

    def solve_seeded(self, seed: NDArray[np.float64]) -> NDArray[np.float64] | None:
        """Optimize a trajectory starting from the given (DOF x timesteps) seed.

        :return: Optimized (DOF x timesteps) matrix, or None if optimization failed
        """
        ...

    def cancel(self) -> bool:
        """Ask the optimizer to stop at its next safe checkpoint.

        :return: True if the optimizer acknowledged the request, else False
        """
        ...

    def clear(self) -> None:
        """Reset any state the optimizer keeps between solves."""
        ...


class OptimizationTask(Protocol):
    """The cost functions and filters evaluated by the optimizer for a particular request."""

    def set_motion_plan_request(
        self,
        planning_scene: PlanningScene | None,
        problem: ResolvedProblem,
        config: OptimizationConfig,
    ) -> bool:
        """Prepare the task for the given resolved request.

        :return: True if the task is ready to be optimized, else False
        """
        ...


class PlanningScene(Protocol):
    """A model of the robot's environment able to validate trajectories."""

    def is_path_valid(self, trajectory: Trajectory, group_name: str, verbose: bool) -> bool:
        """Check that the full trajectory is collision-free and within bounds."""
        ...
