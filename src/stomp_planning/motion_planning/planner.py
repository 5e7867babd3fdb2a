"""Define the STOMP planner front end, which services motion plan requests one at a time."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from stomp_planning.io.logging import log_error, log_info, log_warning
from stomp_planning.kinematics.ik_chain import IKChainResolver
from stomp_planning.motion_planning.errors import PlanningError, PlanningErrorCode, PlanningOutcome
from stomp_planning.motion_planning.goal_resolution import GoalResolver
from stomp_planning.motion_planning.postprocessing import ResultPostprocessor
from stomp_planning.motion_planning.seed_repair import SeedRepairer
from stomp_planning.motion_planning.session import (
    CancellablePlanningSession,
    OptimizationProblem,
    SessionState,
)
from stomp_planning.motion_planning.time_parameterization import (
    IterativeParabolicTimeParameterization,
)

if TYPE_CHECKING:
    from stomp_planning.io.config_schema import OptimizationConfig, PlannerConfig
    from stomp_planning.kinematics.ik_chain import IKSolver
    from stomp_planning.kinematics.robot_model import JointGroup
    from stomp_planning.motion_planning.constraints import MotionPlanRequest
    from stomp_planning.motion_planning.goal_resolution import ResolvedProblem
    from stomp_planning.motion_planning.interfaces import (
        OptimizationTask,
        Optimizer,
        PlanningScene,
    )
    from stomp_planning.motion_planning.time_parameterization import TimeParameterizer

DESCRIPTION = "STOMP"


class StompPlanner:
    """Plans trajectories for one planning group using a cancellable trajectory optimizer.

    Each call to `solve` resolves the request's start and goal, repairs its seed trajectory (if
    any), runs the optimizer in a fresh planning session, and time-parameterizes and validates
    the result. Failures are reported through the returned outcome, never raised.
    """

    def __init__(
        self,
        config: PlannerConfig,
        group: JointGroup,
        optimizer: Optimizer,
        ik_solver: IKSolver | None = None,
        task: OptimizationTask | None = None,
        planning_scene: PlanningScene | None = None,
        time_parameterizer: TimeParameterizer | None = None,
    ) -> None:
        """Initialize the planner, validating its configuration against the planning group.

        :param config: Planner configuration for the group
        :param group: Planning group the planner plans for
        :param optimizer: Trajectory optimizer reused across requests
        :param ik_solver: Solver for Cartesian goals and seeds (None rejects them)
        :param task: Optimization task prepared for each request (None skips task setup)
        :param planning_scene: Scene used to validate planned trajectories (None skips checks)
        :param time_parameterizer: Timing pass (defaults to iterative parabolic timing)
        :raises ConfigurationError: If the configuration doesn't fit the group or IK chain
        """
        self.config = config.for_group(group)
        self.group = group
        self.optimizer = optimizer
        self.task = task
        self.planning_scene = planning_scene

        session_config = self.config.session
        self.ik_resolver = None
        if ik_solver is not None:
            self.ik_resolver = IKChainResolver(
                ik_solver,
                group,
                base_link=session_config.ik_base_link,
                tip_link=session_config.ik_tip_link,
                timeout_s=session_config.ik_timeout_s,
            )

        self.goal_resolver = GoalResolver(group, self.ik_resolver)
        self.seed_repairer = SeedRepairer(
            group,
            self.ik_resolver,
            max_deviation=session_config.max_seed_deviation,
            smoothing_degree=session_config.smoothing_degree,
            smoothing_tolerance=session_config.smoothing_tolerance,
            scale_deviation_with_dof=session_config.scale_seed_deviation_with_dof,
        )
        self.postprocessor = ResultPostprocessor(
            group,
            time_parameterizer or IterativeParabolicTimeParameterization(group),
            planning_scene,
        )

        self._session_lock = threading.Lock()
        self._active_session: CancellablePlanningSession | None = None

    @property
    def name(self) -> str:
        """Retrieve the name of the planner."""
        return DESCRIPTION

    @property
    def group_name(self) -> str:
        """Retrieve the name of the planning group serviced by the planner."""
        return self.group.name

    def can_service_request(self, request: MotionPlanRequest) -> bool:
        """Check quickly whether the planner supports the given request.

        :param request: Motion plan request to be checked
        :return: True if the request targets this group with a single joint-space goal region
        """
        if request.group_name != self.group_name:
            log_error(f"STOMP: Unsupported planning group '{request.group_name}' requested")
            return False

        if len(request.goal_constraints) != 1:
            log_error("STOMP: Can only handle a single goal region.")
            return False

        if not request.goal_constraints[0].joint_constraints:
            log_error("STOMP: Can only handle joint space goals.")
            return False

        return True

    def solve(self, request: MotionPlanRequest) -> PlanningOutcome:
        """Plan a trajectory for the given request.

        :param request: Motion plan request to be solved
        :return: Outcome holding the planned trajectory or the classified cause of failure
        """
        start_time_s = time.monotonic()

        if request.group_name != self.group_name:
            error = PlanningError(
                PlanningErrorCode.INVALID_GROUP,
                f"Planner for group '{self.group_name}' cannot plan for '{request.group_name}'",
            )
            return PlanningOutcome.failure(error, time.monotonic() - start_time_s)

        interval_s = self.config.session.watchdog_interval_s
        if request.allowed_planning_time_s < interval_s:
            log_warning(
                f"{self.name} allowed planning time {request.allowed_planning_time_s} is less "
                f"than the minimum planning time value of {interval_s}",
            )

        try:
            return self._solve(request, start_time_s)
        except PlanningError as error:
            return PlanningOutcome.failure(error, time.monotonic() - start_time_s)
        except Exception as exc:  # noqa: BLE001
            message = f"Planning raised {type(exc).__name__}: {exc}"
            log_error(f"{self.name} {message}")
            error = PlanningError(PlanningErrorCode.PLANNING_FAILED, message)
            return PlanningOutcome.failure(error, time.monotonic() - start_time_s)

    def _solve(self, request: MotionPlanRequest, start_time_s: float) -> PlanningOutcome:
        """Run the planning pipeline, raising a PlanningError at the first failing stage."""
        problem = self.goal_resolver.resolve(request)
        config = self.config.optimization

        seed = self.goal_resolver.extract_seed(problem)
        if seed is not None:
            log_info(f"{self.name} Seeding trajectory from MotionPlanRequest")
            repaired = self.seed_repairer.repair(
                seed.matrix,
                problem.start,
                problem.goal_candidates,
            )
            optimization_problem = OptimizationProblem.from_seed(repaired.matrix)
            config = config.model_copy(update={"num_timesteps": repaired.num_timesteps})
        else:
            optimization_problem = OptimizationProblem.from_endpoints(problem.start, problem.goal)

        self._prepare_task(problem, config)
        self.optimizer.set_config(config)

        session = CancellablePlanningSession(
            self.optimizer,
            watchdog_interval_s=self.config.session.watchdog_interval_s,
        )
        with self._session_lock:
            self._active_session = session
        try:
            result = session.run(optimization_problem, request.allowed_planning_time_s)
        finally:
            with self._session_lock:
                self._active_session = None

        if result.parameters is None:
            code = (
                PlanningErrorCode.CANCELLED
                if result.state is SessionState.CANCELLED
                else PlanningErrorCode.PLANNING_FAILED
            )
            log_error(f"{self.name} {result.message}")
            raise PlanningError(code, result.message)

        processed = self.postprocessor.postprocess(result.parameters, problem)
        planning_time_s = time.monotonic() - start_time_s

        if not processed.valid:
            return PlanningOutcome(
                PlanningErrorCode.PATH_IN_COLLISION,
                "STOMP Trajectory is in collision",
                trajectory=processed.trajectory,
                planning_time_s=planning_time_s,
            )

        log_info(f"{self.name} found a valid path after {planning_time_s:.3f} seconds")
        return PlanningOutcome(
            PlanningErrorCode.SUCCESS,
            f"Found a valid path after {planning_time_s:.3f} seconds",
            trajectory=processed.trajectory,
            planning_time_s=planning_time_s,
        )

    def _prepare_task(self, problem: ResolvedProblem, config: OptimizationConfig) -> None:
        """Set up the optimization task for the resolved request (if the planner has a task)."""
        if self.task is None:
            return

        if not self.task.set_motion_plan_request(self.planning_scene, problem, config):
            log_error(f"{self.name} failed to set up the optimization task")
            raise PlanningError(
                PlanningErrorCode.TASK_SETUP_FAILED,
                "Optimization task rejected the motion plan request",
            )

    def terminate(self) -> bool:
        """Request cancellation of the running planning session (safe to call concurrently).

        :return: True if cancellation was acknowledged or no session is running, else False
        """
        with self._session_lock:
            session = self._active_session

        if session is None:
            return True

        if not session.cancel():
            log_error(f"Failed to interrupt {self.name}")
            return False

        return True

    def clear(self) -> None:
        """Reset any state the optimizer keeps between requests."""
        self.optimizer.clear()
