"""Define a class resolving the start and goal configurations of a motion plan request.

Requests may carry a seed trajectory in their trajectory constraints, given either as joint
waypoints (one constraint set per timestep) or as Cartesian waypoints (a single constraint set
of paired position and orientation constraints). A Cartesian-seeded request takes its start and
goal from the first and last Cartesian waypoints rather than from its start state and goals.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from stomp_planning.io.logging import log_debug, log_error, log_info, log_warning
from stomp_planning.kinematics.configuration import configuration_from_vector
from stomp_planning.motion_planning.constraints import RobotState
from stomp_planning.motion_planning.errors import PlanningError, PlanningErrorCode
from stomp_planning.motion_planning.goals import (
    GoalContext,
    JointGoal,
    goals_from_constraints,
    resolve_first_goal,
)
from stomp_planning.motion_planning.trajectories import SeedTrajectory

if TYPE_CHECKING:
    from stomp_planning.kinematics.configuration import JointVector
    from stomp_planning.kinematics.ik_chain import IKChainResolver
    from stomp_planning.kinematics.robot_model import JointGroup
    from stomp_planning.motion_planning.constraints import MotionPlanRequest
    from stomp_planning.motion_planning.goals import GoalDescription


class SeedType(Enum):
    """The kind of seed trajectory carried by a request's trajectory constraints."""

    NONE = 0
    JOINT = 1
    CARTESIAN = 2


def classify_seed(request: MotionPlanRequest) -> SeedType:
    """Determine whether a request carries a joint-space seed, a Cartesian seed, or none.

    :param request: Motion plan request whose trajectory constraints are inspected
    :return: Kind of seed carried by the request
    :raises PlanningError: If the constraints match neither seed shape
    """
    constraints = request.trajectory_constraints
    if not constraints:
        return SeedType.NONE

    if any(c.empty for c in constraints):
        raise PlanningError(
            PlanningErrorCode.AMBIGUOUS_SEED_TYPE,
            "Seed trajectory contains an empty constraint set",
        )

    if all(c.has_joint_constraints for c in constraints):
        if any(c.position_constraints or c.orientation_constraints for c in constraints):
            raise PlanningError(
                PlanningErrorCode.AMBIGUOUS_SEED_TYPE,
                "Seed trajectory mixes joint and Cartesian constraints",
            )
        return SeedType.JOINT

    if len(constraints) == 1 and not constraints[0].has_joint_constraints:
        waypoints = constraints[0]
        n_positions = len(waypoints.position_constraints)
        n_orientations = len(waypoints.orientation_constraints)
        if n_positions > 0 and n_positions == n_orientations:
            return SeedType.CARTESIAN

        raise PlanningError(
            PlanningErrorCode.AMBIGUOUS_SEED_TYPE,
            f"Cartesian seed has {n_positions} position and {n_orientations} orientation "
            "constraints; expected matching pairs",
        )

    raise PlanningError(
        PlanningErrorCode.AMBIGUOUS_SEED_TYPE,
        "Seed trajectory constraints are neither all joint waypoints nor one Cartesian path",
    )


@dataclass(frozen=True)
class ResolvedProblem:
    """Concrete start and goal configurations resolved from a motion plan request.

    Downstream stages read the start state and goal candidates from here rather than from the
    request, which is never modified.
    """

    request: MotionPlanRequest
    start: JointVector
    goal: JointVector
    goal_candidates: tuple[GoalDescription, ...]
    """Goals in priority order (for Cartesian seeds, only the resolved joint goal)."""

    seed_type: SeedType
    start_state: RobotState
    """Start state of the request with the resolved start substituted for the group's joints."""

    @property
    def group_name(self) -> str:
        """Retrieve the planning group named by the request."""
        return self.request.group_name


class GoalResolver:
    """Resolves start and goal joint configurations from motion plan requests."""

    def __init__(self, group: JointGroup, ik_resolver: IKChainResolver | None = None) -> None:
        """Initialize the resolver for a planning group.

        :param group: Planning group whose active joints the configurations describe
        :param ik_resolver: Resolver for Cartesian goals and seeds (None rejects them)
        """
        self.group = group
        self.ik_resolver = ik_resolver

    def resolve(self, request: MotionPlanRequest) -> ResolvedProblem:
        """Resolve the start and goal configurations of the given request.

        :param request: Motion plan request to be resolved (left unmodified)
        :return: Resolved problem holding the start, goal, and remaining goal candidates
        :raises PlanningError: If the start or goal cannot be resolved
        """
        seed_type = classify_seed(request)
        if seed_type is SeedType.CARTESIAN:
            return self._resolve_cartesian(request)

        return self._resolve_joint(request, seed_type)

    def _resolve_joint(self, request: MotionPlanRequest, seed_type: SeedType) -> ResolvedProblem:
        """Extract the start from the start state and the goal from the goal constraints."""
        try:
            start = self.group.vector_from_configuration(request.start_state.joint_positions)
        except KeyError as error:
            message = f"Failed to extract start state from MotionPlanRequest: {error}"
            log_error(f"STOMP {message}")
            raise PlanningError(PlanningErrorCode.INVALID_START_STATE, message) from error

        if not self.group.satisfies_bounds(start):
            log_error("STOMP Start joint pose is out of bounds")
            raise PlanningError(
                PlanningErrorCode.START_OUT_OF_BOUNDS,
                "Start joint pose is out of bounds",
            )

        if not request.goal_constraints:
            log_error("STOMP A goal constraint was not provided")
            raise PlanningError(
                PlanningErrorCode.NO_JOINT_GOAL_FOUND,
                "A goal constraint was not provided",
            )

        goal_candidates = tuple(goals_from_constraints(request.goal_constraints, self.group))
        context = GoalContext(group=self.group, ik_resolver=self.ik_resolver, hint=start)
        goal = resolve_first_goal(goal_candidates, context)
        if goal is None:
            message = "Unable to retrieve a valid goal from the MotionPlanRequest"
            log_error(f"STOMP {message}")
            raise PlanningError(PlanningErrorCode.NO_JOINT_GOAL_FOUND, message)

        log_debug("STOMP Found goal from the request's goal constraints")
        return ResolvedProblem(
            request=request,
            start=start,
            goal=goal,
            goal_candidates=goal_candidates,
            seed_type=seed_type,
            start_state=request.start_state,
        )

    def _resolve_cartesian(self, request: MotionPlanRequest) -> ResolvedProblem:
        """Solve IK at the first and last Cartesian waypoints for the start and goal."""
        if self.ik_resolver is None:
            raise PlanningError(
                PlanningErrorCode.START_IK_FAILED,
                "Cartesian seed requires an IK solver, but none was provided",
            )

        log_info("STOMP Using Cartesian seed")
        waypoints = request.trajectory_constraints[0].cartesian_waypoints()

        start = self.ik_resolver.resolve_one(waypoints[0])
        if start is None:
            log_error("STOMP failed to get the start positions")
            raise PlanningError(
                PlanningErrorCode.START_IK_FAILED,
                f"IK failed for the first Cartesian waypoint {waypoints[0]}",
            )

        goal = self.ik_resolver.resolve_one(waypoints[-1], hint=start)
        if goal is None:
            log_error("STOMP failed to get the goal positions")
            raise PlanningError(
                PlanningErrorCode.GOAL_IK_FAILED,
                f"IK failed for the last Cartesian waypoint {waypoints[-1]}",
            )

        start_positions = dict(request.start_state.joint_positions)
        start_positions.update(configuration_from_vector(start, self.group.joint_names))

        return ResolvedProblem(
            request=request,
            start=start,
            goal=goal,
            goal_candidates=(JointGoal(tuple(float(v) for v in goal)),),
            seed_type=SeedType.CARTESIAN,
            start_state=RobotState(start_positions),
        )

    def extract_seed(self, problem: ResolvedProblem) -> SeedTrajectory | None:
        """Convert the request's seed trajectory (if any) into a seed matrix.

        Cartesian seeds tolerate per-waypoint IK failures, which are reported as a count.

        :param problem: Resolved problem whose request may carry a seed trajectory
        :return: Seed trajectory over the group's active joints, or None if there is no seed
        :raises PlanningError: If a joint-space seed doesn't match the group's joints
        """
        constraints = problem.request.trajectory_constraints

        if problem.seed_type is SeedType.NONE:
            log_debug("STOMP Found no seed trajectory")
            return None

        if problem.seed_type is SeedType.JOINT:
            try:
                return SeedTrajectory.from_constraints(constraints, self.group.joint_names)
            except ValueError as error:
                log_error(f"STOMP Failed to create seed parameters from joint trajectory: {error}")
                raise PlanningError(PlanningErrorCode.INVALID_SEED, str(error)) from error

        if self.ik_resolver is None:
            raise PlanningError(PlanningErrorCode.INVALID_SEED, "Cartesian seed requires IK")

        waypoints = constraints[0].cartesian_waypoints()
        resolution = self.ik_resolver.resolve_chain(waypoints, hint=problem.start)
        for index in resolution.failed_indices:
            log_error(f"STOMP failed to IK Cartesian seed at step {index}")
        log_warning(
            f"Seed trajectory converted with a total of {resolution.failure_count}/"
            f"{len(waypoints)} IK failures",
        )

        return SeedTrajectory(
            self.group.joint_names,
            resolution.to_matrix(),
            ik_failures=tuple(resolution.failed_indices),
        )
