"""Define the joint-space and Cartesian goal descriptions a motion plan request may target."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from stomp_planning.io.logging import log_warning
from stomp_planning.kinematics.configuration import as_joint_vector
from stomp_planning.kinematics.poses import Pose3D

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stomp_planning.kinematics.configuration import JointVector
    from stomp_planning.kinematics.ik_chain import IKChainResolver
    from stomp_planning.kinematics.robot_model import JointGroup
    from stomp_planning.motion_planning.constraints import Constraints


@dataclass(frozen=True)
class GoalContext:
    """Collaborators needed to turn a goal description into a joint configuration."""

    group: JointGroup
    ik_resolver: IKChainResolver | None = None
    hint: JointVector | None = None
    """Warm-start configuration for IK-based goals (None uses the resolver's neutral hint)."""


@dataclass(frozen=True)
class JointGoal:
    """A goal specified directly as target positions for every active joint."""

    positions: tuple[float, ...]

    def try_solve(self, context: GoalContext) -> JointVector | None:
        """Accept the goal only if it fully specifies the group and satisfies its bounds."""
        if len(self.positions) != context.group.dof:
            return None

        if not context.group.satisfies_bounds(self.positions):
            log_warning("STOMP Requested Goal joint pose is out of bounds")
            return None

        return as_joint_vector(self.positions)


@dataclass(frozen=True)
class CartesianGoal:
    """A goal specified as a target pose of the IK chain's tip link."""

    pose: Pose3D

    def try_solve(self, context: GoalContext) -> JointVector | None:
        """Resolve the goal pose through IK, accepting only in-bounds solutions."""
        if context.ik_resolver is None:
            return None

        solution = context.ik_resolver.resolve_one(self.pose, hint=context.hint)
        if solution is None or not context.group.satisfies_bounds(solution):
            return None

        return solution


GoalDescription = Union[JointGoal, CartesianGoal]
"""A goal of a motion plan request, resolved in request order (first satisfiable one wins)."""


def goals_from_constraints(
    goal_constraints: Sequence[Constraints],
    group: JointGroup,
) -> list[GoalDescription]:
    """Convert goal constraint sets into goal descriptions, preserving request order.

    Joint constraints take precedence over Cartesian constraints within a single set. Joint
    constraints that don't name every active joint of the group are skipped.

    :param goal_constraints: Goal regions of a motion plan request
    :param group: Planning group whose active joints define a complete joint goal
    :return: List of goal descriptions in the order they should be tried
    """
    goals: list[GoalDescription] = []
    for index, constraints in enumerate(goal_constraints):
        if constraints.has_joint_constraints:
            positions = constraints.joint_positions()
            missing = [name for name in group.joint_names if name not in positions]
            if missing:
                log_warning(f"Goal constraints {index} don't specify joints {missing}; skipping")
                continue
            goals.append(JointGoal(tuple(positions[name] for name in group.joint_names)))
        elif constraints.has_cartesian_constraints:
            position = constraints.position_constraints[0].position
            orientation = constraints.orientation_constraints[0].orientation
            goals.append(CartesianGoal(Pose3D(position, orientation)))

    return goals


def resolve_first_goal(
    goals: Sequence[GoalDescription],
    context: GoalContext,
) -> JointVector | None:
    """Find the joint configuration of the first satisfiable goal, trying goals in order."""
    for goal in goals:
        solution = goal.try_solve(context)
        if solution is not None:
            return solution

    return None
