"""Define dataclasses representing motion plan requests and their constraints."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from stomp_planning.kinematics.poses import Point3D, Pose3D, Quaternion

if TYPE_CHECKING:
    from stomp_planning.kinematics.configuration import Configuration


@dataclass(frozen=True)
class JointConstraint:
    """A target position for a single named joint."""

    joint_name: str
    position: float


@dataclass(frozen=True)
class PositionConstraint:
    """A target position for a link, expressed in the planning base frame."""

    link_name: str
    position: Point3D


@dataclass(frozen=True)
class OrientationConstraint:
    """A target orientation for a link, expressed in the planning base frame."""

    link_name: str
    orientation: Quaternion


@dataclass(frozen=True)
class Constraints:
    """A set of constraints, used both for goal regions and for seed trajectory waypoints."""

    joint_constraints: tuple[JointConstraint, ...] = ()
    position_constraints: tuple[PositionConstraint, ...] = ()
    orientation_constraints: tuple[OrientationConstraint, ...] = ()
    name: str = ""

    @property
    def empty(self) -> bool:
        """Check whether the set holds no constraints at all."""
        return not (
            self.joint_constraints or self.position_constraints or self.orientation_constraints
        )

    @property
    def has_joint_constraints(self) -> bool:
        """Check whether the set holds any joint constraints."""
        return bool(self.joint_constraints)

    @property
    def has_cartesian_constraints(self) -> bool:
        """Check whether the set holds both position and orientation constraints."""
        return bool(self.position_constraints) and bool(self.orientation_constraints)

    @classmethod
    def from_configuration(cls, configuration: Configuration, name: str = "") -> Constraints:
        """Construct joint constraints targeting every joint in the given configuration."""
        joint_constraints = tuple(JointConstraint(j, p) for j, p in configuration.items())
        return cls(joint_constraints=joint_constraints, name=name)

    @classmethod
    def from_poses(cls, poses: list[Pose3D], link_name: str, name: str = "") -> Constraints:
        """Construct paired position and orientation constraints, one pair per pose."""
        return cls(
            position_constraints=tuple(PositionConstraint(link_name, p.position) for p in poses),
            orientation_constraints=tuple(
                OrientationConstraint(link_name, p.orientation) for p in poses
            ),
            name=name,
        )

    def joint_positions(self) -> Configuration:
        """Retrieve the joint constraints as a map from joint names to positions."""
        return {jc.joint_name: jc.position for jc in self.joint_constraints}

    def cartesian_waypoints(self) -> list[Pose3D]:
        """Pair the position and orientation constraints into an ordered list of poses."""
        if len(self.position_constraints) != len(self.orientation_constraints):
            raise ValueError(
                f"Constraints hold {len(self.position_constraints)} position and "
                f"{len(self.orientation_constraints)} orientation constraints; expected pairs.",
            )

        return [
            Pose3D(pc.position, oc.orientation)
            for pc, oc in zip(self.position_constraints, self.orientation_constraints)
        ]


@dataclass(frozen=True)
class RobotState:
    """A snapshot of the robot's joint positions."""

    joint_positions: Configuration = field(default_factory=dict)


@dataclass(frozen=True)
class MotionPlanRequest:
    """A request for a motion plan, owned by a planning attempt and read-only once started."""

    group_name: str
    start_state: RobotState
    goal_constraints: tuple[Constraints, ...] = ()
    trajectory_constraints: tuple[Constraints, ...] = ()
    """Optional seed trajectory: joint waypoints, or a single set of Cartesian waypoints."""

    allowed_planning_time_s: float = 5.0
    max_velocity_scaling_factor: float = 1.0

    def with_seed(self, trajectory_constraints: tuple[Constraints, ...]) -> MotionPlanRequest:
        """Create a copy of the request using the given seed trajectory constraints."""
        return replace(self, trajectory_constraints=tuple(trajectory_constraints))
