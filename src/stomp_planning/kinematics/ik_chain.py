"""Define an IK resolver that chains warm-started solves over a sequence of Cartesian waypoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import numpy as np

from stomp_planning.io.config_schema import ConfigurationError
from stomp_planning.io.logging import log_warning
from stomp_planning.kinematics.configuration import as_joint_vector

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stomp_planning.kinematics.configuration import JointVector
    from stomp_planning.kinematics.poses import Pose3D
    from stomp_planning.kinematics.robot_model import JointGroup


class IKSolver(Protocol):
    """A numeric inverse kinematics solver for a single target pose (e.g., TRAC-IK)."""

    def get_chain(self, base_link: str, tip_link: str) -> Any | None:
        """Look up the kinematic chain description between the named links (None if absent)."""
        ...

    def solve(
        self,
        chain: Any,
        target: Pose3D,
        hint: JointVector,
        timeout_s: float,
    ) -> Sequence[float] | None:
        """Solve for joint positions placing the chain's tip at the target pose.

        :param chain: Chain description previously returned by `get_chain`
        :param target: Target pose of the tip link, expressed in the base link's frame
        :param hint: Joint positions used to warm-start the solver
        :param timeout_s: Duration (seconds) after which the solve is abandoned
        :return: Joint positions solving the IK problem (else None)
        """
        ...


@dataclass(frozen=True)
class ChainResolution:
    """Joint configurations resolved for every waypoint of a Cartesian chain."""

    configurations: list[JointVector]
    """One configuration per waypoint; failed waypoints hold a placeholder configuration."""

    failed_indices: list[int] = field(default_factory=list)
    """Indices of the waypoints for which IK failed."""

    @property
    def failure_count(self) -> int:
        """Retrieve the number of waypoints for which IK failed."""
        return len(self.failed_indices)

    @property
    def complete(self) -> bool:
        """Check whether every waypoint was solved."""
        return not self.failed_indices

    def to_matrix(self) -> np.ndarray:
        """Stack the configurations into a (DOF x waypoints) matrix."""
        return np.column_stack(self.configurations)


class IKChainResolver:
    """Resolves Cartesian waypoints into joint configurations, warm-starting each solve.

    Each waypoint is solved using the previous waypoint's solution as the solver's hint,
    which improves convergence and keeps consecutive solutions close in joint space.
    """

    def __init__(
        self,
        ik_solver: IKSolver,
        group: JointGroup,
        base_link: str | None = None,
        tip_link: str | None = None,
        timeout_s: float = 0.01,
    ) -> None:
        """Initialize the resolver and look up the kinematic chain it solves over.

        :param ik_solver: Solver used for each individual waypoint
        :param group: Planning group whose active joints the solutions describe
        :param base_link: Base link of the IK chain (defaults to the group's base link)
        :param tip_link: Tip link of the IK chain (defaults to the group's tip link)
        :param timeout_s: Per-waypoint solver timeout (seconds)
        :raises ConfigurationError: If the solver has no chain between the links
        """
        self.ik_solver = ik_solver
        self.group = group
        self.base_link = base_link or group.base_link
        self.tip_link = tip_link or group.tip_link
        self.timeout_s = timeout_s

        self._chain = ik_solver.get_chain(self.base_link, self.tip_link)
        if self._chain is None:
            raise ConfigurationError(
                f"No kinematic chain from '{self.base_link}' to '{self.tip_link}' for IK",
            )

    def neutral_configuration(self) -> JointVector:
        """Retrieve the hint used when no previous solution is available."""
        return self.group.mid_range()

    def resolve_one(self, waypoint: Pose3D, hint: JointVector | None = None) -> JointVector | None:
        """Solve IK for a single waypoint.

        :param waypoint: Target pose of the chain's tip link
        :param hint: Warm-start configuration (defaults to the neutral configuration)
        :return: Joint configuration reaching the waypoint, or None if IK failed
        """
        seed = self.neutral_configuration() if hint is None else as_joint_vector(hint)
        solution = self.ik_solver.solve(self._chain, waypoint, seed, self.timeout_s)
        if solution is None:
            log_warning(f"Failed to get IK for {waypoint}")
            return None

        result = as_joint_vector(solution)
        if result.shape != (self.group.dof,) or not np.all(np.isfinite(result)):
            log_warning(f"IK returned {result.size} values for a {self.group.dof}-DOF group")
            return None

        return result

    def resolve_chain(
        self,
        waypoints: Sequence[Pose3D],
        hint: JointVector | None = None,
    ) -> ChainResolution:
        """Solve IK over an ordered sequence of waypoints without aborting on failures.

        A failed waypoint is filled with the last successful configuration (or the initial
        hint) so that indices stay aligned; the caller decides whether failures are acceptable.

        :param waypoints: Ordered target poses of the chain's tip link
        :param hint: Warm-start configuration for the first waypoint
        :return: Configurations for every waypoint and the indices of the failed ones
        """
        previous = self.neutral_configuration() if hint is None else as_joint_vector(hint)
        configurations: list[JointVector] = []
        failed_indices: list[int] = []

        for index, waypoint in enumerate(waypoints):
            solution = self.resolve_one(waypoint, hint=previous)
            if solution is None:
                failed_indices.append(index)
                configurations.append(previous)
                continue

            configurations.append(solution)
            previous = solution

        return ChainResolution(configurations, failed_indices)
