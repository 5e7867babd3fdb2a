"""Define classes to represent planned trajectories and seed trajectory matrices."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from stomp_planning.kinematics.configuration import configuration_from_vector
from stomp_planning.motion_planning.constraints import Constraints, JointConstraint

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stomp_planning.kinematics.configuration import Configuration

TrajectoryMatrix = NDArray[np.float64]
"""Joint positions with one row per DOF and one column per timestep."""


@dataclass
class TrajectoryPoint:
    """A planned state of joint values at a specified time in a trajectory."""

    time_s: float
    """Time (seconds) since the trajectory started."""

    positions: Configuration
    velocities: Configuration = field(default_factory=dict)
    accelerations: Configuration = field(default_factory=dict)

    @property
    def joint_names(self) -> list[str]:
        """Retrieve the names of the joints specified by the point."""
        return list(self.positions.keys())


@dataclass
class Trajectory:
    """A sequence of planned configurations at specified times."""

    group_name: str
    points: list[TrajectoryPoint]

    def __post_init__(self) -> None:
        """Verify properties expected of any valid trajectory."""
        if not self.points:
            return

        # All points in any non-empty trajectory should use the same joint names
        j0_names = self.points[0].joint_names
        for p in self.points[1:]:
            jn_names = p.joint_names
            if j0_names != jn_names:
                raise ValueError(f"Trajectory points used joint names: {j0_names} and {jn_names}.")

    def __len__(self) -> int:
        """Retrieve the number of points in the trajectory."""
        return len(self.points)

    @property
    def joint_names(self) -> list[str]:
        """Retrieve the names of the joints specified by the trajectory."""
        return [] if not self.points else self.points[0].joint_names

    @property
    def timestamps(self) -> NDArray[np.float64]:
        """Retrieve the time (seconds) of each point since the trajectory started."""
        return np.array([p.time_s for p in self.points], dtype=np.float64)

    @property
    def duration_s(self) -> float:
        """Retrieve the duration (seconds) of the trajectory."""
        return 0.0 if not self.points else self.points[-1].time_s

    @classmethod
    def from_matrix(
        cls,
        matrix: NDArray[np.float64],
        joint_names: Sequence[str],
        group_name: str,
    ) -> Trajectory:
        """Construct an untimed trajectory from a (DOF x timesteps) matrix.

        Every point starts at time zero with zero velocities and accelerations.

        :param matrix: Joint positions, one column per timestep
        :param joint_names: Names of the joints, one per matrix row
        :param group_name: Name of the planning group the trajectory moves
        :return: Trajectory with one point per matrix column, in column order
        """
        if matrix.ndim != 2 or matrix.shape[0] != len(joint_names):
            raise ValueError(f"Expected a ({len(joint_names)} x N) matrix, got {matrix.shape}")

        zeros = dict.fromkeys(joint_names, 0.0)
        points = [
            TrajectoryPoint(
                time_s=0.0,
                positions=configuration_from_vector(matrix[:, t], joint_names),
                velocities=dict(zeros),
                accelerations=dict(zeros),
            )
            for t in range(matrix.shape[1])
        ]
        return cls(group_name, points)

    def to_matrix(self, field_name: str = "positions") -> NDArray[np.float64]:
        """Stack a per-point field (positions, velocities, or accelerations) into a matrix."""
        names = self.joint_names
        columns = [[getattr(p, field_name)[name] for name in names] for p in self.points]
        return np.array(columns, dtype=np.float64).reshape(len(self.points), len(names)).T


@dataclass(frozen=True)
class SeedTrajectory:
    """A candidate path used to warm-start optimization, as a (DOF x timesteps) matrix."""

    joint_names: tuple[str, ...]
    matrix: NDArray[np.float64]
    ik_failures: tuple[int, ...] = ()
    """Indices of timesteps whose IK failed when the seed was built from Cartesian waypoints."""

    def __post_init__(self) -> None:
        """Verify that the matrix has one row per named joint."""
        if self.matrix.ndim != 2 or self.matrix.shape[0] != len(self.joint_names):
            raise ValueError(
                f"Seed matrix of shape {self.matrix.shape} doesn't match joints {self.joint_names}",
            )

    @property
    def dof(self) -> int:
        """Retrieve the number of joints described by the seed."""
        return len(self.joint_names)

    @property
    def num_timesteps(self) -> int:
        """Retrieve the number of timesteps (matrix columns) in the seed."""
        return int(self.matrix.shape[1])

    @classmethod
    def from_constraints(
        cls,
        constraints: Sequence[Constraints],
        joint_names: Sequence[str],
    ) -> SeedTrajectory:
        """Decode a seed from an ordered list of joint-constraint waypoints.

        :param constraints: One constraint set per timestep, naming every joint in order
        :param joint_names: Expected names of the joints, in their canonical order
        :return: Seed trajectory with one matrix column per constraint set
        :raises ValueError: If any waypoint doesn't name exactly the expected joints in order
        """
        dof = len(joint_names)
        matrix = np.zeros((dof, len(constraints)), dtype=np.float64)

        for step, waypoint in enumerate(constraints):
            n = len(waypoint.joint_constraints)
            if n != dof:
                raise ValueError(
                    f"Seed trajectory index {step} does not have {dof} constraints (has {n}).",
                )

            for j, jc in enumerate(waypoint.joint_constraints):
                if jc.joint_name != joint_names[j]:
                    raise ValueError(
                        f"Seed trajectory (index {step}, joint {j}) joint name '{jc.joint_name}' "
                        f"does not match expected name '{joint_names[j]}'",
                    )
                matrix[j, step] = jc.position

        return cls(tuple(joint_names), matrix)

    def to_constraints(self) -> tuple[Constraints, ...]:
        """Encode the seed as an ordered list of joint-constraint waypoints, one per timestep."""
        return tuple(
            Constraints(
                joint_constraints=tuple(
                    JointConstraint(name, float(self.matrix[j, step]))
                    for j, name in enumerate(self.joint_names)
                ),
            )
            for step in range(self.num_timesteps)
        )
