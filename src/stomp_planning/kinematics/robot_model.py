"""Define classes to represent the kinematic limits of a robot planning group."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from stomp_planning.kinematics.configuration import as_joint_vector

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from stomp_planning.kinematics.configuration import Configuration, JointVector


class JointType(Enum):
    """An enumeration of robot joint types."""

    REVOLUTE = 0
    PRISMATIC = 1


@dataclass(frozen=True)
class JointLimits:
    """An actuated joint of a robot and its position, velocity, and acceleration limits."""

    name: str
    lower: float
    """Minimum position (rad or m) of the joint."""

    upper: float
    """Maximum position (rad or m) of the joint."""

    max_velocity: float = 1.0
    """Maximum speed (rad/s or m/s) of the joint."""

    max_acceleration: float = 1.0
    """Maximum acceleration (rad/s^2 or m/s^2) of the joint."""

    joint_type: JointType = JointType.REVOLUTE

    def __post_init__(self) -> None:
        """Verify that the joint's limits are consistent."""
        if self.lower > self.upper:
            raise ValueError(f"Joint '{self.name}' has lower limit above its upper limit.")
        if self.max_velocity <= 0 or self.max_acceleration <= 0:
            raise ValueError(f"Joint '{self.name}' requires positive velocity/acceleration limits.")


@dataclass(frozen=True)
class JointGroup:
    """A named group of actuated joints planned over together (e.g., a manipulator arm)."""

    name: str
    joints: tuple[JointLimits, ...]
    base_link: str = "base_link"
    tip_link: str = "tool0"
    bounds_margin: float = field(default=1e-9, repr=False)
    """Slack (rad or m) tolerated when checking bounds, absorbing floating-point round-off."""

    @property
    def dof(self) -> int:
        """Retrieve the number of active degrees of freedom in the group."""
        return len(self.joints)

    @property
    def joint_names(self) -> tuple[str, ...]:
        """Retrieve the names of the group's active joints in their canonical order."""
        return tuple(joint.name for joint in self.joints)

    @property
    def lower_bounds(self) -> NDArray[np.float64]:
        """Retrieve the lower position limits of the active joints."""
        return np.array([joint.lower for joint in self.joints], dtype=np.float64)

    @property
    def upper_bounds(self) -> NDArray[np.float64]:
        """Retrieve the upper position limits of the active joints."""
        return np.array([joint.upper for joint in self.joints], dtype=np.float64)

    @property
    def max_velocities(self) -> NDArray[np.float64]:
        """Retrieve the velocity limits of the active joints."""
        return np.array([joint.max_velocity for joint in self.joints], dtype=np.float64)

    @property
    def max_accelerations(self) -> NDArray[np.float64]:
        """Retrieve the acceleration limits of the active joints."""
        return np.array([joint.max_acceleration for joint in self.joints], dtype=np.float64)

    def satisfies_bounds(self, values: ArrayLike) -> bool:
        """Check whether the given joint vector lies within the group's position limits."""
        vector = np.asarray(values, dtype=np.float64).reshape(-1)
        if vector.shape != (self.dof,) or not np.all(np.isfinite(vector)):
            return False

        lower_ok = vector >= self.lower_bounds - self.bounds_margin
        upper_ok = vector <= self.upper_bounds + self.bounds_margin
        return bool(np.all(lower_ok & upper_ok))

    def mid_range(self) -> JointVector:
        """Compute the configuration midway between all joint limits."""
        return as_joint_vector((self.lower_bounds + self.upper_bounds) / 2.0)

    def vector_from_configuration(self, configuration: Configuration) -> JointVector:
        """Extract the group's joint vector from a named configuration.

        :param configuration: Map from joint names to positions (may include other joints)
        :return: Ordered vector of the group's active joint positions
        :raises KeyError: If any active joint is missing from the configuration
        """
        missing = [name for name in self.joint_names if name not in configuration]
        if missing:
            raise KeyError(f"Configuration is missing active joints: {missing}")

        return as_joint_vector([configuration[name] for name in self.joint_names])
