"""Define time parameterization of geometric joint paths under velocity and acceleration limits."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import numpy as np

from stomp_planning.io.logging import log_error, log_warning

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from stomp_planning.kinematics.robot_model import JointGroup
    from stomp_planning.motion_planning.trajectories import Trajectory

MIN_SEGMENT_DURATION_S = 1e-3


class TimeParameterizer(Protocol):
    """Assigns timestamps, velocities, and accelerations to the points of a trajectory."""

    def compute_timestamps(self, trajectory: Trajectory, velocity_scale: float) -> bool:
        """Time-parameterize the trajectory in place.

        :param trajectory: Trajectory whose points are retimed
        :param velocity_scale: Fraction (0, 1] of the joints' maximum velocities to use
        :return: True if timing succeeded, else False
        """
        ...


def finite_difference_derivatives(
    positions: NDArray[np.float64],
    durations: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Estimate velocities and accelerations at each point of a timed path.

    Velocities and accelerations are zero at the path's endpoints.

    :param positions: Joint positions with one row per joint and one column per point
    :param durations: Duration (seconds) of each of the path's segments
    :return: Tuple of (velocities, accelerations) matrices shaped like `positions`
    """
    velocities = np.zeros_like(positions)
    accelerations = np.zeros_like(positions)
    if positions.shape[1] < 3:
        return velocities, accelerations

    segment_velocities = np.diff(positions, axis=1) / durations
    dt_before = durations[:-1]
    dt_after = durations[1:]

    velocities[:, 1:-1] = (segment_velocities[:, :-1] + segment_velocities[:, 1:]) / 2.0
    accelerations[:, 1:-1] = (
        2.0 * (segment_velocities[:, 1:] - segment_velocities[:, :-1]) / (dt_before + dt_after)
    )
    return velocities, accelerations


class IterativeParabolicTimeParameterization:
    """Times a path with parabolic blends, stretching segments until acceleration limits hold.

    Initial segment durations are the shortest allowed by each joint's (scaled) velocity limit.
    Durations around points whose finite-difference acceleration exceeds a joint's limit are
    then iteratively lengthened.
    """

    def __init__(
        self,
        group: JointGroup,
        max_iterations: int = 100,
        max_time_change_per_iteration: float = 0.01,
    ) -> None:
        """Initialize the time parameterization for a planning group.

        :param group: Planning group providing the joints' velocity and acceleration limits
        :param max_iterations: Maximum number of segment-stretching passes
        :param max_time_change_per_iteration: Minimum relative stretch applied to a violating
            segment per iteration (guarantees progress when violations are marginal)
        """
        self.group = group
        self.max_iterations = max_iterations
        self.max_time_change_per_iteration = max_time_change_per_iteration

    def compute_timestamps(self, trajectory: Trajectory, velocity_scale: float = 1.0) -> bool:
        """Time-parameterize the trajectory in place (see `TimeParameterizer`)."""
        if not 0.0 < velocity_scale <= 1.0:
            log_warning(f"Invalid max_velocity_scaling_factor {velocity_scale}; using 1.0")
            velocity_scale = 1.0

        if not trajectory.points:
            return True

        names = trajectory.joint_names
        limits = {joint.name: joint for joint in self.group.joints}
        if any(name not in limits for name in names):
            log_error(f"Cannot time trajectory over joints {names} with group {self.group.name}")
            return False

        positions = trajectory.to_matrix("positions")
        if not np.all(np.isfinite(positions)):
            log_error("Cannot time a trajectory containing non-finite positions")
            return False

        max_velocities = np.array([limits[n].max_velocity for n in names]) * velocity_scale
        max_accelerations = np.array([limits[n].max_acceleration for n in names])

        deltas = np.abs(np.diff(positions, axis=1))
        durations = np.max(deltas / max_velocities[:, None], axis=0, initial=0.0)
        durations = np.maximum(durations, MIN_SEGMENT_DURATION_S)

        for _ in range(self.max_iterations):
            _, accelerations = finite_difference_derivatives(positions, durations)
            ratio = np.max(np.abs(accelerations) / max_accelerations[:, None], axis=0, initial=0.0)
            violating = np.flatnonzero(ratio > 1.0 + 1e-9)
            if violating.size == 0:
                break

            for point in violating:
                stretch = max(np.sqrt(ratio[point]), 1.0 + self.max_time_change_per_iteration)
                durations[point - 1] *= stretch
                durations[point] *= stretch

        timestamps = np.concatenate([[0.0], np.cumsum(durations)])
        if not np.all(np.isfinite(timestamps)) or np.any(np.diff(timestamps) <= 0.0):
            log_error("Time parameterization produced non-increasing timestamps")
            return False

        velocities, accelerations = finite_difference_derivatives(positions, durations)
        for t, point in enumerate(trajectory.points):
            point.time_s = float(timestamps[t])
            point.velocities = {n: float(velocities[j, t]) for j, n in enumerate(names)}
            point.accelerations = {n: float(accelerations[j, t]) for j, n in enumerate(names)}

        return True
