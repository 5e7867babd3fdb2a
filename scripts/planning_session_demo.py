"""Demonstrate seeded, time-limited STOMP planning sessions on a toy gantry robot.

The gantry has three prismatic joints whose positions equal the tool's (x,y,z) position, so
inverse kinematics is exact. A small stochastic optimizer (noisy rollouts, probability-weighted
updates) stands in for a full STOMP implementation and checks for cancellation every iteration.

To run this script, use the commands:

    pip install -e .
    python scripts/planning_session_demo.py --seed joint --iteration-delay 0.05 --budget 1.0

"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any

import click
import numpy as np
from rich.table import Table

from stomp_planning.io import (
    OptimizationConfig,
    PlannerConfig,
    SessionConfig,
    configure_logging,
    console,
    load_planner_configs,
)
from stomp_planning.io.yaml_utils import export_yaml_data
from stomp_planning.kinematics import (
    JointGroup,
    JointLimits,
    JointType,
    Point3D,
    Pose3D,
    Quaternion,
)
from stomp_planning.motion_planning import (
    Constraints,
    MotionPlanRequest,
    PlanningOutcome,
    RobotState,
    SeedTrajectory,
    StompPlanner,
    Trajectory,
)

GANTRY_GROUP_NAME = "gantry"
GANTRY_LIMITS_M = (-1.0, 1.0)
START_M = (-0.6, -0.4, 0.1)
GOAL_M = (0.6, 0.5, 0.3)

NOISE_STDDEV = 0.05
NOISE_DECAY = 0.95


def build_gantry_group() -> JointGroup:
    """Construct the gantry's planning group of three prismatic joints."""
    joints = tuple(
        JointLimits(
            name,
            *GANTRY_LIMITS_M,
            max_velocity=0.5,
            max_acceleration=1.0,
            joint_type=JointType.PRISMATIC,
        )
        for name in ("gantry_x", "gantry_y", "gantry_z")
    )
    return JointGroup(GANTRY_GROUP_NAME, joints, base_link="gantry_base", tip_link="tool")


class GantryIKSolver:
    """Solves IK exactly for the gantry, rejecting targets outside its workspace."""

    def get_chain(self, base_link: str, tip_link: str) -> Any | None:
        """Return the gantry's chain description."""
        return (base_link, tip_link)

    def solve(
        self,
        chain: Any,
        target: Pose3D,
        hint: np.ndarray,
        timeout_s: float,
    ) -> list[float] | None:
        """Copy the target position into joint positions if it lies within the limits."""
        solution = list(target.position)
        if any(not GANTRY_LIMITS_M[0] <= v <= GANTRY_LIMITS_M[1] for v in solution):
            return None
        return solution


class DemoStompOptimizer:
    """A compact stochastic trajectory optimizer that minimizes squared accelerations."""

    def __init__(self, iteration_delay_s: float = 0.0, rng_seed: int = 0) -> None:
        """Initialize the optimizer.

        :param iteration_delay_s: Artificial duration (seconds) added to each iteration
        :param rng_seed: Seed of the random number generator sampling rollout noise
        """
        self.iteration_delay_s = iteration_delay_s
        self.config = OptimizationConfig()
        self._rng = np.random.default_rng(rng_seed)
        self._cancelled = threading.Event()

    def set_config(self, config: OptimizationConfig) -> None:
        """Use the given configuration for subsequent solves."""
        self.config = config

    def solve(self, start: np.ndarray, goal: np.ndarray) -> np.ndarray | None:
        """Optimize from a linear interpolation between the start and goal."""
        seed = np.linspace(start, goal, self.config.num_timesteps).T
        return self.solve_seeded(seed)

    def solve_seeded(self, seed: np.ndarray) -> np.ndarray | None:
        """Optimize the interior of the seed, keeping its endpoints fixed."""
        self._cancelled.clear()
        trajectory = np.array(seed, dtype=np.float64)
        if trajectory.shape[1] < 3:
            return trajectory

        noise = NOISE_STDDEV
        for _ in range(self.config.num_iterations):
            if self._cancelled.is_set():
                return None
            time.sleep(self.iteration_delay_s)

            rollouts = [trajectory]
            for _ in range(self.config.num_rollouts):
                candidate = trajectory.copy()
                candidate[:, 1:-1] += self._rng.normal(0.0, noise, candidate[:, 1:-1].shape)
                rollouts.append(candidate)

            costs = np.array([self._cost(r) for r in rollouts])
            spread = np.ptp(costs) + 1e-10
            sensitivity = self.config.exponentiated_cost_sensitivity
            weights = np.exp(-sensitivity * (costs - costs.min()) / spread)
            weights /= weights.sum()

            trajectory = np.tensordot(weights, np.stack(rollouts), axes=1)
            noise *= NOISE_DECAY

        return trajectory

    def cancel(self) -> bool:
        """Stop the running optimization before its next iteration."""
        self._cancelled.set()
        return True

    def clear(self) -> None:
        """Reset the optimizer's cancellation state."""
        self._cancelled.clear()

    @staticmethod
    def _cost(trajectory: np.ndarray) -> float:
        """Compute the summed squared finite-difference accelerations of a trajectory."""
        return float(np.sum(np.diff(trajectory, n=2, axis=1) ** 2))


class GantryScene:
    """Validates gantry trajectories against a spherical obstacle."""

    def __init__(self, center: tuple[float, float, float], radius_m: float) -> None:
        """Initialize the scene with the obstacle's center and radius."""
        self.center = np.array(center)
        self.radius_m = radius_m

    def is_path_valid(self, trajectory: Trajectory, group_name: str, verbose: bool) -> bool:
        """Check that every point of the trajectory stays outside the obstacle."""
        distances = np.linalg.norm(trajectory.to_matrix().T - self.center, axis=1)
        valid = bool(np.all(distances > self.radius_m))
        if verbose and not valid:
            console.print(f"[yellow]Trajectory enters the obstacle at {self.center}[/yellow]")
        return valid


def build_request(seed_kind: str, budget_s: float, velocity_scale: float) -> MotionPlanRequest:
    """Construct the demo's request, optionally carrying a joint or Cartesian seed."""
    group = build_gantry_group()
    names = group.joint_names
    start_state = RobotState(dict(zip(names, START_M)))
    goal = Constraints.from_configuration(dict(zip(names, GOAL_M)))
    request = MotionPlanRequest(
        group.name,
        start_state,
        goal_constraints=(goal,),
        allowed_planning_time_s=budget_s,
        max_velocity_scaling_factor=velocity_scale,
    )

    waypoints = np.linspace(START_M, GOAL_M, 12)
    waypoints[:, 2] += 0.3 * np.sin(np.linspace(0.0, np.pi, 12))  # Arc over the obstacle
    if seed_kind == "joint":
        seed = SeedTrajectory(names, waypoints.T)
        return request.with_seed(seed.to_constraints())
    if seed_kind == "cartesian":
        poses = [Pose3D(Point3D(*w), Quaternion.identity(), group.base_link) for w in waypoints]
        return request.with_seed((Constraints.from_poses(poses, link_name=group.tip_link),))
    return request


def display_outcome(outcome: PlanningOutcome) -> None:
    """Print a summary of the planning outcome."""
    style = "green" if outcome.success else "red"
    console.print(f"[{style}]{outcome.error_code.name}[/{style}] ({outcome.category.value})")
    console.print(f"{outcome.message} [{outcome.planning_time_s:.3f} s]")

    if outcome.trajectory is None:
        return

    trajectory = outcome.trajectory
    table = Table(title=f"Trajectory ({len(trajectory)} points, {trajectory.duration_s:.2f} s)")
    table.add_column("t (s)", justify="right")
    for name in trajectory.joint_names:
        table.add_column(name, justify="right")
    for point in trajectory.points[:: max(1, len(trajectory) // 8)]:
        table.add_row(f"{point.time_s:.3f}", *(f"{v:+.3f}" for v in point.positions.values()))
    console.print(table)


def export_trajectory(trajectory: Trajectory, yaml_path: Path) -> None:
    """Export the trajectory's timestamps and positions to a YAML file."""
    data = {
        "group_name": trajectory.group_name,
        "joint_names": trajectory.joint_names,
        "points": [
            {"time_s": p.time_s, "positions": [p.positions[n] for n in trajectory.joint_names]}
            for p in trajectory.points
        ],
    }
    export_yaml_data(data, yaml_path)
    console.print(f"Exported trajectory to {yaml_path}")


@click.command()
@click.option(
    "--seed",
    "seed_kind",
    type=click.Choice(["none", "joint", "cartesian"]),
    default="none",
    help="Kind of seed trajectory carried by the request.",
)
@click.option("--budget", "budget_s", type=float, default=2.0, help="Planning time budget (s).")
@click.option(
    "--iteration-delay",
    "iteration_delay_s",
    type=float,
    default=0.0,
    help="Artificial duration (s) of each optimizer iteration.",
)
@click.option("--velocity-scale", type=float, default=1.0, help="Max velocity scaling factor.")
@click.option(
    "--config",
    "config_yaml",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML file holding per-group planner configuration under a 'stomp' key.",
)
@click.option(
    "--export",
    "export_yaml",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML file to which a planned trajectory is exported.",
)
@click.option("--verbose", is_flag=True, help="Log debug messages.")
def main(
    seed_kind: str,
    budget_s: float,
    iteration_delay_s: float,
    velocity_scale: float,
    config_yaml: Path | None,
    export_yaml: Path | None,
    verbose: bool,
) -> None:
    """Plan a single request for the toy gantry and display the outcome."""
    configure_logging(logging.DEBUG if verbose else logging.INFO)

    group = build_gantry_group()
    if config_yaml is not None:
        config = load_planner_configs(config_yaml)[group.name]
    else:
        config = PlannerConfig(
            group_name=group.name,
            optimization=OptimizationConfig(num_timesteps=30, num_iterations=60),
            session=SessionConfig(ik_base_link=group.base_link),
        )

    planner = StompPlanner(
        config,
        group,
        DemoStompOptimizer(iteration_delay_s),
        ik_solver=GantryIKSolver(),
        planning_scene=GantryScene(center=(0.0, 0.0, 0.2), radius_m=0.15),
    )

    request = build_request(seed_kind, budget_s, velocity_scale)
    if not planner.can_service_request(request):
        console.print("[yellow]Request is outside the planner's usual capabilities[/yellow]")

    outcome = planner.solve(request)
    display_outcome(outcome)

    if export_yaml is not None and outcome.trajectory is not None:
        export_trajectory(outcome.trajectory, export_yaml)


if __name__ == "__main__":
    main()
