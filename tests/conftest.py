"""Define pytest fixtures shared by the planning tests."""

from __future__ import annotations

import pytest
from planning_fakes import (
    FakeIKSolver,
    FakeOptimizer,
    FakePlanningScene,
    FakeTask,
    make_arm_group,
)

from stomp_planning.io import PlannerConfig
from stomp_planning.kinematics import IKChainResolver, JointGroup
from stomp_planning.motion_planning import StompPlanner


@pytest.fixture
def arm_group() -> JointGroup:
    """Provide a 3-DOF planning group."""
    return make_arm_group()


@pytest.fixture
def planner_config(arm_group: JointGroup) -> PlannerConfig:
    """Provide a default planner configuration for the arm group."""
    return PlannerConfig(group_name=arm_group.name)


@pytest.fixture
def ik_solver() -> FakeIKSolver:
    """Provide an IK solver able to reach every target."""
    return FakeIKSolver()


@pytest.fixture
def ik_resolver(ik_solver: FakeIKSolver, arm_group: JointGroup) -> IKChainResolver:
    """Provide an IK chain resolver backed by the fake solver."""
    return IKChainResolver(ik_solver, arm_group)


@pytest.fixture
def optimizer() -> FakeOptimizer:
    """Provide an optimizer returning straight-line trajectories immediately."""
    return FakeOptimizer()


@pytest.fixture
def planning_scene() -> FakePlanningScene:
    """Provide a planning scene in which every trajectory is valid."""
    return FakePlanningScene()


@pytest.fixture
def task() -> FakeTask:
    """Provide an optimization task accepting every request."""
    return FakeTask()


@pytest.fixture
def planner(
    planner_config: PlannerConfig,
    arm_group: JointGroup,
    optimizer: FakeOptimizer,
    ik_solver: FakeIKSolver,
    task: FakeTask,
    planning_scene: FakePlanningScene,
) -> StompPlanner:
    """Provide a planner wired to the fake collaborators."""
    return StompPlanner(
        planner_config,
        arm_group,
        optimizer,
        ik_solver=ik_solver,
        task=task,
        planning_scene=planning_scene,
    )
