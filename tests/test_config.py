"""Unit tests for loading and validating planner configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from planning_fakes import make_arm_group

from stomp_planning.io import ConfigurationError, PlannerConfig, load_planner_configs
from stomp_planning.kinematics import JointGroup

CONFIG_YAML = """
stomp:
  arm_config:
    group_name: manipulator
    optimization:
      num_timesteps: 60
      num_iterations: 40
    session:
      max_seed_deviation: 0.25
    task:
      cost_functions:
        - class: CollisionCheck
          collision_penalty: 1.0
  gripper_config:
    group_name: gripper
"""


def write_yaml(tmp_path: Path, text: str) -> Path:
    """Write YAML text to a file in the temporary directory."""
    yaml_path = tmp_path / "stomp_config.yaml"
    yaml_path.write_text(text)
    return yaml_path


def test_load_planner_configs(tmp_path: Path) -> None:
    """Verify that each configuration entry is keyed by its planning group."""
    # Arrange/Act
    configs = load_planner_configs(write_yaml(tmp_path, CONFIG_YAML))

    # Assert - Expect overridden values where given and defaults elsewhere
    assert set(configs) == {"manipulator", "gripper"}
    arm = configs["manipulator"]
    assert arm.optimization.num_timesteps == 60
    assert arm.optimization.num_rollouts == 10
    assert arm.session.max_seed_deviation == 0.25
    assert arm.session.watchdog_interval_s == 0.05
    assert arm.task["cost_functions"][0]["class"] == "CollisionCheck"
    assert configs["gripper"].optimization.num_iterations == 50


def test_missing_parameter_key_is_a_configuration_error(tmp_path: Path) -> None:
    """Verify that a file without the expected top-level key is rejected."""
    yaml_path = write_yaml(tmp_path, yaml.safe_dump({"chomp": {}}))
    with pytest.raises(ConfigurationError):
        load_planner_configs(yaml_path)


def test_unknown_option_is_a_configuration_error(tmp_path: Path) -> None:
    """Verify that misspelled options are rejected rather than ignored."""
    data = {"stomp": {"arm": {"group_name": "manipulator", "optimization": {"num_timestep": 5}}}}
    with pytest.raises(ConfigurationError):
        load_planner_configs(write_yaml(tmp_path, yaml.safe_dump(data)))


def test_for_group_sets_dimensions() -> None:
    """Verify that validating against a group records its number of active joints."""
    group = make_arm_group()
    config = PlannerConfig(group_name=group.name).for_group(group)
    assert config.optimization.num_dimensions == group.dof


def test_for_group_rejects_zero_dof_group() -> None:
    """Verify that a group without active joints is a configuration error."""
    with pytest.raises(ConfigurationError):
        PlannerConfig(group_name="empty").for_group(JointGroup("empty", joints=()))
