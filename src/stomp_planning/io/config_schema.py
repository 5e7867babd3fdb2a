"""Define Pydantic models for validating planner configuration loaded from YAML."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from stomp_planning.io.yaml_utils import load_yaml_data

if TYPE_CHECKING:
    from stomp_planning.kinematics.robot_model import JointGroup


class ConfigurationError(Exception):
    """An error raised when planner configuration is malformed or inconsistent."""


class OptimizationConfig(BaseModel):
    """Parameters handed to the trajectory optimizer."""

    control_cost_weight: float = 0.0
    initialization_method: int = Field(default=1, description="1 = linear interpolation")
    num_timesteps: int = Field(default=40, ge=3)
    delta_t: float = Field(default=1.0, gt=0)
    num_iterations: int = Field(default=50, ge=1)
    num_iterations_after_valid: int = Field(default=0, ge=0)
    max_rollouts: int = Field(default=100, ge=1)
    num_rollouts: int = Field(default=10, ge=1)
    exponentiated_cost_sensitivity: float = 10.0
    num_dimensions: int = Field(default=0, ge=0, description="Active DOF of the planning group")

    model_config = ConfigDict(extra="forbid")


class SessionConfig(BaseModel):
    """Parameters governing seed repair, IK resolution, and the planning watchdog."""

    watchdog_interval_s: float = Field(default=0.05, gt=0)
    max_seed_deviation: float = Field(default=0.5, ge=0, description="Summed |dq| across DOF")
    scale_seed_deviation_with_dof: bool = False
    smoothing_degree: int = Field(default=5, ge=1)
    smoothing_tolerance: float = Field(default=1e-5, gt=0)
    ik_timeout_s: float = Field(default=0.01, gt=0)
    ik_base_link: str = "base_link"
    ik_tip_link: Optional[str] = None
    """Tip link of the IK chain (defaults to the planning group's tip link)."""

    model_config = ConfigDict(extra="forbid")


class PlannerConfig(BaseModel):
    """Complete configuration of the planner for a single planning group."""

    group_name: str
    optimization: OptimizationConfig = Field(default_factory=OptimizationConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    task: Dict[str, Any] = Field(default_factory=dict)
    """Opaque parameters forwarded to the optimization task (cost functions, filters, etc.)."""

    model_config = ConfigDict(extra="forbid")

    def for_group(self, group: JointGroup) -> PlannerConfig:
        """Validate the configuration against a planning group and fill in its dimensions.

        :param group: Planning group the configuration will be used with
        :return: Copy of the configuration with `optimization.num_dimensions` set
        :raises ConfigurationError: If the group doesn't match or has no active joints
        """
        if group.name != self.group_name:
            raise ConfigurationError(
                f"STOMP planning group '{self.group_name}' was not found (got '{group.name}')",
            )
        if group.dof == 0:
            raise ConfigurationError(f"Planning group {group.name} has no active joints")

        optimization = self.optimization.model_copy(update={"num_dimensions": group.dof})
        return self.model_copy(update={"optimization": optimization})


def load_planner_configs(yaml_path: Path, param: str = "stomp") -> dict[str, PlannerConfig]:
    """Load per-group planner configurations from a YAML file.

    Each entry under the `param` key must declare the `group_name` it configures.

    :param yaml_path: Path to the YAML file containing planner configuration
    :param param: Top-level key holding the configuration entries (defaults to "stomp")
    :return: Dictionary mapping planning group names to their validated configurations
    :raises ConfigurationError: If the file cannot be parsed or an entry is invalid
    """
    try:
        yaml_data = load_yaml_data(yaml_path, required_keys={param})
    except (FileNotFoundError, KeyError, RuntimeError) as error:
        raise ConfigurationError(f"The '{param}' configuration was not found: {error}") from error

    entries = yaml_data[param]
    if not isinstance(entries, dict):
        raise ConfigurationError(f"Expected '{param}' in {yaml_path} to map names to groups")

    configs: dict[str, PlannerConfig] = {}
    for entry_name, entry_data in entries.items():
        try:
            config = PlannerConfig.model_validate(entry_data)
        except ValidationError as error:
            raise ConfigurationError(
                f"Unable to parse '{param}.{entry_name}' from {yaml_path}:\n{error}",
            ) from error
        configs[config.group_name] = config

    return configs
