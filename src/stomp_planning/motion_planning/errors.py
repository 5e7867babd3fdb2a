"""Define the classification of planning failures and the outcome reported to callers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stomp_planning.motion_planning.trajectories import Trajectory


class ErrorCategory(Enum):
    """Broad classes of planning failure, distinguishing what a caller can do about them."""

    NONE = "none"
    CONFIGURATION = "configuration"
    RESOLUTION = "resolution"
    OPTIMIZATION = "optimization"
    POSTPROCESSING = "postprocessing"


class PlanningErrorCode(Enum):
    """An enumeration of the reasons a planning attempt can end."""

    SUCCESS = ("success", ErrorCategory.NONE)

    INVALID_GROUP = ("invalid_group", ErrorCategory.CONFIGURATION)

    INVALID_SEED = ("invalid_seed", ErrorCategory.RESOLUTION)
    INSUFFICIENT_SEED_LENGTH = ("insufficient_seed_length", ErrorCategory.RESOLUTION)
    SEED_START_MISMATCH = ("seed_start_mismatch", ErrorCategory.RESOLUTION)
    SEED_GOAL_MISMATCH = ("seed_goal_mismatch", ErrorCategory.RESOLUTION)
    NO_SATISFIABLE_GOAL = ("no_satisfiable_goal", ErrorCategory.RESOLUTION)
    SMOOTHING_FAILED = ("smoothing_failed", ErrorCategory.RESOLUTION)
    AMBIGUOUS_SEED_TYPE = ("ambiguous_seed_type", ErrorCategory.RESOLUTION)
    INVALID_START_STATE = ("invalid_start_state", ErrorCategory.RESOLUTION)
    START_OUT_OF_BOUNDS = ("start_out_of_bounds", ErrorCategory.RESOLUTION)
    NO_JOINT_GOAL_FOUND = ("no_joint_goal_found", ErrorCategory.RESOLUTION)
    START_IK_FAILED = ("start_ik_failed", ErrorCategory.RESOLUTION)
    GOAL_IK_FAILED = ("goal_ik_failed", ErrorCategory.RESOLUTION)

    TASK_SETUP_FAILED = ("task_setup_failed", ErrorCategory.OPTIMIZATION)
    PLANNING_FAILED = ("planning_failed", ErrorCategory.OPTIMIZATION)
    CANCELLED = ("cancelled", ErrorCategory.OPTIMIZATION)

    TIME_PARAMETERIZATION_FAILED = ("time_parameterization_failed", ErrorCategory.POSTPROCESSING)
    PATH_IN_COLLISION = ("path_in_collision", ErrorCategory.POSTPROCESSING)

    def __init__(self, label: str, category: ErrorCategory) -> None:
        """Store the label and category of the error code."""
        self.label = label
        self.category = category


class PlanningError(Exception):
    """An error raised by a planning pipeline stage, carrying its failure classification."""

    def __init__(self, code: PlanningErrorCode, message: str) -> None:
        """Initialize the error with its classification and a human-readable cause."""
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        """Return the error's classification label and message."""
        return f"[{self.code.label}] {self.message}"


@dataclass(frozen=True)
class PlanningOutcome:
    """The result of a single planning attempt, reported to the caller."""

    error_code: PlanningErrorCode
    message: str
    trajectory: Trajectory | None = None
    """Planned trajectory (may be attached to a failed outcome for diagnostic purposes)."""

    planning_time_s: float = 0.0
    description: str = "STOMP"

    @property
    def success(self) -> bool:
        """Check whether planning succeeded."""
        return self.error_code is PlanningErrorCode.SUCCESS

    @property
    def category(self) -> ErrorCategory:
        """Retrieve the broad class of the outcome's failure (NONE on success)."""
        return self.error_code.category

    @classmethod
    def failure(cls, error: PlanningError, planning_time_s: float, **kwargs) -> PlanningOutcome:
        """Construct a failed outcome from a planning error."""
        return cls(error.code, error.message, planning_time_s=planning_time_s, **kwargs)
