"""Import classes and definitions enabling seeded, cancellable STOMP motion planning."""

from .constraints import Constraints as Constraints
from .constraints import JointConstraint as JointConstraint
from .constraints import MotionPlanRequest as MotionPlanRequest
from .constraints import OrientationConstraint as OrientationConstraint
from .constraints import PositionConstraint as PositionConstraint
from .constraints import RobotState as RobotState
from .errors import ErrorCategory as ErrorCategory
from .errors import PlanningError as PlanningError
from .errors import PlanningErrorCode as PlanningErrorCode
from .errors import PlanningOutcome as PlanningOutcome
from .goal_resolution import GoalResolver as GoalResolver
from .goal_resolution import ResolvedProblem as ResolvedProblem
from .goal_resolution import SeedType as SeedType
from .goal_resolution import classify_seed as classify_seed
from .goals import CartesianGoal as CartesianGoal
from .goals import JointGoal as JointGoal
from .planner import StompPlanner as StompPlanner
from .postprocessing import ResultPostprocessor as ResultPostprocessor
from .seed_repair import RepairedSeed as RepairedSeed
from .seed_repair import SeedRepairer as SeedRepairer
from .session import CancellablePlanningSession as CancellablePlanningSession
from .session import OptimizationProblem as OptimizationProblem
from .session import SessionResult as SessionResult
from .session import SessionState as SessionState
from .time_parameterization import (
    IterativeParabolicTimeParameterization as IterativeParabolicTimeParameterization,
)
from .trajectories import SeedTrajectory as SeedTrajectory
from .trajectories import Trajectory as Trajectory
from .trajectories import TrajectoryPoint as TrajectoryPoint
