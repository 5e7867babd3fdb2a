"""Import classes and definitions used for logging, configuration, and file input/output."""

from .config_schema import ConfigurationError as ConfigurationError
from .config_schema import OptimizationConfig as OptimizationConfig
from .config_schema import PlannerConfig as PlannerConfig
from .config_schema import SessionConfig as SessionConfig
from .config_schema import load_planner_configs as load_planner_configs
from .logging import configure_logging as configure_logging
from .logging import console as console
from .logging import log_debug as log_debug
from .logging import log_error as log_error
from .logging import log_info as log_info
from .logging import log_warning as log_warning
