"""Import classes and definitions for robot kinematics."""

from .configuration import Configuration as Configuration
from .configuration import JointVector as JointVector
from .configuration import as_joint_vector as as_joint_vector
from .configuration import l1_distance as l1_distance
from .ik_chain import ChainResolution as ChainResolution
from .ik_chain import IKChainResolver as IKChainResolver
from .ik_chain import IKSolver as IKSolver
from .poses import Point3D as Point3D
from .poses import Pose3D as Pose3D
from .poses import Quaternion as Quaternion
from .robot_model import JointGroup as JointGroup
from .robot_model import JointLimits as JointLimits
from .robot_model import JointType as JointType
