"""Utility modules for legged odometry"""

from .math_utils import (
    axis_angle_to_rotation_matrix,
    rotation_matrix_z,
    quaternion_to_rotation_matrix,
    rotation_matrix_to_quaternion,
    yaw_of,
    merge_tilt_with_yaw,
    weighted_rotation_average,
    rotation_difference_vector
)

from .kinematics import Kinematics
from .robot_model import (
    RobotModel,
    RobotConfig,
    RobotState,
    KinematicTree,
    compose_kinematics,
    frame_kinematics,
    create_simple_biped_model
)

__all__ = [
    'axis_angle_to_rotation_matrix', 'rotation_matrix_z',
    'quaternion_to_rotation_matrix', 'rotation_matrix_to_quaternion',
    'yaw_of', 'merge_tilt_with_yaw',
    'weighted_rotation_average', 'rotation_difference_vector',
    'Kinematics', 'RobotModel', 'RobotConfig', 'RobotState', 'KinematicTree',
    'compose_kinematics', 'frame_kinematics', 'create_simple_biped_model'
]
