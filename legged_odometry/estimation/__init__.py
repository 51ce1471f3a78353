"""
State Estimation modules for legged robots
Legged odometry and the interface of the filter it feeds
"""

from .legged_odometry import (
    LeggedOdometryEstimator,
    OdometryConfig,
    OdometryResult,
    OdometryType,
    OdometryStatus,
    VelocityUpdate,
    AnchorPolicy
)
from .contact_filter import ContactFilter, KinematicContactFilter

__all__ = [
    'LeggedOdometryEstimator',
    'OdometryConfig',
    'OdometryResult',
    'OdometryType',
    'OdometryStatus',
    'VelocityUpdate',
    'AnchorPolicy',
    'ContactFilter',
    'KinematicContactFilter'
]
