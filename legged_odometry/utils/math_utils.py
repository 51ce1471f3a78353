#!/usr/bin/env python3
"""
Mathematical utilities for legged odometry
Rotation representations, tilt / yaw decomposition and rotation averaging
"""

import numpy as np
from typing import Sequence
from scipy.spatial.transform import Rotation


def axis_angle_to_rotation_matrix(axis: np.ndarray, angle: float) -> np.ndarray:
    """Rotation matrix of the rotation of ``angle`` radians about ``axis``"""
    axis = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(axis)
    if norm < 1e-12:
        return np.eye(3)
    return Rotation.from_rotvec(axis / norm * angle).as_matrix()


def rotation_matrix_z(angle: float) -> np.ndarray:
    """Rotation matrix about Z axis"""
    c, s = np.cos(angle), np.sin(angle)
    return np.array([
        [c, -s, 0],
        [s, c, 0],
        [0, 0, 1]
    ])


def quaternion_to_rotation_matrix(q: np.ndarray) -> np.ndarray:
    """
    Convert quaternion to rotation matrix

    Args:
        q: Quaternion [w, x, y, z] (scalar first)

    Returns:
        3x3 rotation matrix
    """
    w, x, y, z = q
    # scipy is scalar last
    return Rotation.from_quat([x, y, z, w]).as_matrix()


def rotation_matrix_to_quaternion(R: np.ndarray) -> np.ndarray:
    """
    Convert rotation matrix to quaternion

    Args:
        R: 3x3 rotation matrix

    Returns:
        Quaternion [w, x, y, z] (scalar first, w >= 0)
    """
    x, y, z, w = Rotation.from_matrix(R).as_quat()
    q = np.array([w, x, y, z])
    return -q if w < 0 else q


def yaw_of(R: np.ndarray) -> float:
    """Yaw angle of a rotation matrix (Z of the intrinsic Z-Y-X decomposition)"""
    return float(np.arctan2(R[1, 0], R[0, 0]))


def merge_tilt_with_yaw(tilt: np.ndarray, yaw_source: np.ndarray) -> np.ndarray:
    """
    Build the rotation having the tilt of ``tilt`` and the yaw of ``yaw_source``

    The tilt is the part of the orientation that is observable from gravity
    (roll and pitch). It is carried by the last row of the matrix, R^T e_z,
    which is left unchanged by a left multiplication with a rotation about
    the world vertical axis.

    Args:
        tilt: 3x3 rotation providing roll and pitch
        yaw_source: 3x3 rotation providing the yaw

    Returns:
        3x3 rotation matrix
    """
    delta = yaw_of(yaw_source) - yaw_of(tilt)
    return rotation_matrix_z(delta) @ tilt


def weighted_rotation_average(
    rotations: Sequence[np.ndarray],
    weights: Sequence[float]
) -> np.ndarray:
    """
    Weighted average of rotation matrices

    Uses the chordal L2 mean of the quaternions. Null or negative total
    weight falls back to uniform weights.

    Args:
        rotations: 3x3 rotation matrices
        weights: One non-negative weight per rotation

    Returns:
        3x3 rotation matrix
    """
    if len(rotations) == 0:
        raise ValueError("Cannot average an empty set of rotations")
    if len(rotations) == 1:
        return np.array(rotations[0], dtype=float)

    w = np.asarray(weights, dtype=float)
    if w.sum() <= 0.0:
        w = np.ones(len(rotations))

    stacked = Rotation.from_matrix(np.stack(rotations))
    return stacked.mean(weights=w).as_matrix()


def rotation_difference_vector(R_from: np.ndarray, R_to: np.ndarray) -> np.ndarray:
    """
    Rotation vector of R_to @ R_from^T, expressed in the world frame

    Divided by a time step this is the angular velocity that rotates
    R_from into R_to.
    """
    return Rotation.from_matrix(R_to @ R_from.T).as_rotvec()
