#!/usr/bin/env python3
"""
Rigid-body kinematics
6D rigid transforms with associative composition and explicit inverse
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional

from .math_utils import (
    quaternion_to_rotation_matrix,
    rotation_matrix_to_quaternion,
    axis_angle_to_rotation_matrix
)


@dataclass(eq=False)
class Kinematics:
    """
    Pose of a frame B expressed in a frame A

    ``position`` is the origin of B in A and ``orientation`` the rotation
    matrix mapping B coordinates into A coordinates. With a = A->B and
    b = B->C, ``a * b`` is A->C.
    """
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: np.ndarray = field(default_factory=lambda: np.eye(3))

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float).reshape(3)
        self.orientation = np.array(self.orientation, dtype=float).reshape(3, 3)

    @classmethod
    def identity(cls) -> 'Kinematics':
        return cls()

    @classmethod
    def from_quaternion(
        cls,
        quaternion: np.ndarray,
        position: Optional[np.ndarray] = None
    ) -> 'Kinematics':
        """Build from a [w, x, y, z] quaternion and an optional position"""
        return cls(
            position=np.zeros(3) if position is None else position,
            orientation=quaternion_to_rotation_matrix(quaternion)
        )

    @classmethod
    def from_axis_angle(
        cls,
        axis: np.ndarray,
        angle: float,
        position: Optional[np.ndarray] = None
    ) -> 'Kinematics':
        return cls(
            position=np.zeros(3) if position is None else position,
            orientation=axis_angle_to_rotation_matrix(axis, angle)
        )

    @classmethod
    def from_transform(cls, T: np.ndarray) -> 'Kinematics':
        """Build from a 4x4 homogeneous transformation matrix"""
        return cls(position=T[:3, 3], orientation=T[:3, :3])

    def __mul__(self, other: 'Kinematics') -> 'Kinematics':
        if not isinstance(other, Kinematics):
            return NotImplemented
        return Kinematics(
            position=self.position + self.orientation @ other.position,
            orientation=self.orientation @ other.orientation
        )

    def inverse(self) -> 'Kinematics':
        R_t = self.orientation.T
        return Kinematics(position=-R_t @ self.position, orientation=R_t)

    def transform_point(self, point: np.ndarray) -> np.ndarray:
        """Express in A a point given in B"""
        return self.position + self.orientation @ np.asarray(point, dtype=float)

    def transform_wrench(self, wrench: np.ndarray) -> np.ndarray:
        """
        Express in A a wrench given in B

        Args:
            wrench: 6D wrench [force, torque] expressed at the origin of B

        Returns:
            6D wrench [force, torque] expressed at the origin of A
        """
        wrench = np.asarray(wrench, dtype=float)
        force = self.orientation @ wrench[:3]
        torque = self.orientation @ wrench[3:] + np.cross(self.position, force)
        return np.concatenate([force, torque])

    def as_transform(self) -> np.ndarray:
        """4x4 homogeneous transformation matrix"""
        T = np.eye(4)
        T[:3, :3] = self.orientation
        T[:3, 3] = self.position
        return T

    @property
    def quaternion(self) -> np.ndarray:
        """Orientation as a [w, x, y, z] quaternion"""
        return rotation_matrix_to_quaternion(self.orientation)

    def copy(self) -> 'Kinematics':
        return Kinematics(position=self.position.copy(), orientation=self.orientation.copy())

    def allclose(self, other: 'Kinematics', atol: float = 1e-9) -> bool:
        return (
            np.allclose(self.position, other.position, atol=atol)
            and np.allclose(self.orientation, other.orientation, atol=atol)
        )

    def __repr__(self) -> str:
        return (
            f"Kinematics(position={np.array2string(self.position, precision=4)}, "
            f"quaternion={np.array2string(self.quaternion, precision=4)})"
        )
