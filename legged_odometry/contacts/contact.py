#!/usr/bin/env python3
"""
Contact records
A contact is a candidate interaction between the robot and its environment,
either measured by a force sensor (ContactWithSensor) or bound to a surface
only (ContactWithoutSensor)
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional

from ..exceptions import NotFoundError
from ..utils.kinematics import Kinematics


@dataclass(eq=False)
class Contact:
    """
    Contact state shared by both kinds of contacts

    A contact is created on its first detection and is never deleted: it
    stays dormant (is_set == False) while it is not detected so that its id
    remains valid for any consumer holding it.
    """
    id: int
    name: str
    surface_name: Optional[str] = None

    # Status
    is_set: bool = False               # active on this cycle
    was_already_set: bool = False      # active on the previous cycle
    use_for_orientation: bool = True   # eligible for the orientation odometry
    is_hand: bool = False

    # Measurements
    force_norm: float = 0.0
    wrench: np.ndarray = field(default_factory=lambda: np.zeros(6))
    wrench_in_centroid: np.ndarray = field(default_factory=lambda: np.zeros(6))  # debug only

    # Kinematics
    reference_kinematics: Kinematics = field(default_factory=Kinematics.identity)
    current_kinematics: Kinematics = field(default_factory=Kinematics.identity)
    # pose of the contact in the floating base frame, from the encoders
    local_kinematics: Kinematics = field(default_factory=Kinematics.identity)
    # floating base pose in the world deduced from this contact alone
    world_fb_kinematics: Kinematics = field(default_factory=Kinematics.identity)

    @property
    def has_sensor(self) -> bool:
        return False

    @property
    def surface(self) -> str:
        if self.surface_name is None:
            raise NotFoundError(f"The contact '{self.name}' was created without a surface")
        return self.surface_name

    def reset_contact(self):
        self.is_set = False
        self.was_already_set = False


@dataclass(eq=False)
class ContactWithSensor(Contact):
    """
    Contact measured by a force sensor

    When detected by thresholding the force sensors, the contact is named
    after the sensor and its kinematics are the ones of the sensor.
    Otherwise it is named after its surface, which allows several contacts
    sharing a sensor.
    """
    sensor_name: str = ''
    # False if the surface kinematics differ from the sensor ones
    sensor_attached_to_surface: bool = True
    # the sensor measurements must be used by the estimator
    sensor_enabled: bool = True
    sensor_was_enabled: bool = False

    @property
    def has_sensor(self) -> bool:
        return True

    @property
    def frame_name(self) -> str:
        """Frame whose kinematics are the contact kinematics"""
        if self.sensor_attached_to_surface or self.surface_name is None:
            return self.sensor_name
        return self.surface_name

    def reset_contact(self):
        super().reset_contact()
        self.sensor_was_enabled = False


@dataclass(eq=False)
class ContactWithoutSensor(Contact):
    """Contact known only through its surface"""

    def __post_init__(self):
        self.surface_name = self.name

    @property
    def frame_name(self) -> str:
        return self.name
