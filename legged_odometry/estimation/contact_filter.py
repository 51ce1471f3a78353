#!/usr/bin/env python3
"""
Contact Filter Interface
Narrow interface of the estimation filter fed by the legged odometry, and a
minimal kinematic implementation keeping track of the contacts it is given
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

from ..exceptions import ConsistencyError, NotFoundError
from ..utils.kinematics import Kinematics


class ContactFilter(ABC):
    """
    Estimation filter consuming the contacts of the odometry

    Poses given to update_* are the kinematics of the contact in the
    floating base frame; the reference pose of add_contact is expressed in
    the world.
    """

    @abstractmethod
    def add_contact(
        self,
        reference_pose: Kinematics,
        init_covariance: np.ndarray,
        process_covariance: np.ndarray,
        contact_id: int,
        stiffness: np.ndarray,
        damping: np.ndarray
    ):
        """Start tracking a contact whose rest pose in the world is reference_pose"""

    @abstractmethod
    def update_contact_with_wrench_sensor(
        self,
        wrench: np.ndarray,
        covariance: np.ndarray,
        input_pose: Kinematics,
        contact_id: int
    ):
        """Give the measured wrench and the contact kinematics for this cycle"""

    @abstractmethod
    def update_contact_with_no_sensor(self, input_pose: Kinematics, contact_id: int):
        """Give the contact kinematics for this cycle, without measurement"""

    @abstractmethod
    def remove_contact(self, contact_id: int):
        """Stop tracking a contact"""

    @abstractmethod
    def number_of_set_contacts(self) -> int:
        """Number of contacts currently tracked"""


@dataclass
class FilterContact:
    """Contact as stored by KinematicContactFilter"""
    reference_pose: Kinematics
    init_covariance: np.ndarray
    process_covariance: np.ndarray
    stiffness: np.ndarray
    damping: np.ndarray
    input_pose: Optional[Kinematics] = None
    wrench: Optional[np.ndarray] = None
    wrench_covariance: Optional[np.ndarray] = None
    with_sensor: bool = False
    updates: int = 0


class KinematicContactFilter(ContactFilter):
    """
    Bookkeeping filter

    Stores the contacts and their latest inputs without fusing them. Useful
    to run the odometry standalone and to inspect what a real filter would
    receive.
    """

    def __init__(self):
        self.contacts: Dict[int, FilterContact] = {}
        self.removed_count = 0

    def add_contact(self, reference_pose, init_covariance, process_covariance,
                    contact_id, stiffness, damping):
        if contact_id in self.contacts:
            raise ConsistencyError(f"The contact {contact_id} is already set in the filter")
        self.contacts[contact_id] = FilterContact(
            reference_pose=reference_pose.copy(),
            init_covariance=np.array(init_covariance, dtype=float),
            process_covariance=np.array(process_covariance, dtype=float),
            stiffness=np.array(stiffness, dtype=float),
            damping=np.array(damping, dtype=float)
        )

    def update_contact_with_wrench_sensor(self, wrench, covariance, input_pose, contact_id):
        contact = self._contact(contact_id)
        contact.wrench = np.array(wrench, dtype=float)
        contact.wrench_covariance = np.array(covariance, dtype=float)
        contact.input_pose = input_pose.copy()
        contact.with_sensor = True
        contact.updates += 1

    def update_contact_with_no_sensor(self, input_pose, contact_id):
        contact = self._contact(contact_id)
        contact.input_pose = input_pose.copy()
        contact.wrench = None
        contact.with_sensor = False
        contact.updates += 1

    def remove_contact(self, contact_id):
        self._contact(contact_id)
        del self.contacts[contact_id]
        self.removed_count += 1

    def number_of_set_contacts(self) -> int:
        return len(self.contacts)

    def is_set(self, contact_id: int) -> bool:
        return contact_id in self.contacts

    def _contact(self, contact_id: int) -> FilterContact:
        if contact_id not in self.contacts:
            raise NotFoundError(f"The contact {contact_id} is not set in the filter")
        return self.contacts[contact_id]
