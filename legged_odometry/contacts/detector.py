#!/usr/bin/env python3
"""
Contact Detector
Classifies on every cycle which contacts are set, with one of three
detection methods: contacts given by the controller's solver, a fixed list
of candidate surfaces thresholded on the measured normal force, or a
threshold directly applied on every force sensor
"""

import logging
import numpy as np
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence, Set

from .contact import Contact, ContactWithSensor
from .registry import ContactRegistry
from ..exceptions import ConfigurationError, NotFoundError
from ..utils.parsing import enum_from_string

logger = logging.getLogger(__name__)

ContactsSet = FrozenSet[int]


class DetectionMethod(Enum):
    """Contact detection method, fixed for the lifetime of a detector"""
    FROM_SOLVER = 'FromSolver'
    FROM_SURFACES = 'FromSurfaces'
    FROM_THRESHOLD = 'FromThreshold'

    @classmethod
    def from_string(cls, value) -> 'DetectionMethod':
        return enum_from_string(cls, value, what='contacts detection method')


def detection_threshold(mass: float, gravity: float, proportion: float) -> float:
    """Force above which a contact is set: a proportion of the robot weight"""
    return mass * gravity * proportion


class ContactDetector:
    """
    Per-cycle contact classification

    Each contact is either dormant or set. find_contacts() returns the ids of
    the contacts set on this cycle and updates the set of contacts removed
    since the previous cycle. Contacts seen for the first time are
    registered on the fly, the registry thus grows lazily.

    A contact is set when its force is strictly greater than the threshold.
    """

    def __init__(
        self,
        robot,
        method,
        threshold: float,
        surfaces: Optional[Sequence[str]] = None,
        sensors_disabled_init: Iterable[str] = (),
        hand_keywords: Sequence[str] = ('hand',),
        name: str = 'ContactDetector'
    ):
        """
        Initialize contact detector

        Args:
            robot: Robot model providing the force measurements and surfaces
            method: DetectionMethod or its string name
            threshold: Force threshold (N)
            surfaces: Candidate surfaces, required by FromSurfaces
            sensors_disabled_init: Force sensors disabled on contact creation
            hand_keywords: Substrings flagging hand contacts
            name: Name used in the logs
        """
        self.robot = robot
        self.method = DetectionMethod.from_string(method)
        self.threshold = float(threshold)
        self.surfaces: List[str] = list(surfaces or [])
        self.sensors_disabled_init = list(sensors_disabled_init)
        self.hand_keywords = list(hand_keywords)
        self.name = name

        if self.method == DetectionMethod.FROM_SURFACES and not self.surfaces:
            raise ConfigurationError(
                f"[{self.name}]: the detection {self.method.value} requires a non-empty list of surfaces"
            )
        if self.method != DetectionMethod.FROM_SURFACES and self.surfaces:
            logger.warning("[%s]: surfaces for contact detection are ignored by the detection %s",
                           self.name, self.method.value)

        self.reset()

    def reset(self):
        """Forget all the contacts"""
        self.registry = ContactRegistry(self.hand_keywords, self.sensors_disabled_init)
        self._contacts_found: ContactsSet = frozenset()
        self._removed_contacts: ContactsSet = frozenset()

        if self.method == DetectionMethod.FROM_SURFACES:
            # the candidate contacts are known up front
            for surface in self.surfaces:
                if not self.robot.has_surface(surface):
                    raise NotFoundError(f"[{self.name}]: the robot has no surface named '{surface}'")
                self.registry.insert_with_surface(
                    self.robot.surface_force_sensor(surface),
                    surface,
                    self.robot.surface_has_direct_force_sensor(surface)
                )

    @property
    def contacts_found(self) -> ContactsSet:
        return self._contacts_found

    @property
    def removed_contacts(self) -> ContactsSet:
        return self._removed_contacts

    def find_contacts(self, solver_contacts: Optional[Iterable[str]] = None) -> ContactsSet:
        """
        Update and return the set of currently set contacts

        Args:
            solver_contacts: Surfaces in contact according to the solver,
                used only by the FromSolver detection

        Returns:
            Ids of the contacts set on this cycle
        """
        if self.method == DetectionMethod.FROM_SOLVER:
            found = self._find_from_solver(solver_contacts or ())
        elif self.method == DetectionMethod.FROM_SURFACES:
            found = self._find_from_surfaces()
        else:
            found = self._find_from_threshold()

        self._update_contacts(found)
        return self._contacts_found

    def _find_from_solver(self, surfaces: Iterable[str]) -> Set[int]:
        found = set()
        for surface in surfaces:
            if not self.robot.has_surface(surface):
                raise NotFoundError(f"[{self.name}]: the robot has no surface named '{surface}'")
            if self.robot.surface_has_force_sensor(surface):
                contact = self.registry.insert_with_surface(
                    self.robot.surface_force_sensor(surface),
                    surface,
                    self.robot.surface_has_direct_force_sensor(surface)
                )
                self._measure(contact)
            else:
                contact = self.registry.insert(surface, has_sensor=False)
            found.add(contact.id)
        return found

    def _find_from_surfaces(self) -> Set[int]:
        found = set()
        for surface in self.surfaces:
            contact = self.registry.contact_with_sensor(surface)
            wrench = self._measure(contact)
            if self._normal_force(contact, wrench) > self.threshold:
                found.add(contact.id)
        return found

    def _find_from_threshold(self) -> Set[int]:
        found = set()
        for sensor_name in self.robot.force_sensor_names:
            wrench = self.robot.wrench_without_gravity(sensor_name)
            force_norm = float(np.linalg.norm(wrench[:3]))
            if force_norm > self.threshold:
                contact = self.registry.insert(sensor_name, has_sensor=True)
                found.add(contact.id)
            elif sensor_name in self.registry:
                contact = self.registry.get(sensor_name)
            else:
                continue
            contact.wrench = wrench
            contact.force_norm = force_norm
        return found

    def _measure(self, contact: ContactWithSensor) -> np.ndarray:
        wrench = self.robot.wrench_without_gravity(contact.sensor_name)
        contact.wrench = wrench
        contact.force_norm = float(np.linalg.norm(wrench[:3]))
        return wrench

    def _normal_force(self, contact: ContactWithSensor, wrench: np.ndarray) -> float:
        """Magnitude of the measured force along the surface normal"""
        world_surface = self.robot.forward_kinematics_of(contact.surface)
        world_sensor = self.robot.forward_kinematics_of(contact.sensor_name)
        surface_sensor = world_surface.inverse() * world_sensor
        return abs(float((surface_sensor.orientation @ wrench[:3])[2]))

    def _update_contacts(self, found: Set[int]):
        """Update the status of the contacts and the removed contacts"""
        previous = self._contacts_found
        removed = previous - found

        for contact_id in sorted(found):
            contact = self.registry.get(contact_id)
            contact.was_already_set = contact_id in previous
            contact.is_set = True
            if not contact.was_already_set:
                logger.info("[%s]: contact %s set", self.name, contact.name)

        for contact_id in sorted(removed):
            contact = self.registry.get(contact_id)
            contact.reset_contact()
            logger.info("[%s]: contact %s removed", self.name, contact.name)

        self._contacts_found = frozenset(found)
        self._removed_contacts = frozenset(removed)

    def contacts(self, contact_ids: Optional[Iterable[int]] = None) -> List[Contact]:
        """Contacts of the given ids (default: the set ones), sorted by id"""
        ids = self._contacts_found if contact_ids is None else contact_ids
        return [self.registry.get(i) for i in sorted(ids)]

    def to_string(self, contact_ids: Iterable[int]) -> str:
        return self.registry.to_string(contact_ids)
