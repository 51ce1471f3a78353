"""
Tests for the contact detector.
Run with: pytest tests/ -v
"""

import numpy as np
import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from legged_odometry.contacts import (
    ContactDetector,
    ContactWithSensor,
    ContactWithoutSensor,
    DetectionMethod,
    detection_threshold
)
from legged_odometry.exceptions import ConfigurationError, NotFoundError
from legged_odometry.utils import Kinematics


def load(robot, sensor, force):
    robot.set_force_reading(sensor, [0.0, 0.0, force])


class TestDetectionMethod:
    """Test method parsing and threshold."""

    def test_from_string(self):
        assert DetectionMethod.from_string('FromThreshold') == DetectionMethod.FROM_THRESHOLD
        assert DetectionMethod.from_string('from_surfaces') == DetectionMethod.FROM_SURFACES
        assert DetectionMethod.from_string(DetectionMethod.FROM_SOLVER) == DetectionMethod.FROM_SOLVER

    def test_unknown_method(self, biped):
        with pytest.raises(ConfigurationError) as err:
            ContactDetector(biped, 'FromMagic', 10.0)
        assert 'FromThreshold' in str(err.value)

    def test_threshold(self):
        assert detection_threshold(40.0, 9.81, 0.1) == pytest.approx(39.24)


class TestFromThreshold:
    """Test detection by thresholding the force sensors."""

    def test_strict_threshold(self, biped):
        detector = ContactDetector(biped, 'FromThreshold', 100.0)
        load(biped, 'LeftFootForceSensor', 100.0)
        assert detector.find_contacts() == frozenset()
        load(biped, 'LeftFootForceSensor', 100.001)
        assert detector.find_contacts() == frozenset({0})

    def test_lazy_registration(self, biped):
        detector = ContactDetector(biped, 'FromThreshold', 50.0)
        detector.find_contacts()
        assert len(detector.registry) == 0

        load(biped, 'RightFootForceSensor', 200.0)
        detector.find_contacts()
        assert detector.registry.list() == ['RightFootForceSensor']

    def test_contact_lifecycle(self, biped):
        detector = ContactDetector(biped, 'FromThreshold', 50.0)
        load(biped, 'LeftFootForceSensor', 300.0)

        assert detector.find_contacts() == frozenset({0})
        contact = detector.registry.get(0)
        assert contact.is_set and not contact.was_already_set
        assert contact.force_norm == pytest.approx(300.0)
        np.testing.assert_allclose(contact.wrench, [0.0, 0.0, 300.0, 0.0, 0.0, 0.0])

        assert detector.find_contacts() == frozenset({0})
        assert contact.was_already_set

        load(biped, 'LeftFootForceSensor', 10.0)
        assert detector.find_contacts() == frozenset()
        assert detector.removed_contacts == frozenset({0})
        assert not contact.is_set and not contact.was_already_set
        # measurements still tracked while dormant
        assert contact.force_norm == pytest.approx(10.0)

        detector.find_contacts()
        assert detector.removed_contacts == frozenset()

    def test_found_and_removed_are_disjoint(self, biped):
        detector = ContactDetector(biped, 'FromThreshold', 50.0)
        sequence = [
            {'LeftFootForceSensor': 200.0, 'RightFootForceSensor': 200.0},
            {'LeftFootForceSensor': 0.0, 'RightFootForceSensor': 400.0},
            {'LeftFootForceSensor': 200.0, 'RightFootForceSensor': 200.0},
            {'LeftFootForceSensor': 400.0, 'RightFootForceSensor': 0.0},
            {'LeftFootForceSensor': 0.0, 'RightFootForceSensor': 0.0},
        ]
        previous = frozenset()
        for forces in sequence:
            for sensor, force in forces.items():
                load(biped, sensor, force)
            found = detector.find_contacts()
            removed = detector.removed_contacts
            assert not found & removed
            assert removed <= previous
            assert removed == previous - found
            previous = found

    def test_hand_contact(self, biped):
        detector = ContactDetector(biped, 'FromThreshold', 50.0)
        load(biped, 'LeftHandForceSensor', 100.0)
        detector.find_contacts()
        assert detector.registry.get('LeftHandForceSensor').is_hand

    def test_reset(self, biped):
        detector = ContactDetector(biped, 'FromThreshold', 50.0)
        load(biped, 'LeftFootForceSensor', 100.0)
        detector.find_contacts()
        detector.reset()
        assert len(detector.registry) == 0
        assert detector.contacts_found == frozenset()


class TestFromSurfaces:
    """Test detection on a fixed list of surfaces."""

    def test_requires_surfaces(self, biped):
        with pytest.raises(ConfigurationError):
            ContactDetector(biped, 'FromSurfaces', 50.0)

    def test_unknown_surface(self, biped):
        with pytest.raises(NotFoundError):
            ContactDetector(biped, 'FromSurfaces', 50.0, surfaces=['Nope'])

    def test_contacts_registered_up_front(self, biped):
        detector = ContactDetector(biped, 'FromSurfaces', 50.0, surfaces=['RightFoot', 'LeftToe'])
        assert detector.registry.list() == ['RightFoot', 'LeftToe']

        right = detector.registry.get('RightFoot')
        toe = detector.registry.get('LeftToe')
        assert right.sensor_attached_to_surface
        assert right.frame_name == 'RightFootForceSensor'
        assert toe.sensor_name == 'LeftFootForceSensor'
        assert not toe.sensor_attached_to_surface
        assert toe.frame_name == 'LeftToe'

    def test_normal_force(self, biped):
        detector = ContactDetector(biped, 'FromSurfaces', 50.0, surfaces=['LeftFoot'])
        # tangential force only
        biped.set_force_reading('LeftFootForceSensor', [300.0, 0.0, 20.0])
        assert detector.find_contacts() == frozenset()
        biped.set_force_reading('LeftFootForceSensor', [0.0, 0.0, -300.0])
        assert detector.find_contacts() == frozenset({0})

    def test_shared_sensor(self, biped):
        detector = ContactDetector(biped, 'FromSurfaces', 50.0, surfaces=['LeftFoot', 'LeftToe'])
        load(biped, 'LeftFootForceSensor', 300.0)
        assert detector.find_contacts() == frozenset({0, 1})

    def test_surfaces_ignored_by_other_methods(self, biped, caplog):
        ContactDetector(biped, 'FromThreshold', 50.0, surfaces=['LeftFoot'])
        assert 'ignored' in caplog.text


class TestFromSolver:
    """Test detection from the solver contacts."""

    def test_contacts_from_solver(self, biped):
        detector = ContactDetector(biped, 'FromSolver', 50.0)
        found = detector.find_contacts(['LeftFoot'])
        contact = detector.registry.get('LeftFoot')
        assert found == frozenset({contact.id})
        assert isinstance(contact, ContactWithSensor)
        assert contact.sensor_name == 'LeftFootForceSensor'

    def test_no_threshold_applied(self, biped):
        detector = ContactDetector(biped, 'FromSolver', 50.0)
        assert detector.find_contacts(['RightFoot']) == frozenset({0})
        assert detector.registry.get(0).force_norm == 0.0

    def test_surface_without_sensor(self, biped):
        biped.tree.add_surface('Back', 'pelvis', Kinematics(position=[-0.1, 0.0, 0.2]))
        detector = ContactDetector(biped, 'FromSolver', 50.0)
        detector.find_contacts(['Back'])
        assert isinstance(detector.registry.get('Back'), ContactWithoutSensor)

    def test_removed_when_not_given(self, biped):
        detector = ContactDetector(biped, 'FromSolver', 50.0)
        detector.find_contacts(['LeftFoot', 'RightFoot'])
        assert detector.find_contacts(['RightFoot']) == frozenset({1})
        assert detector.removed_contacts == frozenset({0})

    def test_unknown_surface(self, biped):
        detector = ContactDetector(biped, 'FromSolver', 50.0)
        with pytest.raises(NotFoundError):
            detector.find_contacts(['Nope'])

    def test_sensor_disabled_init(self, biped):
        detector = ContactDetector(biped, 'FromSolver', 50.0,
                                   sensors_disabled_init=['LeftFootForceSensor'])
        detector.find_contacts(['LeftFoot'])
        assert not detector.registry.get('LeftFoot').sensor_enabled


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
