"""
Tests for the contact registry.
Run with: pytest tests/ -v
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from legged_odometry.contacts import ContactRegistry, ContactWithSensor, ContactWithoutSensor
from legged_odometry.exceptions import ConsistencyError, NotFoundError


@pytest.fixture
def registry():
    return ContactRegistry(hand_keywords=['hand'], sensors_disabled_init=['RightFootForceSensor'])


class TestInsertion:
    """Test contact insertion."""

    def test_ids_follow_insertion_order(self, registry):
        a = registry.insert('LeftFootForceSensor', has_sensor=True)
        b = registry.insert('Back', has_sensor=False)
        c = registry.insert_with_surface('RightFootForceSensor', 'RightFoot', True)
        assert (a.id, b.id, c.id) == (0, 1, 2)
        assert registry.list() == ['LeftFootForceSensor', 'Back', 'RightFoot']
        assert [contact.id for contact in registry] == [0, 1, 2]

    def test_insert_is_idempotent(self, registry):
        first = registry.insert('LeftFootForceSensor', has_sensor=True)
        second = registry.insert('LeftFootForceSensor', has_sensor=True)
        assert first is second
        assert len(registry) == 1

    def test_insert_kind_mismatch(self, registry):
        registry.insert('LeftFoot', has_sensor=False)
        with pytest.raises(ConsistencyError):
            registry.insert('LeftFoot', has_sensor=True)

    def test_insert_with_surface_is_idempotent(self, registry):
        first = registry.insert_with_surface('LeftFootForceSensor', 'LeftToe', False)
        second = registry.insert_with_surface('LeftFootForceSensor', 'LeftToe', False)
        assert first is second
        assert first.name == 'LeftToe'
        assert first.surface == 'LeftToe'
        assert not first.sensor_attached_to_surface

    def test_insert_with_surface_other_sensor(self, registry):
        registry.insert_with_surface('LeftFootForceSensor', 'LeftToe', False)
        with pytest.raises(ConsistencyError):
            registry.insert_with_surface('RightFootForceSensor', 'LeftToe', False)

    def test_insert_with_surface_other_attachment(self, registry):
        registry.insert_with_surface('LeftFootForceSensor', 'LeftToe', False)
        with pytest.raises(ConsistencyError):
            registry.insert_with_surface('LeftFootForceSensor', 'LeftToe', True)

    def test_insert_with_surface_on_sensorless_contact(self, registry):
        registry.insert('LeftFoot', has_sensor=False)
        with pytest.raises(ConsistencyError):
            registry.insert_with_surface('LeftFootForceSensor', 'LeftFoot', True)

    def test_hand_flag(self, registry):
        assert registry.insert('LeftHandForceSensor', has_sensor=True).is_hand
        assert not registry.insert('LeftFootForceSensor', has_sensor=True).is_hand

    def test_sensor_disabled_init(self, registry):
        assert not registry.insert('RightFootForceSensor', has_sensor=True).sensor_enabled
        assert registry.insert('LeftFootForceSensor', has_sensor=True).sensor_enabled

    def test_sensorless_contact_is_its_surface(self, registry):
        contact = registry.insert('Back', has_sensor=False)
        assert isinstance(contact, ContactWithoutSensor)
        assert contact.surface == 'Back'
        assert contact.frame_name == 'Back'


class TestLookup:
    """Test contact lookup."""

    def test_name_id_bijection(self, registry):
        for name in ('A', 'B', 'C'):
            registry.insert(name, has_sensor=True)
        for name in registry.list():
            assert registry.name_from_id(registry.id_from_name(name)) == name

    def test_get_returns_reference(self, registry):
        registry.insert('LeftFootForceSensor', has_sensor=True)
        registry.get(0).force_norm = 12.0
        assert registry.get('LeftFootForceSensor').force_norm == 12.0

    def test_unknown_contact(self, registry):
        with pytest.raises(NotFoundError):
            registry.get('Nope')
        with pytest.raises(NotFoundError):
            registry.get(3)
        with pytest.raises(NotFoundError):
            registry.name_from_id(0)

    def test_kind_specific_lookup(self, registry):
        registry.insert('LeftFootForceSensor', has_sensor=True)
        registry.insert('Back', has_sensor=False)
        assert isinstance(registry.contact_with_sensor('LeftFootForceSensor'), ContactWithSensor)
        with pytest.raises(NotFoundError):
            registry.contact_with_sensor('Back')
        with pytest.raises(NotFoundError):
            registry.contact_without_sensor('LeftFootForceSensor')
        assert list(registry.contacts_with_sensors()) == ['LeftFootForceSensor']
        assert list(registry.contacts_without_sensors()) == ['Back']

    def test_membership(self, registry):
        registry.insert('LeftFootForceSensor', has_sensor=True)
        assert registry.has_element('LeftFootForceSensor')
        assert 'LeftFootForceSensor' in registry
        assert 0 in registry
        assert 1 not in registry
        assert registry.has_sensor('LeftFootForceSensor')

    def test_to_string(self, registry):
        registry.insert('A', has_sensor=True)
        registry.insert('B', has_sensor=True)
        assert registry.to_string({1, 0}) == 'A, B'
        assert registry.to_string(set()) == ''

    def test_ids_never_reused(self, registry):
        contact = registry.insert('A', has_sensor=True)
        contact.reset_contact()
        registry.insert('B', has_sensor=True)
        assert registry.id_from_name('A') == 0
        assert registry.id_from_name('B') == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
