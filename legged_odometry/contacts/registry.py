#!/usr/bin/env python3
"""
Contact Registry
Insertion-ordered store of all the contacts ever detected, indexed by a
stable integer id
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Union

from .contact import Contact, ContactWithSensor, ContactWithoutSensor
from ..exceptions import ConsistencyError, NotFoundError

logger = logging.getLogger(__name__)

ContactKey = Union[int, str]


class ContactRegistry:
    """
    Registry of contacts

    Ids are assigned on insertion, starting at 0 and incremented by one, so
    that the id of a contact is also its index in the insertion order. Ids
    are never reused and contacts are never removed.
    """

    def __init__(
        self,
        hand_keywords: Sequence[str] = ('hand',),
        sensors_disabled_init: Iterable[str] = ()
    ):
        """
        Initialize registry

        Args:
            hand_keywords: Case-insensitive substrings flagging hand contacts
            sensors_disabled_init: Force sensors whose measurements are
                disabled on the contacts created with them
        """
        self.hand_keywords = [k.lower() for k in hand_keywords]
        self.sensors_disabled_init = set(sensors_disabled_init)

        self._contacts: Dict[int, Contact] = {}
        self._ids: Dict[str, int] = {}
        self._insert_order: List[str] = []

    def insert(self, name: str, has_sensor: bool) -> Contact:
        """
        Insert a contact associated either to a force sensor or to a surface

        Idempotent: returns the existing contact if the name is known.

        Args:
            name: Name of the force sensor if has_sensor, else of the surface
            has_sensor: True if the contact is measured by a force sensor

        Returns:
            The new or existing contact

        Raises:
            ConsistencyError: if the contact exists with another association
        """
        if name in self._ids:
            contact = self._contacts[self._ids[name]]
            if contact.has_sensor != has_sensor:
                raise ConsistencyError(
                    f"The contact '{name}' was previously "
                    f"{'' if contact.has_sensor else 'not '}associated to a force sensor"
                )
            return contact

        contact_id = len(self._insert_order)
        if has_sensor:
            contact = ContactWithSensor(id=contact_id, name=name, sensor_name=name)
        else:
            contact = ContactWithoutSensor(id=contact_id, name=name)
        return self._add(contact)

    def insert_with_surface(
        self,
        sensor_name: str,
        surface_name: str,
        sensor_attached_to_surface: bool
    ) -> ContactWithSensor:
        """
        Insert a contact associated to both a force sensor and a surface

        The contact is named after the surface.

        Raises:
            ConsistencyError: if the contact exists with another association
        """
        if surface_name in self._ids:
            contact = self._contacts[self._ids[surface_name]]
            if not isinstance(contact, ContactWithSensor):
                raise ConsistencyError(
                    f"The contact '{surface_name}' already exists and is associated to no sensor"
                )
            if contact.sensor_name != sensor_name:
                raise ConsistencyError(
                    f"The contact '{surface_name}' is associated to the sensor "
                    f"'{contact.sensor_name}', not '{sensor_name}'"
                )
            if contact.sensor_attached_to_surface != sensor_attached_to_surface:
                raise ConsistencyError(
                    f"The contact '{surface_name}' was registered with a sensor "
                    f"{'' if contact.sensor_attached_to_surface else 'not '}attached to its surface"
                )
            return contact

        contact = ContactWithSensor(
            id=len(self._insert_order),
            name=surface_name,
            surface_name=surface_name,
            sensor_name=sensor_name,
            sensor_attached_to_surface=sensor_attached_to_surface
        )
        return self._add(contact)

    def _add(self, contact: Contact) -> Contact:
        contact.is_hand = any(k in contact.name.lower() for k in self.hand_keywords)
        if isinstance(contact, ContactWithSensor):
            contact.sensor_enabled = contact.sensor_name not in self.sensors_disabled_init

        self._contacts[contact.id] = contact
        self._ids[contact.name] = contact.id
        self._insert_order.append(contact.name)
        logger.debug("Registered contact %s (id %d, %s)", contact.name, contact.id,
                     'with sensor' if contact.has_sensor else 'without sensor')
        return contact

    def get(self, key: ContactKey) -> Contact:
        """Contact by name or id (returned by reference)"""
        if isinstance(key, str):
            if key not in self._ids:
                raise NotFoundError(f"The contact '{key}' does not exist")
            return self._contacts[self._ids[key]]
        if key not in self._contacts:
            raise NotFoundError(f"No contact has the id {key}")
        return self._contacts[key]

    def contact_with_sensor(self, key: ContactKey) -> ContactWithSensor:
        contact = self.get(key)
        if not isinstance(contact, ContactWithSensor):
            raise NotFoundError(f"The contact '{contact.name}' is not associated to a force sensor")
        return contact

    def contact_without_sensor(self, key: ContactKey) -> ContactWithoutSensor:
        contact = self.get(key)
        if not isinstance(contact, ContactWithoutSensor):
            raise NotFoundError(f"The contact '{contact.name}' is associated to a force sensor")
        return contact

    def has_element(self, name: str) -> bool:
        return name in self._ids

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in self._ids
        return key in self._contacts

    def has_sensor(self, name: str) -> bool:
        return self.get(name).has_sensor

    def name_from_id(self, contact_id: int) -> str:
        if not 0 <= contact_id < len(self._insert_order):
            raise NotFoundError(f"No contact has the id {contact_id}")
        return self._insert_order[contact_id]

    def id_from_name(self, name: str) -> int:
        return self.get(name).id

    def list(self) -> List[str]:
        """Names of all the contacts, in insertion order"""
        return list(self._insert_order)

    def contacts_with_sensors(self) -> Dict[str, ContactWithSensor]:
        return {c.name: c for c in self if isinstance(c, ContactWithSensor)}

    def contacts_without_sensors(self) -> Dict[str, ContactWithoutSensor]:
        return {c.name: c for c in self if isinstance(c, ContactWithoutSensor)}

    def to_string(self, contact_ids: Optional[Iterable[int]]) -> str:
        """Comma separated names of the given contacts, sorted by id"""
        return ', '.join(self.name_from_id(i) for i in sorted(contact_ids or ()))

    def __iter__(self) -> Iterator[Contact]:
        return (self._contacts[i] for i in range(len(self._insert_order)))

    def __len__(self) -> int:
        return len(self._insert_order)
