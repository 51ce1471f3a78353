#!/usr/bin/env python3
"""
Selection of the contacts used for the orientation odometry
"""

from dataclasses import dataclass
from typing import Iterable, Tuple

from .contact import Contact


@dataclass(frozen=True)
class OrientationSelection:
    """Contacts selected for the orientation odometry, highest force first"""
    contacts: Tuple[int, ...] = ()
    sum_forces: float = 0.0

    @property
    def updatable(self) -> bool:
        """False when no contact can be used: the orientation must be held"""
        return len(self.contacts) > 0

    def __contains__(self, contact_id: object) -> bool:
        return contact_id in self.contacts


class OrientationSelector:
    """
    Chooses the contacts trusted for the orientation odometry

    The orientation given by hand contacts or weakly loaded contacts is less
    reliable: among the set contacts eligible for the orientation and not
    at hands, the ones with the highest measured force are kept. Ties are
    broken by ascending contact id.
    """

    def __init__(self, max_contacts: int = 2):
        self.max_contacts = max_contacts

    def select(self, contacts: Iterable[Contact]) -> OrientationSelection:
        eligible = [
            c for c in contacts
            if c.is_set and c.use_for_orientation and not c.is_hand
        ]
        eligible.sort(key=lambda c: (-c.force_norm, c.id))
        chosen = eligible[:self.max_contacts]

        return OrientationSelection(
            contacts=tuple(c.id for c in chosen),
            sum_forces=float(sum(c.force_norm for c in chosen))
        )
