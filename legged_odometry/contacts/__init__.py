"""
Contact tracking modules
Registry of contacts, per-cycle detection and orientation selection
"""

from .contact import Contact, ContactWithSensor, ContactWithoutSensor
from .registry import ContactRegistry
from .detector import ContactDetector, DetectionMethod, detection_threshold
from .orientation_selector import OrientationSelector, OrientationSelection

__all__ = [
    'Contact',
    'ContactWithSensor',
    'ContactWithoutSensor',
    'ContactRegistry',
    'ContactDetector',
    'DetectionMethod',
    'detection_threshold',
    'OrientationSelector',
    'OrientationSelection'
]
