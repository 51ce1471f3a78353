"""
Shared fixtures for the legged odometry tests.
Run with: pytest tests/ -v
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from legged_odometry.estimation import OdometryConfig, KinematicContactFilter
from legged_odometry.utils import create_simple_biped_model


@pytest.fixture
def biped():
    """Simple biped of 40 kg standing with its soles at z = 0"""
    return create_simple_biped_model(mass=40.0)


@pytest.fixture
def real_biped():
    """Measured counterpart of the biped fixture"""
    return create_simple_biped_model(mass=40.0)


@pytest.fixture
def config():
    """Default odometry configuration with a threshold of 0.1 * m * g"""
    return OdometryConfig(
        robot_name='simple_biped',
        contact_detection_prop_threshold=0.1,
        dt=0.005
    )


@pytest.fixture
def contact_filter():
    return KinematicContactFilter()


@pytest.fixture
def config_dir():
    return Path(__file__).parent.parent / 'config'
