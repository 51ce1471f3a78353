#!/usr/bin/env python3
"""
Error taxonomy for contact tracking and legged odometry

Configuration and consistency errors are fatal and raised at setup or on a
caller bug. Degenerate estimation conditions (no usable contact on a cycle)
are not errors: the estimator simply keeps its previous estimate.
"""


class LeggedOdometryError(Exception):
    """Base class of all the errors raised by this package"""


class ConfigurationError(LeggedOdometryError, ValueError):
    """Unknown enum string, contradictory or incomplete configuration"""


class ConsistencyError(LeggedOdometryError):
    """A contact was re-inserted with a different sensor / surface association"""


class NotFoundError(LeggedOdometryError, KeyError):
    """Query for an unknown contact, joint, body, surface or sensor"""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the plain message
        return str(self.args[0]) if self.args else ''
