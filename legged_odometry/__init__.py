"""
Legged Odometry
===============

Contact tracking and legged odometry for floating-base robots: contacts
detection from force sensors or solver outputs, selection of the contacts
trusted for the orientation, and estimation of the floating base pose by
chaining the successive contacts with the environment.
"""

__version__ = "0.1.0"
