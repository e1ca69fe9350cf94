"""
SPICE module for Earth orientation queries.

Provides:
- SpiceHandler: Load kernels, convert times, query frame rotations
- FrameRotationProvider: Contract for primed rotating-to-inertial rotations
- EarthRotationAngleProvider: Analytic Earth Rotation Angle provider
- SpiceFrameRotationProvider: High-precision provider backed by SPICE kernels
"""

from .spice_handler import SpiceHandler
from .frame_rotation import (
    FrameRotationProvider,
    EarthRotationAngleProvider,
    SpiceFrameRotationProvider,
)

__all__ = [
    'SpiceHandler',
    'FrameRotationProvider',
    'EarthRotationAngleProvider',
    'SpiceFrameRotationProvider',
]
