"""
Interpolation module.

Provides continuous-time interpolants for:
- Orientations (quaternion SLERP with sign alignment)
- Positions (linear or piecewise cubic Hermite)
"""

from .quaternion_interpolator import (
    slerp,
    create_quaternion_interpolator,
)
from .position_interpolator import (
    POSITION_METHODS,
    create_position_interpolator,
)

__all__ = [
    'slerp',
    'create_quaternion_interpolator',
    'POSITION_METHODS',
    'create_position_interpolator',
]
