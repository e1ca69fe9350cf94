"""
Position interpolation utilities.

Builds continuous-time 3-vector interpolants from time-stamped samples:
- 'linear': component-wise piecewise linear
- 'hermite': shape-preserving piecewise cubic Hermite (PCHIP)

Both clamp to the first/last sample outside the sample span.
"""

from typing import Callable, Union

import numpy as np
from numpy.typing import NDArray
from scipy.interpolate import PchipInterpolator

POSITION_METHODS = ('linear', 'hermite')


def create_position_interpolator(sample_times: NDArray[np.float64],
                                 sample_positions: NDArray[np.float64],
                                 method: str = 'linear') -> Callable:
    """
    Create a position interpolant.

    Args:
        sample_times: Strictly increasing instants (N,)
        sample_positions: Positions (N, 3)
        method: 'linear' or 'hermite'

    Returns:
        Function mapping an instant to a (3,) array, or an array of instants
        to an (M, 3) array.

    Raises:
        ValueError: On unknown method or inconsistent shapes
    """
    if method not in POSITION_METHODS:
        raise ValueError(f"Unknown position interpolation method: {method}")

    times = np.asarray(sample_times, dtype=np.float64)
    positions = np.asarray(sample_positions, dtype=np.float64)

    if len(times) == 0:
        raise ValueError("At least one sample is required")
    if positions.shape != (len(times), 3):
        raise ValueError(f"Expected ({len(times)}, 3) positions, got {positions.shape}")

    # PCHIP needs two samples; one sample degenerates to a constant either way
    spline = None
    if method == 'hermite' and len(times) >= 2:
        spline = PchipInterpolator(times, positions, axis=0, extrapolate=False)

    def interpolator(t: Union[float, np.ndarray]) -> np.ndarray:
        query = np.clip(np.asarray(t, dtype=np.float64), times[0], times[-1])
        if spline is not None:
            return np.asarray(spline(query))
        if query.ndim == 0:
            return np.array([np.interp(query, times, positions[:, k]) for k in range(3)])
        return np.column_stack([np.interp(query, times, positions[:, k]) for k in range(3)])

    interpolator.sample_times = times
    interpolator.method = method
    return interpolator
