"""
Quaternion interpolation utilities.

Provides SLERP between unit quaternions and a continuous-time orientation
interpolant built from time-stamped samples. Samples are sign-aligned first
so interpolation never jumps between q and -q.
"""

import numpy as np
from typing import Union, Callable
import quaternion

from ..utils.geometry_utils import align_quaternion_signs


def slerp(q1: Union[np.ndarray, quaternion.quaternion],
          q2: Union[np.ndarray, quaternion.quaternion],
          t: float) -> np.ndarray:
    """
    Perform Spherical Linear Interpolation (SLERP) between two quaternions.

    Parameters:
    -----------
    q1, q2 : array-like or quaternion
        Input quaternions in scalar-first format [w, x, y, z] or quaternion objects
    t : float
        Interpolation parameter between 0 and 1
        t = 0 returns q1, t = 1 returns q2

    Returns:
    --------
    array
        Interpolated quaternion in scalar-first format [w, x, y, z]
    """
    if isinstance(q1, quaternion.quaternion):
        q1 = quaternion.as_float_array(q1)
    if isinstance(q2, quaternion.quaternion):
        q2 = quaternion.as_float_array(q2)

    q1 = q1 / np.linalg.norm(q1)
    q2 = q2 / np.linalg.norm(q2)

    dot_product = np.sum(q1 * q2)

    # Take the shorter path
    if dot_product < 0:
        q2 = -q2
        dot_product = -dot_product

    # Nearly parallel: normalized linear interpolation is accurate and stable
    if dot_product > 0.9995:
        result = (1 - t) * q1 + t * q2
        return result / np.linalg.norm(result)

    theta = np.arccos(np.clip(dot_product, -1.0, 1.0))
    sin_theta = np.sin(theta)

    ratio1 = np.sin((1 - t) * theta) / sin_theta
    ratio2 = np.sin(t * theta) / sin_theta

    result = ratio1 * q1 + ratio2 * q2

    return result / np.linalg.norm(result)


def create_quaternion_interpolator(sample_times: np.ndarray,
                                   sample_quats: Union[list, np.ndarray]) -> Callable:
    """
    Create a SLERP interpolant for time-stamped unit quaternions.

    Parameters:
    -----------
    sample_times : array-like
        Strictly increasing sample instants (epoch milliseconds)
    sample_quats : array-like
        Quaternion objects or (N, 4) array of [w, x, y, z] components

    Returns:
    --------
    function
        Interpolant taking an instant (or array of instants) and returning a
        unit quaternion (or array of quaternions). Instants outside the sample
        span are clamped to the first/last sample.
    """
    times = np.asarray(sample_times, dtype=np.float64)

    if len(sample_quats) and isinstance(sample_quats[0], quaternion.quaternion):
        quat_components = quaternion.as_float_array(np.asarray(sample_quats, dtype=np.quaternion))
    else:
        quat_components = np.asarray(sample_quats, dtype=np.float64)

    if len(times) == 0:
        raise ValueError("At least one sample is required")
    if quat_components.shape != (len(times), 4):
        raise ValueError(f"Expected ({len(times)}, 4) quaternion components, got {quat_components.shape}")

    quat_components = quat_components / np.linalg.norm(quat_components, axis=1)[:, np.newaxis]
    quat_components = align_quaternion_signs(quat_components)

    def interpolator(t: Union[float, np.ndarray]) -> Union[quaternion.quaternion, np.ndarray]:
        if np.isscalar(t):
            if t <= times[0]:
                return quaternion.from_float_array(quat_components[0])
            if t >= times[-1]:
                return quaternion.from_float_array(quat_components[-1])

            idx = np.searchsorted(times, t) - 1
            t1, t2 = times[idx], times[idx + 1]
            fraction = (t - t1) / (t2 - t1)

            q_interp = slerp(quat_components[idx], quat_components[idx + 1], fraction)
            return quaternion.from_float_array(q_interp)
        else:
            return np.array([interpolator(ti) for ti in np.asarray(t, dtype=np.float64)])

    interpolator.sample_times = times
    interpolator.sample_quats = quat_components
    return interpolator
