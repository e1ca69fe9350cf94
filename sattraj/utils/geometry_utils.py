"""
Geometry utilities for frame composition and telemetry conversion.

Provides:
- compose_to_inertial / compose_to_rotating: Attitude frame composition
- rotation_angle_deg: Rotation angle of a unit quaternion
- align_quaternion_signs: Remove sign flips between consecutive quaternions
- geodetic_to_cartesian: WGS-84 geodetic coordinates to rotating-frame cartesian
"""

import logging

import numpy as np
import quaternion
import spiceypy

logger = logging.getLogger(__name__)

# WGS-84 ellipsoid, km
WGS84_EQUATORIAL_RADIUS_KM = 6378.137
WGS84_FLATTENING = 1.0 / 298.257223563


def compose_to_inertial(frame_rotation: quaternion.quaternion,
                        attitude: quaternion.quaternion) -> quaternion.quaternion:
    """
    Express a rotating-frame attitude in the inertial frame.

    The frame rotation carries the rotating axes onto the inertial axes, so
    numerically it is the inertial -> rotating coordinate transform. Its
    conjugate is pre-multiplied onto the body -> rotating attitude:

        q_inertial = conj(Q) * q_rotating

    Args:
        frame_rotation: Unit quaternion Q from a FrameRotationProvider.
        attitude: Unit quaternion mapping body coordinates to rotating coordinates.

    Returns:
        Unit quaternion mapping body coordinates to inertial coordinates.
    """
    return (frame_rotation.conjugate() * attitude).normalized()


def compose_to_rotating(frame_rotation: quaternion.quaternion,
                        attitude: quaternion.quaternion) -> quaternion.quaternion:
    """Inverse of compose_to_inertial: q_rotating = Q * q_inertial."""
    return (frame_rotation * attitude).normalized()


def rotation_angle_deg(q: quaternion.quaternion) -> float:
    """
    Rotation angle of a unit quaternion in degrees, in [0, 180].

    q and -q describe the same rotation and give the same angle.
    """
    w = min(1.0, abs(q.normalized().w))
    return float(np.degrees(2.0 * np.arccos(w)))


def rotation_about_z(angle_rad: float) -> quaternion.quaternion:
    """Active rotation by angle_rad about the +z axis."""
    half = 0.5 * angle_rad
    return quaternion.quaternion(np.cos(half), 0.0, 0.0, np.sin(half))


def align_quaternion_signs(quat_components: np.ndarray) -> np.ndarray:
    """
    Negate quaternions so that consecutive samples lie in the same hemisphere.

    Args:
        quat_components: Array (N, 4) of [w, x, y, z] components.

    Returns:
        New array (N, 4) with dot(q[i-1], q[i]) >= 0 for all i.
    """
    aligned = np.array(quat_components, dtype=np.float64, copy=True)
    for i in range(1, len(aligned)):
        if np.dot(aligned[i - 1], aligned[i]) < 0.0:
            aligned[i] = -aligned[i]
    return aligned


def geodetic_to_cartesian(lon_deg: np.ndarray, lat_deg: np.ndarray,
                          height_km: np.ndarray) -> np.ndarray:
    """
    Convert WGS-84 geodetic coordinates to Earth-fixed cartesian coordinates.

    Args:
        lon_deg: Longitudes in degrees (N,)
        lat_deg: Latitudes in degrees (N,)
        height_km: Heights above the ellipsoid in km (N,)

    Returns:
        Array (N, 3) of rotating-frame positions in km.
    """
    lon_rad = np.radians(np.asarray(lon_deg, dtype=np.float64))
    lat_rad = np.radians(np.asarray(lat_deg, dtype=np.float64))
    heights = np.asarray(height_km, dtype=np.float64)

    positions = np.array([
        spiceypy.georec(lon, lat, h, WGS84_EQUATORIAL_RADIUS_KM, WGS84_FLATTENING)
        for lon, lat, h in zip(lon_rad, lat_rad, heights)
    ], dtype=np.float64)
    return positions.reshape(-1, 3)
