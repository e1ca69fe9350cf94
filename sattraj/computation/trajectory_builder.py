"""
Trajectory construction from validated telemetry.

Builds the position interpolant directly from rotating-frame samples and the
orientation interpolant from attitudes composed into the inertial frame, one
frame rotation query per sample. Raw (un-rotated) attitudes are never
interpolated.
"""

import time
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import quaternion

from ..exceptions import FrameResolutionFailed, MalformedSample
from ..interpolation import create_position_interpolator, create_quaternion_interpolator
from ..io.telemetry_frame import TelemetryFrame
from ..spice.frame_rotation import FrameRotationProvider
from ..utils.geometry_utils import compose_to_inertial

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trajectory:
    """
    Continuous-time trajectory.

    Attributes:
        position: Instant -> rotating-frame position (3,), km
        orientation: Instant -> unit quaternion, body -> inertial frame
        num_samples: Number of samples the interpolants were built from
    """
    position: Callable
    orientation: Callable
    num_samples: int


def build_trajectory(frame: TelemetryFrame,
                     provider: FrameRotationProvider,
                     position_method: str = 'linear') -> Optional[Trajectory]:
    """
    Build position and inertial orientation interpolants.

    Args:
        frame: Validated telemetry for exactly one trajectory
        provider: Frame rotation provider primed for the frame's time span
        position_method: 'linear' or 'hermite'

    Returns:
        Trajectory, or None for an empty frame

    Raises:
        MalformedSample: If a sample has non-finite components
        FrameResolutionFailed: If any rotation query fails; nothing is returned
    """
    if frame.is_empty:
        logger.info("No samples, no trajectory")
        return None

    build_start = time.time()

    finite = np.all(np.isfinite(frame.positions), axis=1) & np.all(np.isfinite(frame.attitudes), axis=1)
    if not np.all(finite):
        index = int(np.flatnonzero(~finite)[0])
        raise MalformedSample(f"Non-finite components in sample {index}", index=index)

    inertial_attitudes = []
    for i, instant in enumerate(frame.times):
        try:
            rotation = provider.rotation_at(float(instant))
        except FrameResolutionFailed:
            logger.error(f"Frame rotation unavailable for sample {i} at {instant}")
            raise
        except Exception as e:
            logger.error(f"Frame rotation query failed for sample {i} at {instant}: {e}")
            raise FrameResolutionFailed(f"Frame rotation failed at sample {i}: {e}") from e

        attitude = quaternion.from_float_array(frame.attitudes[i])
        inertial_attitudes.append(compose_to_inertial(rotation, attitude))

    position = create_position_interpolator(frame.times, frame.positions, method=position_method)
    orientation = create_quaternion_interpolator(frame.times, inertial_attitudes)

    build_time = time.time() - build_start
    logger.info(f"Trajectory built from {len(frame)} samples in {build_time:.3f}s")

    return Trajectory(position=position, orientation=orientation, num_samples=len(frame))
