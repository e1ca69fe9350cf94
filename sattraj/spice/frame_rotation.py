"""
Frame rotation providers.

A FrameRotationProvider answers "what rotates the rotating (Earth-fixed) axes
onto the inertial axes at this instant". The returned quaternion Q is the
inertial -> rotating coordinate transform, i.e. the quaternion of
pxform(inertial_frame, rotating_frame, et). Body attitudes given relative to
the rotating frame become inertial via q_inertial = conj(Q) * q_rotating
(see sattraj.utils.geometry_utils.compose_to_inertial).

Providers must be primed for an interval before they are queried. Querying an
instant outside every primed interval raises FrameResolutionFailed.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import numpy as np
import quaternion
import spiceypy

from ..exceptions import FrameResolutionFailed
from ..utils.geometry_utils import rotation_about_z
from ..utils.time_utils import TimeInterval, instant_to_julian_date
from .spice_handler import SpiceHandler

logger = logging.getLogger(__name__)

# IERS 2003 Earth Rotation Angle coefficients
ERA_AT_J2000 = 0.7790572732640
ERA_RATE = 1.00273781191135448
J2000_JD = 2451545.0


class FrameRotationProvider(ABC):
    """Base class for instant -> rotating-to-inertial frame rotation services."""

    def __init__(self):
        self._primed_intervals: List[TimeInterval] = []

    @property
    def primed_intervals(self) -> List[TimeInterval]:
        return list(self._primed_intervals)

    def is_primed_for(self, instant: float) -> bool:
        """True if a completed prime covers the instant."""
        return any(interval.contains(instant) for interval in self._primed_intervals)

    async def prime(self, interval: TimeInterval) -> None:
        """
        Prepare the provider to answer queries inside interval.

        Suspends until the bulk data needed for the interval is available.
        """
        await self._load(interval)
        self._record_primed(interval)
        logger.info(f"{type(self).__name__} primed for [{interval.start}, {interval.stop}]")

    def rotation_at(self, instant: float) -> quaternion.quaternion:
        """
        Frame rotation at instant.

        Raises:
            FrameResolutionFailed: If not primed for instant or the query fails
        """
        if not self.is_primed_for(instant):
            raise FrameResolutionFailed(
                f"{type(self).__name__} queried at {instant} before priming an interval containing it"
            )
        return self._rotation(instant)

    def _record_primed(self, interval: TimeInterval) -> None:
        """Add interval to the primed set, merging every interval it overlaps or touches."""
        start, stop = interval.start, interval.stop
        disjoint = []
        for primed in self._primed_intervals:
            if primed.stop < start or primed.start > stop:
                disjoint.append(primed)
            else:
                start, stop = min(start, primed.start), max(stop, primed.stop)
        disjoint.append(TimeInterval(start, stop))
        self._primed_intervals = sorted(disjoint, key=lambda i: i.start)

    @abstractmethod
    async def _load(self, interval: TimeInterval) -> None:
        """Fetch whatever the provider needs for interval."""
        pass

    @abstractmethod
    def _rotation(self, instant: float) -> quaternion.quaternion:
        """Compute the rotation for a primed instant."""
        pass


class EarthRotationAngleProvider(FrameRotationProvider):
    """
    Analytic provider: rotation about the pole by the IERS Earth Rotation Angle.

    Ignores precession, nutation and polar motion, and takes UT1 = UTC.
    Needs no bulk data, so priming completes immediately.
    """

    async def _load(self, interval: TimeInterval) -> None:
        return None

    @staticmethod
    def earth_rotation_angle(instant: float) -> float:
        """Earth Rotation Angle in radians, wrapped to [0, 2*pi)."""
        days = instant_to_julian_date(instant) - J2000_JD
        turns = ERA_AT_J2000 + ERA_RATE * days
        return float(2.0 * np.pi * np.mod(turns, 1.0))

    def _rotation(self, instant: float) -> quaternion.quaternion:
        # Earth-fixed axes are the inertial axes turned by +ERA about z, so the
        # inertial -> fixed coordinate transform is the active rotation by -ERA.
        return rotation_about_z(-self.earth_rotation_angle(instant))


class SpiceFrameRotationProvider(FrameRotationProvider):
    """
    SPICE-backed provider using high-precision Earth orientation kernels.

    Priming loads the metakernel (leap seconds, Earth PCK, ITRF93 frame
    kernel) off the event loop. Queries use pxform.
    """

    def __init__(self,
                 spice_handler: SpiceHandler,
                 metakernel_path: str,
                 project_root: Optional[str] = None,
                 inertial_frame: str = "J2000",
                 rotating_frame: str = "ITRF93"):
        super().__init__()
        self.spice_handler = spice_handler
        self.metakernel_path = metakernel_path
        self.project_root = project_root
        self.inertial_frame = inertial_frame
        self.rotating_frame = rotating_frame

    async def _load(self, interval: TimeInterval) -> None:
        try:
            await asyncio.to_thread(
                self.spice_handler.load_metakernel, self.metakernel_path, self.project_root
            )
        except spiceypy.utils.exceptions.SpiceyError as e:
            raise FrameResolutionFailed(f"Could not load Earth orientation kernels: {e}") from e

    def _rotation(self, instant: float) -> quaternion.quaternion:
        try:
            et = self.spice_handler.instant_to_et(instant)
            matrix = self.spice_handler.get_frame_rotation(self.inertial_frame, self.rotating_frame, et)
        except spiceypy.utils.exceptions.SpiceyError as e:
            raise FrameResolutionFailed(
                f"pxform {self.inertial_frame}->{self.rotating_frame} failed at {instant}: {e}"
            ) from e
        return quaternion.from_rotation_matrix(matrix).normalized()
