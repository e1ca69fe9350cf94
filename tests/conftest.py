from __future__ import annotations

import asyncio
from typing import Dict, List

import numpy as np
import pytest
import quaternion

from sattraj.io.telemetry_frame import TelemetryFrame
from sattraj.spice.frame_rotation import FrameRotationProvider
from sattraj.utils.time_utils import TimeInterval


class FixedRotationProvider(FrameRotationProvider):
    """Primes immediately and returns the same rotation at every instant."""

    def __init__(self, rotation: quaternion.quaternion = quaternion.one):
        super().__init__()
        self.rotation = rotation
        self.queries: List[float] = []

    async def _load(self, interval: TimeInterval) -> None:
        return None

    def _rotation(self, instant: float) -> quaternion.quaternion:
        self.queries.append(instant)
        return self.rotation


class ControlledProvider(FixedRotationProvider):
    """Priming completes only when the test resolves the matching future."""

    def __init__(self):
        super().__init__()
        self.pending: Dict[TimeInterval, asyncio.Future] = {}

    async def _load(self, interval: TimeInterval) -> None:
        future = asyncio.get_running_loop().create_future()
        self.pending[interval] = future
        await future

    def complete(self, interval: TimeInterval) -> None:
        self.pending[interval].set_result(None)

    def fail(self, interval: TimeInterval, error: Exception) -> None:
        self.pending[interval].set_exception(error)


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def yaw_quaternion(angle_deg: float) -> quaternion.quaternion:
    half = np.radians(angle_deg) / 2.0
    return quaternion.quaternion(np.cos(half), 0.0, 0.0, np.sin(half))


@pytest.fixture
def two_sample_frame() -> TelemetryFrame:
    """Samples at t=0 s and t=60 s, identity then 90 deg yaw."""
    q90 = quaternion.as_float_array(yaw_quaternion(90.0))
    return TelemetryFrame.from_columns([
        [0.0, 60_000.0],
        [7000.0, 6999.0],
        [0.0, 50.0],
        [0.0, 0.0],
        [1.0, q90[0]],
        [0.0, q90[1]],
        [0.0, q90[2]],
        [0.0, q90[3]],
    ])
