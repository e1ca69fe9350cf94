"""
Trajectory pipeline.

Wires the readiness gate, trajectory builder, time cursor and asset resolver
together and exposes a read-only snapshot for renderers.

Control flow:
- set_time_range: pads the range and requests priming through the gate
- update_telemetry: stores the latest series; builds now if the gate is open,
  otherwise once it opens
- hover notifications move the cursor when enabled in the configuration

All pipeline errors are recovered here. A failed build keeps the previous
valid trajectory; a failed asset resolution degrades to no asset.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence, Tuple, Union

import quaternion
import numpy as np

from ..config.pipeline_config_schemas import PipelineConfig
from ..events.event_bus import EventBus
from ..exceptions import AssetResolutionFailed, FrameResolutionFailed, MalformedTelemetry
from ..io.asset_resolver import AssetResourceResolver, ResourceHandle
from ..io.telemetry_frame import TelemetryFrame
from ..spice.frame_rotation import FrameRotationProvider
from ..utils.time_utils import MS_PER_DAY, TimeInterval, to_instant
from .readiness_gate import ReadinessGate
from .time_cursor import TimeCursor
from .time_window import compute_availability
from .trajectory_builder import Trajectory, build_trajectory

logger = logging.getLogger(__name__)

TimeLike = Union[float, int, datetime]


@dataclass(frozen=True)
class TrajectorySnapshot:
    """
    Read-only view of the pipeline for renderers.

    Attributes:
        availability: Window in which the trajectory is defined, or None
        position: Position interpolant, or None
        orientation: Inertial orientation interpolant, or None
        cursor: Current query instant, or None
        asset: Resolved model handle, or None
        generation: Bumped on every meaningful configuration change; consumers
            rebuild their visual state when it changes
    """
    availability: Optional[TimeInterval]
    position: Optional[Callable]
    orientation: Optional[Callable]
    cursor: Optional[float]
    asset: Optional[ResourceHandle]
    generation: int

    @property
    def has_trajectory(self) -> bool:
        return self.availability is not None and self.position is not None and self.orientation is not None


class TrajectoryPipeline:
    def __init__(self,
                 config: PipelineConfig,
                 provider: FrameRotationProvider,
                 bus: Optional[EventBus] = None,
                 asset_resolver: Optional[AssetResourceResolver] = None):
        """
        Args:
            config: Pipeline configuration
            provider: Frame rotation provider used by the gate and the builder
            bus: Notification stream for hover events (optional)
            asset_resolver: Model resolver; built from config.asset if omitted
        """
        self.config = config
        self.provider = provider
        self.bus = bus
        self.asset_resolver = asset_resolver or self._make_asset_resolver(config)

        self.gate = ReadinessGate(provider)
        self.gate.add_ready_listener(self._on_gate_ready)
        self.cursor = TimeCursor()

        self.generation = 0
        self.availability: Optional[TimeInterval] = None
        self.trajectory: Optional[Trajectory] = None
        self.asset: Optional[ResourceHandle] = None

        self._latest_series: Optional[Sequence[TelemetryFrame]] = None
        self._asset_version = 0
        self._asset_task: Optional[asyncio.Task] = None
        self._closed = False

        self._update_subscription()

    # ----------------------------
    # Inputs
    # ----------------------------
    def set_time_range(self, time_from: TimeLike, time_to: TimeLike) -> int:
        """
        Request priming for a dashboard time range.

        The priming interval is [from, to + priming_pad_days]. Returns the gate
        version token for the request.
        """
        pad_ms = self.config.time_window.priming_pad_days * MS_PER_DAY
        interval = TimeInterval(to_instant(time_from), to_instant(time_to) + pad_ms)
        return self.gate.request(interval)

    def update_telemetry(self, series: Sequence[TelemetryFrame]) -> bool:
        """
        Accept a telemetry refresh.

        Args:
            series: Telemetry frames; exactly one is expected

        Returns:
            True if a new trajectory was built now
        """
        self._latest_series = series
        if not self.gate.is_ready:
            logger.debug("Gate not ready, deferring trajectory build")
            return False
        return self._rebuild()

    def update_columns(self, columns: Sequence[Sequence[float]]) -> bool:
        """
        Accept raw positional columns for a single trajectory.

        Malformed columns are logged and leave the previous trajectory in place.
        """
        try:
            frame = TelemetryFrame.from_columns(columns, position_format=self.config.interpolation.position_format)
        except MalformedTelemetry as e:
            logger.error(f"Rejected telemetry: {e}")
            return False
        return self.update_telemetry([frame])

    async def apply_config(self, config: PipelineConfig) -> bool:
        """
        Replace the configuration.

        Bumps the generation counter, refreshes the hover subscription and
        re-resolves the asset when the configuration changed. Returns True if
        it changed.
        """
        if config == self.config:
            return False

        old_config = self.config
        self.config = config
        self.generation += 1
        logger.info(f"Configuration changed, generation {self.generation}")

        self._update_subscription()
        if config.asset != old_config.asset:
            self.asset_resolver = self._make_asset_resolver(config)
            await self.resolve_asset()
        if config.interpolation != old_config.interpolation and self.gate.is_ready:
            self._rebuild()
        return True

    async def resolve_asset(self) -> Optional[ResourceHandle]:
        """
        Resolve the configured model asset.

        Failures degrade to no asset. A resolution superseded by a newer call
        is discarded.
        """
        self._asset_version += 1
        version = self._asset_version
        asset_config = self.config.asset

        handle = None
        if asset_config.mode == 'model':
            try:
                handle = await self.asset_resolver.resolve(
                    asset_id=asset_config.model_asset_id,
                    uri=asset_config.model_asset_uri or None,
                )
            except AssetResolutionFailed as e:
                logger.error(f"Error loading model resource: {e}")
                handle = None

        if version != self._asset_version:
            logger.debug(f"Discarding superseded asset resolution {version}")
            return self.asset

        self.asset = handle
        return handle

    def start_asset_resolution(self) -> asyncio.Task:
        """Fire-and-forget asset resolution on the running loop."""
        self._asset_task = asyncio.ensure_future(self.resolve_asset())
        return self._asset_task

    # ----------------------------
    # Outputs
    # ----------------------------
    def snapshot(self) -> TrajectorySnapshot:
        trajectory = self.trajectory
        return TrajectorySnapshot(
            availability=self.availability,
            position=trajectory.position if trajectory else None,
            orientation=trajectory.orientation if trajectory else None,
            cursor=self.cursor.value,
            asset=self.asset,
            generation=self.generation,
        )

    def sample_at_cursor(self) -> Optional[Tuple[np.ndarray, quaternion.quaternion]]:
        """Position and orientation at the cursor, or None when either is missing."""
        if self.trajectory is None or self.cursor.value is None:
            return None
        instant = self.cursor.value
        return self.trajectory.position(instant), self.trajectory.orientation(instant)

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def close(self) -> None:
        """Release hover subscriptions. The pipeline accepts no more events."""
        if self._closed:
            return
        self._closed = True
        self.cursor.detach()
        if self._asset_task is not None and not self._asset_task.done():
            self._asset_task.cancel()
        logger.info("Trajectory pipeline closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # ----------------------------
    # Internals
    # ----------------------------
    @staticmethod
    def _make_asset_resolver(config: PipelineConfig) -> AssetResourceResolver:
        return AssetResourceResolver(
            access_token=config.asset.access_token or None,
            api_url=config.asset.ion_api_url,
            timeout_s=config.asset.timeout_s,
        )

    def _update_subscription(self) -> None:
        wanted = self.config.cursor.subscribe_to_hover_events and self.bus is not None and not self._closed
        if wanted and not self.cursor.is_attached:
            self.cursor.attach(self.bus)
        elif not wanted and self.cursor.is_attached:
            self.cursor.detach()

    def _on_gate_ready(self, interval: TimeInterval) -> None:
        if self._latest_series is not None:
            self._rebuild()

    def _rebuild(self) -> bool:
        series = self._latest_series
        if series is None:
            return False
        if len(series) != 1:
            logger.warning(f"Expected exactly one telemetry frame, got {len(series)}; skipping build")
            return False

        frame = series[0]
        # Cursor trails the last sample; only the availability window is padded
        data_window = compute_availability(frame.times)
        pad_ms = self.config.time_window.availability_stop_pad_days * MS_PER_DAY
        availability = data_window.extended(pad_ms) if data_window is not None else None

        try:
            trajectory = build_trajectory(
                frame, self.provider, position_method=self.config.interpolation.position_method
            )
        except (MalformedTelemetry, FrameResolutionFailed) as e:
            logger.error(f"Trajectory build failed, keeping previous trajectory: {e}")
            return False

        self.availability = availability
        self.trajectory = trajectory
        self.cursor.set_from_trailing_edge(data_window)
        return trajectory is not None
