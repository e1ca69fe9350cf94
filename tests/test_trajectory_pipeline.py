from __future__ import annotations

import asyncio
from dataclasses import replace

import numpy as np
import pytest

from sattraj.computation.readiness_gate import GateState
from sattraj.computation.trajectory_pipeline import TrajectoryPipeline
from sattraj.config.pipeline_config_schemas import AssetConfig, CursorConfig, PipelineConfig
from sattraj.events import DATA_HOVER, GRAPH_HOVER, EventBus
from sattraj.exceptions import AssetResolutionFailed, FrameResolutionFailed
from sattraj.io.asset_resolver import ResourceHandle
from sattraj.utils.geometry_utils import rotation_angle_deg
from sattraj.utils.time_utils import MS_PER_DAY, TimeInterval

from conftest import ControlledProvider, FixedRotationProvider, settle


class FakeResolver:
    def __init__(self, handle=None, error=None):
        self.handle = handle
        self.error = error
        self.calls = []

    async def resolve(self, asset_id=None, uri=None):
        self.calls.append((asset_id, uri))
        if self.error is not None:
            raise self.error
        return self.handle


def hover_config() -> PipelineConfig:
    return PipelineConfig(cursor=CursorConfig(subscribe_to_hover_events=True))


def test_end_to_end_midpoint(two_sample_frame) -> None:
    async def scenario() -> None:
        pipeline = TrajectoryPipeline(PipelineConfig(), FixedRotationProvider())
        pipeline.set_time_range(0.0, 60_000.0)
        await pipeline.gate.wait_ready()

        assert pipeline.update_telemetry([two_sample_frame])
        snapshot = pipeline.snapshot()
        assert snapshot.has_trajectory
        assert snapshot.availability == TimeInterval(0.0, 60_000.0)
        assert snapshot.cursor == 60_000.0

        position = snapshot.position(30_000.0)
        assert 6999.0 < position[0] < 7000.0
        assert 0.0 < position[1] < 50.0
        angle = rotation_angle_deg(snapshot.orientation(30_000.0))
        assert 0.0 < angle < 90.0

    asyncio.run(scenario())


def test_priming_interval_is_padded_by_a_day() -> None:
    async def scenario() -> None:
        pipeline = TrajectoryPipeline(PipelineConfig(), FixedRotationProvider())
        pipeline.set_time_range(0.0, 60_000.0)
        assert pipeline.gate.interval == TimeInterval(0.0, 60_000.0 + MS_PER_DAY)

    asyncio.run(scenario())


def test_build_waits_for_gate(two_sample_frame) -> None:
    async def scenario() -> None:
        provider = ControlledProvider()
        pipeline = TrajectoryPipeline(PipelineConfig(), provider)
        pipeline.set_time_range(0.0, 60_000.0)
        await settle()

        assert not pipeline.update_telemetry([two_sample_frame])
        assert pipeline.snapshot().position is None
        assert provider.queries == []

        provider.complete(pipeline.gate.interval)
        await settle()
        assert pipeline.snapshot().has_trajectory

    asyncio.run(scenario())


def test_mismatched_columns_produce_no_trajectory() -> None:
    async def scenario() -> None:
        pipeline = TrajectoryPipeline(PipelineConfig(), FixedRotationProvider())
        pipeline.set_time_range(0.0, 360_000.0)
        await pipeline.gate.wait_ready()

        times = [60_000.0 * i for i in range(7)]
        columns = [times, [7000.0] * 6, [0.0] * 7, [0.0] * 7, [1.0] * 7, [0.0] * 7, [0.0] * 7, [0.0] * 7]
        assert not pipeline.update_columns(columns)

        snapshot = pipeline.snapshot()
        assert snapshot.position is None
        assert snapshot.orientation is None

    asyncio.run(scenario())


def test_failed_build_keeps_previous_trajectory(two_sample_frame) -> None:
    async def scenario() -> None:
        pipeline = TrajectoryPipeline(PipelineConfig(), FixedRotationProvider())
        pipeline.set_time_range(0.0, 60_000.0)
        await pipeline.gate.wait_ready()
        pipeline.update_telemetry([two_sample_frame])
        previous = pipeline.snapshot()

        # Outside the primed interval: frame resolution fails
        late = replace(two_sample_frame, times=two_sample_frame.times + 10 * MS_PER_DAY)
        assert not pipeline.update_telemetry([late])

        current = pipeline.snapshot()
        assert current.position is previous.position
        assert current.availability == previous.availability

    asyncio.run(scenario())


def test_multiple_series_are_ignored(two_sample_frame) -> None:
    async def scenario() -> None:
        pipeline = TrajectoryPipeline(PipelineConfig(), FixedRotationProvider())
        pipeline.set_time_range(0.0, 60_000.0)
        await pipeline.gate.wait_ready()
        assert not pipeline.update_telemetry([two_sample_frame, two_sample_frame])
        assert not pipeline.snapshot().has_trajectory

    asyncio.run(scenario())


def test_hover_overrides_trailing_edge(two_sample_frame) -> None:
    async def scenario() -> None:
        bus = EventBus()
        pipeline = TrajectoryPipeline(hover_config(), FixedRotationProvider(), bus=bus)
        pipeline.set_time_range(0.0, 60_000.0)
        await pipeline.gate.wait_ready()
        pipeline.update_telemetry([two_sample_frame])
        assert pipeline.cursor.value == 60_000.0

        bus.publish(GRAPH_HOVER, {"point": {"time": 30_000.0}})
        position, orientation = pipeline.sample_at_cursor()
        assert np.allclose(position, [6999.5, 25.0, 0.0])
        assert rotation_angle_deg(orientation) == pytest.approx(45.0)

    asyncio.run(scenario())


def test_hover_ignored_when_disabled() -> None:
    bus = EventBus()
    pipeline = TrajectoryPipeline(PipelineConfig(), FixedRotationProvider(), bus=bus)
    bus.publish(DATA_HOVER, {"point": {"time": 5.0}})
    assert pipeline.cursor.value is None
    assert bus.subscriber_count(DATA_HOVER) == 0


def test_close_releases_subscriptions() -> None:
    bus = EventBus()
    with TrajectoryPipeline(hover_config(), FixedRotationProvider(), bus=bus) as pipeline:
        assert bus.subscriber_count(DATA_HOVER) == 1
        assert bus.subscriber_count(GRAPH_HOVER) == 1

    assert bus.subscriber_count(DATA_HOVER) == 0
    bus.publish(DATA_HOVER, {"point": {"time": 5.0}})
    assert pipeline.cursor.value is None


def test_config_change_bumps_generation_and_toggles_subscription() -> None:
    async def scenario() -> None:
        bus = EventBus()
        pipeline = TrajectoryPipeline(PipelineConfig(), FixedRotationProvider(), bus=bus)
        assert pipeline.generation == 0

        assert not await pipeline.apply_config(PipelineConfig())
        assert pipeline.generation == 0

        assert await pipeline.apply_config(hover_config())
        assert pipeline.generation == 1
        assert bus.subscriber_count(DATA_HOVER) == 1

        assert await pipeline.apply_config(PipelineConfig())
        assert pipeline.snapshot().generation == 2
        assert bus.subscriber_count(DATA_HOVER) == 0

    asyncio.run(scenario())


def test_asset_resolution_success() -> None:
    async def scenario() -> None:
        handle = ResourceHandle(uri="https://assets/model.glb", access_token="t", asset_id=7)
        resolver = FakeResolver(handle=handle)
        config = PipelineConfig(asset=AssetConfig(mode='model', model_asset_id=7, access_token="secret"))
        pipeline = TrajectoryPipeline(config, FixedRotationProvider(), asset_resolver=resolver)

        await pipeline.start_asset_resolution()
        assert pipeline.snapshot().asset == handle
        assert resolver.calls == [(7, None)]

    asyncio.run(scenario())


def test_asset_failure_degrades_to_no_asset() -> None:
    async def scenario() -> None:
        resolver = FakeResolver(error=AssetResolutionFailed("401"))
        config = PipelineConfig(asset=AssetConfig(mode='model', model_asset_id=7))
        pipeline = TrajectoryPipeline(config, FixedRotationProvider(), asset_resolver=resolver)

        assert await pipeline.resolve_asset() is None
        assert pipeline.snapshot().asset is None

    asyncio.run(scenario())


def test_point_mode_needs_no_asset() -> None:
    async def scenario() -> None:
        resolver = FakeResolver(handle=ResourceHandle(uri="unused"))
        pipeline = TrajectoryPipeline(PipelineConfig(), FixedRotationProvider(), asset_resolver=resolver)
        assert await pipeline.resolve_asset() is None
        assert resolver.calls == []

    asyncio.run(scenario())


def test_new_time_range_reprimes_and_rebuilds(two_sample_frame) -> None:
    async def scenario() -> None:
        provider = ControlledProvider()
        pipeline = TrajectoryPipeline(PipelineConfig(), provider)
        pipeline.set_time_range(0.0, 60_000.0)
        await settle()
        first = pipeline.gate.interval
        pipeline.update_telemetry([two_sample_frame])

        pipeline.set_time_range(-60_000.0, 60_000.0)
        await settle()
        second = pipeline.gate.interval

        provider.complete(first)
        await settle()
        assert pipeline.gate.state is GateState.PRIMING
        assert not pipeline.snapshot().has_trajectory

        provider.complete(second)
        await settle()
        assert pipeline.snapshot().has_trajectory

    asyncio.run(scenario())


def test_padded_availability_keeps_cursor_on_last_sample(two_sample_frame) -> None:
    async def scenario() -> None:
        config = PipelineConfig()
        config.time_window.availability_stop_pad_days = 1.0
        pipeline = TrajectoryPipeline(config, FixedRotationProvider())
        pipeline.set_time_range(0.0, 60_000.0)
        await pipeline.gate.wait_ready()
        pipeline.update_telemetry([two_sample_frame])

        snapshot = pipeline.snapshot()
        assert snapshot.availability == TimeInterval(0.0, 60_000.0 + MS_PER_DAY)
        assert snapshot.cursor == 60_000.0

    asyncio.run(scenario())


def test_wait_ready_reports_failed_priming(two_sample_frame) -> None:
    async def scenario() -> None:
        provider = ControlledProvider()
        pipeline = TrajectoryPipeline(PipelineConfig(), provider)
        pipeline.set_time_range(0.0, 60_000.0)
        await settle()
        pipeline.update_telemetry([two_sample_frame])

        provider.fail(pipeline.gate.interval, RuntimeError("kernels not downloaded"))
        with pytest.raises(FrameResolutionFailed):
            await asyncio.wait_for(pipeline.gate.wait_ready(), timeout=1.0)
        assert not pipeline.snapshot().has_trajectory

    asyncio.run(scenario())
