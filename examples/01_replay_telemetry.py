#!/usr/bin/env python3
"""
sattraj Example 1: Replay Telemetry
===================================

Loads a telemetry CSV, primes the frame rotation provider for the data's time
range, builds the trajectory and then sweeps the time cursor with simulated
hover notifications.

Run from project root:
    python examples/01_replay_telemetry.py [config.yaml] [telemetry.csv]

Expected output:
    - Availability window of the telemetry
    - Position and inertial attitude angle at the trailing edge
    - Position and attitude at each hovered instant
"""

import asyncio
import logging
import sys
from pathlib import Path

# Setup project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import numpy as np

from sattraj.computation import TrajectoryPipeline
from sattraj.config.pipeline_config_manager import PipelineConfigManager
from sattraj.events import DATA_HOVER, EventBus
from sattraj.exceptions import FrameResolutionFailed
from sattraj.io.telemetry_frame import read_telemetry_csv
from sattraj.utils.geometry_utils import rotation_angle_deg
from sattraj.utils.time_utils import instant_to_iso


async def replay(config_name: str, telemetry_path: Path):
    config_manager = PipelineConfigManager(PROJECT_ROOT)
    config = config_manager.load_config(config_name)
    provider = config_manager.build_frame_provider(config)

    frame = read_telemetry_csv(telemetry_path, position_format=config.interpolation.position_format)
    print(f"  Trajectory: {config.name}")
    print(f"  Samples: {len(frame)}")

    bus = EventBus()
    with TrajectoryPipeline(config, provider, bus=bus) as pipeline:
        pipeline.start_asset_resolution()
        pipeline.set_time_range(frame.times[0], frame.times[-1])
        pipeline.update_telemetry([frame])

        try:
            await pipeline.gate.wait_ready()
        except FrameResolutionFailed as e:
            print(f"  Frame rotations unavailable: {e}")
            print("  Download the Earth orientation kernels with: python install_dependencies.py")
            return
        snapshot = pipeline.snapshot()
        if not snapshot.has_trajectory:
            print("  No trajectory could be built (see log)")
            return

        print(f"  Available: {instant_to_iso(snapshot.availability.start)} -> "
              f"{instant_to_iso(snapshot.availability.stop)}")
        print(f"  Asset: {snapshot.asset.uri if snapshot.asset else 'none (point mode)'}")

        position, orientation = pipeline.sample_at_cursor()
        print(f"\n[Trailing edge] {instant_to_iso(snapshot.cursor)}")
        print(f"  Position: {np.round(position, 3)} km")
        print(f"  Inertial attitude angle: {rotation_angle_deg(orientation):.3f} deg")

        print("\n[Hover sweep]")
        for instant in np.linspace(frame.times[0], frame.times[-1], 5):
            bus.publish(DATA_HOVER, {"point": {"time": float(instant)}})
            position, orientation = pipeline.sample_at_cursor()
            print(f"  {instant_to_iso(pipeline.cursor.value)}  pos={np.round(position, 3)}  "
                  f"angle={rotation_angle_deg(orientation):.3f} deg")


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    print("=" * 60)
    print("sattraj Example 1: Replay Telemetry")
    print("=" * 60)

    config_name = sys.argv[1] if len(sys.argv) > 1 else "default.yaml"
    telemetry_path = Path(sys.argv[2]) if len(sys.argv) > 2 else PROJECT_ROOT / "data" / "telemetry" / "demo_leo.csv"

    asyncio.run(replay(config_name, telemetry_path))


if __name__ == "__main__":
    main()
