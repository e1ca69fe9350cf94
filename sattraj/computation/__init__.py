"""
Computation module for trajectory derivation.

Provides:
- compute_availability: Availability window from sample instants
- ReadinessGate: Barrier on frame rotation priming
- build_trajectory: Position and inertial orientation interpolants
- TimeCursor: Current query instant
- TrajectoryPipeline: Orchestration and renderer snapshot
"""

from .time_window import compute_availability
from .readiness_gate import GateState, ReadinessGate
from .trajectory_builder import Trajectory, build_trajectory
from .time_cursor import TimeCursor, extract_event_time
from .trajectory_pipeline import TrajectoryPipeline, TrajectorySnapshot

__all__ = [
    'compute_availability',
    'GateState',
    'ReadinessGate',
    'Trajectory',
    'build_trajectory',
    'TimeCursor',
    'extract_event_time',
    'TrajectoryPipeline',
    'TrajectorySnapshot',
]
