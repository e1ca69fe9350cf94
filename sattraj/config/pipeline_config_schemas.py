"""
Configuration schemas for the trajectory pipeline.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class FrameProviderConfig:
    """Frame rotation provider selection."""
    kind: str = "earth_rotation"  # 'earth_rotation' or 'spice'
    metakernel_path: str = ""
    inertial_frame: str = "J2000"
    rotating_frame: str = "ITRF93"


@dataclass
class InterpolationConfig:
    """Interpolant construction parameters."""
    position_method: str = "linear"  # 'linear' or 'hermite'
    position_format: str = "cartesian"  # 'cartesian' or 'geodetic'


@dataclass
class TimeWindowConfig:
    """Time window padding, in days."""
    priming_pad_days: float = 1.0
    availability_stop_pad_days: float = 0.0


@dataclass
class CursorConfig:
    """Time cursor behavior."""
    subscribe_to_hover_events: bool = False


@dataclass
class AssetConfig:
    """
    Visual asset for the tracked body.
    The access token is passed explicitly to each client that needs it.
    """
    mode: str = "point"  # 'point' or 'model'
    model_asset_id: Optional[int] = None
    model_asset_uri: str = ""
    access_token: str = ""
    ion_api_url: str = "https://api.cesium.com"
    timeout_s: float = 10.0


@dataclass
class PipelineConfig:
    """Complete trajectory pipeline configuration."""
    name: str = "Unnamed Trajectory"

    frame_provider: FrameProviderConfig = field(default_factory=FrameProviderConfig)
    interpolation: InterpolationConfig = field(default_factory=InterpolationConfig)
    time_window: TimeWindowConfig = field(default_factory=TimeWindowConfig)
    cursor: CursorConfig = field(default_factory=CursorConfig)
    asset: AssetConfig = field(default_factory=AssetConfig)
