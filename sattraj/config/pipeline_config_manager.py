"""
Pipeline configuration manager.
Handles loading and validation of YAML pipeline configurations and builds the
frame rotation provider they describe.
"""

import yaml
import logging
from pathlib import Path
from typing import Union

# Project Imports
from .pipeline_config_schemas import (
    PipelineConfig,
    FrameProviderConfig,
    InterpolationConfig,
    TimeWindowConfig,
    CursorConfig,
    AssetConfig,
)
from ..interpolation.position_interpolator import POSITION_METHODS
from ..io.telemetry_frame import POSITION_FORMATS
from ..spice.frame_rotation import (
    FrameRotationProvider,
    EarthRotationAngleProvider,
    SpiceFrameRotationProvider,
)
from ..spice.spice_handler import SpiceHandler

logger = logging.getLogger(__name__)

PROVIDER_KINDS = ('earth_rotation', 'spice')
ASSET_MODES = ('point', 'model')


def _check_choice(name: str, value: str, choices) -> None:
    if value not in choices:
        raise ValueError(f"Invalid {name} '{value}', expected one of {list(choices)}")


class PipelineConfigManager:
    """
    Configuration manager for trajectory pipelines.
    Handles configuration loading and path resolution.
    """

    def __init__(self, project_root: Path = None):
        """Initialize the configuration manager."""
        if project_root is None:
            self.project_root = Path(__file__).parent.parent.parent
        else:
            self.project_root = Path(project_root)

        self.configs_dir = self.project_root / "configs"

    def load_config(self, config_path: Union[str, Path]) -> PipelineConfig:
        """
        Load pipeline configuration from YAML file.

        Args:
            config_path: Path to configuration YAML file (relative paths are
                resolved against the configs directory)

        Returns:
            PipelineConfig: Loaded configuration

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If an enumerated field has an unknown value
        """
        config_path = Path(config_path)

        if not config_path.is_absolute():
            config_path = self.configs_dir / config_path

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        logger.info(f"Loading pipeline config from: {config_path}")

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}

        config = self.config_from_dict(config_data)
        logger.info(f"Loaded pipeline config: {config.name}")
        return config

    def config_from_dict(self, config_data: dict) -> PipelineConfig:
        """Build and validate a PipelineConfig from parsed YAML."""
        config = PipelineConfig()
        config.name = config_data.get('name', 'Unnamed Trajectory')

        if 'frame_provider' in config_data:
            fp = config_data['frame_provider']
            config.frame_provider = FrameProviderConfig(
                kind=fp.get('kind', 'earth_rotation'),
                metakernel_path=fp.get('metakernel_path', ''),
                inertial_frame=fp.get('inertial_frame', 'J2000'),
                rotating_frame=fp.get('rotating_frame', 'ITRF93')
            )

        if 'interpolation' in config_data:
            interp = config_data['interpolation']
            config.interpolation = InterpolationConfig(
                position_method=interp.get('position_method', 'linear'),
                position_format=interp.get('position_format', 'cartesian')
            )

        if 'time_window' in config_data:
            tw = config_data['time_window']
            config.time_window = TimeWindowConfig(
                priming_pad_days=float(tw.get('priming_pad_days', 1.0)),
                availability_stop_pad_days=float(tw.get('availability_stop_pad_days', 0.0))
            )

        if 'cursor' in config_data:
            config.cursor = CursorConfig(
                subscribe_to_hover_events=bool(config_data['cursor'].get('subscribe_to_hover_events', False))
            )

        if 'asset' in config_data:
            asset = config_data['asset']
            asset_id = asset.get('model_asset_id')
            config.asset = AssetConfig(
                mode=asset.get('mode', 'point'),
                model_asset_id=int(asset_id) if asset_id else None,
                model_asset_uri=asset.get('model_asset_uri', ''),
                access_token=asset.get('access_token', ''),
                ion_api_url=asset.get('ion_api_url', 'https://api.cesium.com'),
                timeout_s=float(asset.get('timeout_s', 10.0))
            )

        self.validate(config)
        return config

    @staticmethod
    def validate(config: PipelineConfig) -> None:
        """Raise ValueError for unknown enumerated values or negative pads."""
        _check_choice('frame_provider.kind', config.frame_provider.kind, PROVIDER_KINDS)
        _check_choice('interpolation.position_method', config.interpolation.position_method, POSITION_METHODS)
        _check_choice('interpolation.position_format', config.interpolation.position_format, POSITION_FORMATS)
        _check_choice('asset.mode', config.asset.mode, ASSET_MODES)
        if config.time_window.priming_pad_days < 0 or config.time_window.availability_stop_pad_days < 0:
            raise ValueError("Time window pads must not be negative")
        if config.frame_provider.kind == 'spice' and not config.frame_provider.metakernel_path:
            raise ValueError("frame_provider.metakernel_path is required for the spice provider")

    def get_metakernel_path(self, config: PipelineConfig) -> Path:
        """Get absolute path to the Earth orientation metakernel."""
        metakernel_path = Path(config.frame_provider.metakernel_path)

        if not metakernel_path.is_absolute():
            metakernel_path = self.project_root / metakernel_path

        return metakernel_path

    def build_frame_provider(self, config: PipelineConfig) -> FrameRotationProvider:
        """Create the frame rotation provider selected by config."""
        fp = config.frame_provider
        if fp.kind == 'spice':
            logger.info(f"Using SPICE frame rotations {fp.inertial_frame} <- {fp.rotating_frame}")
            return SpiceFrameRotationProvider(
                SpiceHandler(),
                metakernel_path=str(self.get_metakernel_path(config)),
                project_root=str(self.project_root),
                inertial_frame=fp.inertial_frame,
                rotating_frame=fp.rotating_frame,
            )
        logger.info("Using analytic Earth Rotation Angle frame rotations")
        return EarthRotationAngleProvider()
