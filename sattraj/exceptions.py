"""
Error taxonomy for the trajectory pipeline.

All of these are recovered at the pipeline boundary:
- MalformedTelemetry: column-length mismatch, non-monotonic instants, bad values
- MalformedSample: a sample with non-finite or degenerate components
- FrameResolutionFailed: frame rotation query failed or ran before priming
- AssetResolutionFailed: model asset handle could not be resolved
- StaleReadiness: priming completion for a superseded request
"""


class TrajectoryError(Exception):
    """Base class for all trajectory pipeline errors."""


class MalformedTelemetry(TrajectoryError):
    """Telemetry frame is structurally invalid."""


class MalformedSample(MalformedTelemetry):
    """
    A single sample could not be used.

    Attributes:
        index: Row index of the offending sample (None if unknown)
    """

    def __init__(self, message: str, index: int = None):
        super().__init__(message)
        self.index = index


class FrameResolutionFailed(TrajectoryError):
    """Frame rotation provider could not answer a query."""


class AssetResolutionFailed(TrajectoryError):
    """Visual asset handle could not be resolved."""


class StaleReadiness(TrajectoryError):
    """Priming completed for a request that has since been superseded."""
