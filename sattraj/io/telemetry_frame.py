"""
Telemetry frame construction and validation.

A telemetry frame is a set of length-aligned columns with a fixed positional
contract shared with the upstream data source:

    column 0      time (epoch milliseconds)
    columns 1-3   position X/Y/Z in the rotating frame
                  (or longitude deg / latitude deg / height km when geodetic)
    columns 4-7   attitude W/X/Y/Z (body relative to rotating frame)

Frames are validated on construction: equal column lengths, finite values,
strictly increasing time and non-degenerate quaternions. A frame that fails any
check is rejected as a whole.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence, Union

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from ..exceptions import MalformedSample, MalformedTelemetry
from ..utils.geometry_utils import geodetic_to_cartesian

logger = logging.getLogger(__name__)

TIME_COLUMN = 0
POSITION_COLUMNS = (1, 2, 3)
ATTITUDE_COLUMNS = (4, 5, 6, 7)
NUM_COLUMNS = 8

POSITION_FORMATS = ('cartesian', 'geodetic')


@dataclass(frozen=True, eq=False)
class TelemetryFrame:
    """
    Validated telemetry for one trajectory.

    Attributes:
        times: Sample instants in epoch milliseconds (N,)
        positions: Rotating-frame positions in km (N, 3)
        attitudes: Unit quaternions [w, x, y, z], body -> rotating frame (N, 4)
    """
    times: NDArray[np.float64]
    positions: NDArray[np.float64]
    attitudes: NDArray[np.float64]

    def __len__(self) -> int:
        return len(self.times)

    @property
    def is_empty(self) -> bool:
        return len(self.times) == 0

    @classmethod
    def from_columns(cls,
                     columns: Sequence[Sequence[float]],
                     position_format: str = 'cartesian') -> "TelemetryFrame":
        """
        Build a frame from positional columns.

        Args:
            columns: At least eight equal-length columns (extra columns ignored)
            position_format: 'cartesian' or 'geodetic'

        Returns:
            Validated TelemetryFrame

        Raises:
            MalformedTelemetry: Missing columns, length mismatch or non-increasing time
            MalformedSample: Non-finite values or zero-norm attitude
            ValueError: Unknown position_format
        """
        if position_format not in POSITION_FORMATS:
            raise ValueError(f"Unknown position format: {position_format}")
        if len(columns) < NUM_COLUMNS:
            raise MalformedTelemetry(f"Expected {NUM_COLUMNS} columns, got {len(columns)}")

        try:
            arrays = [np.asarray(columns[i], dtype=np.float64).ravel() for i in range(NUM_COLUMNS)]
        except (TypeError, ValueError) as e:
            raise MalformedTelemetry(f"Non-numeric telemetry column: {e}") from e
        lengths = [len(a) for a in arrays]
        if len(set(lengths)) != 1:
            raise MalformedTelemetry(f"Column lengths differ: {lengths}")

        times = arrays[TIME_COLUMN]
        position_cols = np.column_stack([arrays[i] for i in POSITION_COLUMNS]).reshape(-1, 3)
        attitudes = np.column_stack([arrays[i] for i in ATTITUDE_COLUMNS]).reshape(-1, 4)

        table = np.column_stack([times, position_cols, attitudes])
        bad_rows = np.flatnonzero(~np.all(np.isfinite(table), axis=1))
        if bad_rows.size:
            raise MalformedSample(
                f"Non-finite value in sample {bad_rows[0]} ({bad_rows.size} bad samples)",
                index=int(bad_rows[0]),
            )

        if len(times) > 1:
            steps = np.diff(times)
            if np.any(steps <= 0):
                first = int(np.flatnonzero(steps <= 0)[0]) + 1
                raise MalformedTelemetry(f"Sample instants must strictly increase (sample {first})")

        norms = np.linalg.norm(attitudes, axis=1)
        degenerate = np.flatnonzero(norms < 1e-12)
        if degenerate.size:
            raise MalformedSample(f"Zero-norm attitude in sample {degenerate[0]}", index=int(degenerate[0]))
        attitudes = attitudes / norms[:, np.newaxis]

        if position_format == 'geodetic' and len(times):
            positions = geodetic_to_cartesian(position_cols[:, 0], position_cols[:, 1], position_cols[:, 2])
        else:
            positions = position_cols

        logger.debug(f"Telemetry frame with {len(times)} samples ({position_format} positions)")
        return cls(times=times, positions=positions, attitudes=attitudes)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, position_format: str = 'cartesian') -> "TelemetryFrame":
        """
        Build a frame from a DataFrame using the positional column contract.

        Datetime time columns are converted to epoch milliseconds.
        """
        if df.shape[1] < NUM_COLUMNS:
            raise MalformedTelemetry(f"Expected {NUM_COLUMNS} columns, got {df.shape[1]}")

        time_col = df.iloc[:, TIME_COLUMN]
        if pd.api.types.is_datetime64_any_dtype(time_col):
            if time_col.dt.tz is None:
                raise MalformedTelemetry("Time column is timezone-naive")
            times = (time_col - pd.Timestamp(0, tz='UTC')) / pd.Timedelta(milliseconds=1)
        else:
            times = pd.to_numeric(time_col, errors='coerce')

        columns = [times.to_numpy(dtype=np.float64)]
        for i in range(1, NUM_COLUMNS):
            columns.append(pd.to_numeric(df.iloc[:, i], errors='coerce').to_numpy(dtype=np.float64))
        return cls.from_columns(columns, position_format=position_format)


def read_telemetry_csv(path: Union[str, Path], position_format: str = 'cartesian') -> TelemetryFrame:
    """
    Read a telemetry CSV (header row, positional column contract).

    Raises:
        FileNotFoundError: If the file does not exist
        MalformedTelemetry: If the content is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Telemetry file not found: {path}")

    df = pd.read_csv(path)
    logger.info(f"Read {len(df)} telemetry rows from {path}")
    return TelemetryFrame.from_dataframe(df, position_format=position_format)
