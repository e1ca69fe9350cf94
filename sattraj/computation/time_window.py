"""
Availability window computation.
"""

from typing import Optional, Sequence

import numpy as np

from ..utils.time_utils import TimeInterval


def compute_availability(times: Sequence[float], stop_pad_ms: float = 0.0) -> Optional[TimeInterval]:
    """
    Derive the availability interval from a sample time column.

    Args:
        times: Ordered sample instants (epoch milliseconds)
        stop_pad_ms: Optional margin added after the last sample so queries
            slightly past the end stay inside the window

    Returns:
        TimeInterval [first, last + stop_pad_ms], or None for an empty column
    """
    times = np.asarray(times, dtype=np.float64)
    if times.size == 0:
        return None
    return TimeInterval(float(times[0]), float(times[-1])).extended(stop_pad_ms)
