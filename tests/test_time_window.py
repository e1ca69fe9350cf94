from __future__ import annotations

import numpy as np
import pytest

from sattraj.computation.time_window import compute_availability
from sattraj.utils.time_utils import MS_PER_DAY, TimeInterval


def test_empty_column_has_no_window() -> None:
    assert compute_availability([]) is None
    assert compute_availability(np.array([], dtype=np.float64)) is None


def test_window_spans_first_and_last_sample() -> None:
    times = [1_000.0, 2_500.0, 9_000.0]
    window = compute_availability(times)
    assert window == TimeInterval(1_000.0, 9_000.0)
    assert window.start <= window.stop


def test_single_sample_window_is_degenerate() -> None:
    window = compute_availability([42.0])
    assert window.start == window.stop == 42.0


def test_trailing_pad_extends_stop_only() -> None:
    window = compute_availability([0.0, 60_000.0], stop_pad_ms=MS_PER_DAY)
    assert window.start == 0.0
    assert window.stop == 60_000.0 + MS_PER_DAY


def test_interval_rejects_reversed_bounds() -> None:
    with pytest.raises(ValueError):
        TimeInterval(10.0, 5.0)


def test_extended_moves_stop_only() -> None:
    interval = TimeInterval(10.0, 20.0)
    assert interval.extended(5.0) == TimeInterval(10.0, 25.0)
    assert interval.extended(0.0) == interval
