# tests/test_intervals.py
import pandas as pd
import pytest

from famtime.intervals import (clamp_to_range, expand_with_buffer, intersect_sorted, invert,
                               merge_sorted, overlaps)
from famtime.models import Interval


def test_interval_requires_positive_length():
    with pytest.raises(ValueError):
        Interval(10, 10)
    with pytest.raises(ValueError):
        Interval(20, 10)


def test_duration_in_minutes_for_ints_and_timestamps():
    assert Interval(60, 150).duration_minutes == 90
    start = pd.Timestamp("2025-11-03 10:00", tz="UTC")
    assert Interval(start, start + pd.Timedelta(hours=2)).duration_minutes == 120


def test_merge_sorted_joins_overlapping_and_touching():
    merged = merge_sorted([Interval(30, 40), Interval(10, 20), Interval(0, 10), Interval(15, 25)])
    assert merged == [Interval(0, 25), Interval(30, 40)]


def test_merge_sorted_keeps_contained_interval_absorbed():
    assert merge_sorted([Interval(0, 100), Interval(20, 30)]) == [Interval(0, 100)]
    assert merge_sorted([]) == []


def test_intersect_sorted():
    a = [Interval(0, 10), Interval(20, 30), Interval(40, 50)]
    b = [Interval(5, 25), Interval(45, 60)]
    assert intersect_sorted(a, b) == [Interval(5, 10), Interval(20, 25), Interval(45, 50)]
    assert intersect_sorted(a, []) == []


def test_invert_returns_gaps_inside_range():
    busy = [Interval(10, 20), Interval(30, 40)]
    assert invert(busy, 0, 50) == [Interval(0, 10), Interval(20, 30), Interval(40, 50)]


def test_invert_handles_busy_outside_range_edges():
    assert invert([Interval(-5, 5)], 0, 20) == [Interval(5, 20)]
    assert invert([Interval(15, 30)], 0, 20) == [Interval(0, 15)]
    assert invert([], 0, 20) == [Interval(0, 20)]
    assert invert([Interval(0, 20)], 0, 20) == []
    assert invert([], 20, 20) == []


def test_expand_with_buffer_ignores_missing_and_negative():
    assert expand_with_buffer(Interval(60, 120), 15, 30) == Interval(45, 150)
    assert expand_with_buffer(Interval(60, 120), None, -10) == Interval(60, 120)


def test_expand_with_buffer_on_timestamps():
    start = pd.Timestamp("2025-11-03 10:00", tz="UTC")
    padded = expand_with_buffer(Interval(start, start + pd.Timedelta(hours=1)), 15, 15)
    assert padded.start == pd.Timestamp("2025-11-03 09:45", tz="UTC")
    assert padded.end == pd.Timestamp("2025-11-03 11:15", tz="UTC")


def test_clamp_to_range():
    assert clamp_to_range(Interval(0, 100), 20, 50) == Interval(20, 50)
    assert clamp_to_range(Interval(0, 10), 20, 50) is None
    assert clamp_to_range(Interval(0, 10), 50, 20) is None


def test_overlaps_is_half_open():
    assert overlaps(Interval(0, 10), Interval(5, 15))
    assert not overlaps(Interval(0, 10), Interval(10, 20))
