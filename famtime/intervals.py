# famtime/intervals.py
from typing import Iterable, List, Optional

import pandas as pd

from .models import Interval, Instant


def _shift(value: Instant, minutes: int) -> Instant:
    if isinstance(value, pd.Timestamp):
        return value + pd.Timedelta(minutes=minutes)
    return value + minutes


def duration_minutes(interval: Interval) -> int:
    return interval.duration_minutes


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and b.start < a.end


def merge_sorted(intervals: Iterable[Interval]) -> List[Interval]:
    """Sort by start and sweep-merge overlapping or touching intervals."""
    ordered = sorted(intervals, key=lambda iv: iv.start)
    if not ordered:
        return []

    merged = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end:
            if current.end > last.end:
                merged[-1] = Interval(last.start, current.end)
        else:
            merged.append(current)
    return merged


def intersect_sorted(list_a: List[Interval], list_b: List[Interval]) -> List[Interval]:
    """Two-pointer intersection of two sorted, non-overlapping lists."""
    result: List[Interval] = []
    i = j = 0
    while i < len(list_a) and j < len(list_b):
        a, b = list_a[i], list_b[j]
        start = max(a.start, b.start)
        end = min(a.end, b.end)
        if end > start:
            result.append(Interval(start, end))
        if a.end < b.end:
            i += 1
        else:
            j += 1
    return result


def invert(busy: List[Interval], range_start: Instant, range_end: Instant) -> List[Interval]:
    """Free gaps of a sorted busy list inside [range_start, range_end)."""
    if range_end <= range_start:
        return []

    free: List[Interval] = []
    cursor = range_start
    for interval in busy:
        if interval.start > cursor:
            free.append(Interval(cursor, min(interval.start, range_end)))
        if interval.end > cursor:
            cursor = interval.end
        if cursor >= range_end:
            break

    if cursor < range_end:
        free.append(Interval(cursor, range_end))
    return free


def expand_with_buffer(interval: Interval, before: Optional[int], after: Optional[int]) -> Interval:
    before = max(0, int(before or 0))
    after = max(0, int(after or 0))
    return Interval(_shift(interval.start, -before), _shift(interval.end, after))


def clamp_to_range(interval: Interval, range_start: Instant, range_end: Instant) -> Optional[Interval]:
    if range_start >= range_end:
        return None
    start = max(interval.start, range_start)
    end = min(interval.end, range_end)
    if end <= start:
        return None
    return Interval(start, end)
