# famtime/free_time.py
from dataclasses import replace
from typing import Iterable, List, Optional

import pandas as pd

from .intervals import clamp_to_range, expand_with_buffer, intersect_sorted, invert, merge_sorted
from .models import DayWindowGroup, Interval


def normalize_busy(busy: Iterable[Interval],
                   buffer_before: Optional[int],
                   buffer_after: Optional[int],
                   planning_start: pd.Timestamp,
                   planning_end: pd.Timestamp) -> List[Interval]:
    """Merge, pad with buffers, clip to the horizon and merge again."""
    padded = []
    for interval in merge_sorted(busy):
        clipped = clamp_to_range(
            expand_with_buffer(interval, buffer_before, buffer_after),
            planning_start, planning_end,
        )
        if clipped is not None:
            padded.append(clipped)
    return merge_sorted(padded)


def resolve_common_free(busy_lists: List[List[Interval]],
                        planning_start: pd.Timestamp,
                        planning_end: pd.Timestamp) -> List[Interval]:
    """Time in the horizon where none of the busy lists is occupied."""
    common = [Interval(planning_start, planning_end)]
    for busy in busy_lists:
        common = intersect_sorted(common, invert(busy, planning_start, planning_end))
        if not common:
            break
    return common


def eligible_day_groups(common_free: List[Interval],
                        day_groups: List[DayWindowGroup]) -> List[DayWindowGroup]:
    eligible = []
    for group in day_groups:
        windows = intersect_sorted(common_free, group.windows)
        if windows:
            eligible.append(replace(group, windows=windows))
    return eligible
