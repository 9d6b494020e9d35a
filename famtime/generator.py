# famtime/generator.py
import logging
import math
from typing import List, Optional

import pandas as pd

from .intervals import overlaps
from .models import (CandidateSlot, DayWindowGroup, GroupConstraints, Interval,
                     WEEKDAY_MAX_DURATION, WEEKEND_MIN_DURATION)
from .seeded import SeededSequence
from .weekdays import is_work_day

logger = logging.getLogger(__name__)

BIASES = ("start", "middle", "end")
EPOCH = pd.Timestamp(0, tz="UTC")


def build_duration_options(weekday: str, min_duration: int, max_duration: int, step: int) -> List[int]:
    """Low / mid / high durations for one day, after the weekday-weekend profile."""
    day_min, day_max = min_duration, max_duration
    if is_work_day(weekday):
        day_max = min(day_max, max(day_min, WEEKDAY_MAX_DURATION))
    else:
        day_min = max(day_min, min(day_max, WEEKEND_MIN_DURATION))
    if day_min > day_max:
        day_min = day_max

    mid = math.floor((day_min + day_max) / 2 / step + 0.5) * step
    mid = max(day_min, min(day_max, mid))

    options: List[int] = []
    for value in (day_min, mid, day_max):
        if value > 0 and value not in options:
            options.append(value)
    return options


def align_to_grid(value: pd.Timestamp, origin: pd.Timestamp, step: int, mode: str) -> pd.Timestamp:
    """Snap `value` onto the `step`-minute grid that starts at `origin` ("ceil", "floor" or "round")."""
    unit = pd.Timedelta(minutes=step).value
    offset = (value - origin).value
    if mode == "ceil":
        steps = -(-offset // unit)
    elif mode == "floor":
        steps = offset // unit
    else:
        steps = (2 * offset + unit) // (2 * unit)
    return origin + pd.Timedelta(steps * unit, unit="ns")


def place_slot(intervals: List[Interval],
               duration: int,
               bias: str,
               step: int,
               origin: Optional[pd.Timestamp] = None) -> Optional[Interval]:
    """
    Position a `duration`-minute slot inside one of `intervals` (sorted by start).

    Starts land on the `step` grid counted from `origin`, normally the local
    midnight of the day; without one the grid is counted from the epoch.
    """
    span = pd.Timedelta(minutes=duration)
    origin = EPOCH if origin is None else origin

    if bias == "middle":
        # longest first; sort is stable so equal lengths stay in time order
        for interval in sorted(intervals, key=lambda iv: iv.end - iv.start, reverse=True):
            length = interval.end - interval.start
            if length < span:
                continue
            start = align_to_grid(interval.start + (length - span) / 2, origin, step, "round")
            if start < interval.start:
                start = align_to_grid(interval.start, origin, step, "ceil")
            if start + span <= interval.end:
                return Interval(start, start + span)
        return None

    if bias == "end":
        for interval in reversed(intervals):
            if interval.end - interval.start < span:
                continue
            start = align_to_grid(interval.end - span, origin, step, "floor")
            if start >= interval.start:
                return Interval(start, start + span)
        return None

    for interval in intervals:
        if interval.end - interval.start < span:
            continue
        start = align_to_grid(interval.start, origin, step, "ceil")
        if start + span <= interval.end:
            return Interval(start, start + span)
    return None


def generate_day_candidates(group: DayWindowGroup,
                            constraints: GroupConstraints,
                            seed_key: str) -> List[CandidateSlot]:
    step = constraints.slot_step_minutes
    durations = build_duration_options(
        group.weekday, constraints.min_duration_minutes, constraints.max_duration_minutes, step
    )
    wanted = min(1 if is_work_day(group.weekday) else 2, len(durations))

    rng = SeededSequence.from_key(seed_key, group.day_id, group.week_key)
    duration_pool = rng.shuffle(durations)
    bias_pool = rng.shuffle(BIASES)

    placed: List[CandidateSlot] = []
    while len(placed) < wanted and duration_pool and bias_pool:
        duration = duration_pool.pop()
        bias = bias_pool.pop()
        window = place_slot(group.windows, duration, bias, step, group.day_start)
        if window is None:
            logger.debug("No room for %d min (%s) on %s", duration, bias, group.day_id)
            continue
        if any(overlaps(window, Interval(p.start, p.end)) for p in placed):
            continue
        placed.append(CandidateSlot(
            start=window.start,
            end=window.end,
            day_key=group.weekday,
            week_key=group.week_key,
            day_id=group.day_id,
            duration_minutes=duration,
            bias=bias,
        ))
    return placed


def generate_candidates(day_groups: List[DayWindowGroup],
                        constraints: GroupConstraints,
                        seed_key: str = "") -> List[CandidateSlot]:
    candidates: List[CandidateSlot] = []
    for group in day_groups:
        candidates.extend(generate_day_candidates(group, constraints, seed_key))
    return sorted(candidates, key=lambda c: (c.start, c.end))
