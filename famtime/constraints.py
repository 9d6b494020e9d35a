# famtime/constraints.py
import logging
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .intervals import intersect_sorted
from .models import (DEFAULT_SLOT_MINUTES, DEFAULT_STEP_MINUTES, DEFAULT_TIME_ZONE, GroupConstraints,
                     Interval, MIN_STEP_MINUTES, PreferenceRecord)
from .weekdays import WEEKDAYS, explicit_weekday_windows, is_work_day, normalize_window_map

logger = logging.getLogger(__name__)


def intersect_weekdays(base: Tuple[str, ...], other: Optional[Tuple[str, ...]]) -> Tuple[str, ...]:
    if not other:
        return base
    return tuple(day for day in base if day in other)


def intersect_window_maps(base: Dict[str, List[Interval]],
                          other: Dict[str, List[Interval]],
                          days: Iterable[str]) -> Dict[str, List[Interval]]:
    result = {}
    for day in days:
        overlap = intersect_sorted(base.get(day, []), other.get(day, []))
        if overlap:
            result[day] = overlap
    return result


def _declared(records: List[PreferenceRecord], name: str) -> List[int]:
    return [getattr(r, name) for r in records if getattr(r, name) is not None]


def find_weekday_fallback(participants: List[PreferenceRecord]) -> Optional[Tuple[str, Interval]]:
    """Earliest Mon-Thu window from the first participant that declared one.

    Days the same record leaves out of its own allowed weekdays don't count.
    """
    for record in participants:
        declared = explicit_weekday_windows(record.time_windows)
        if record.allowed_weekdays:
            declared = {day: windows for day, windows in declared.items() if day in record.allowed_weekdays}
        if not declared:
            continue
        return min(
            ((day, window) for day, windows in declared.items() for window in windows),
            key=lambda item: (item[1].start, WEEKDAYS.index(item[0])),
        )
    return None


def derive_group_constraints(participants: List[PreferenceRecord],
                             group: PreferenceRecord,
                             planning_start: pd.Timestamp,
                             planning_end: pd.Timestamp,
                             declarations: Optional[List[PreferenceRecord]] = None) -> Optional[GroupConstraints]:
    """
    Fold the group record and every participant record into one set of
    constraints. Returns None when no weekday or no window survives.

    `declarations` are the participants' own records before they inherited
    from the group; the weekday fallback only trusts those. Defaults to
    `participants`.
    """
    allowed = group.allowed_weekdays or WEEKDAYS
    for record in participants:
        allowed = intersect_weekdays(allowed, record.allowed_weekdays)
        if not allowed:
            logger.debug("Weekday intersection is empty")
            return None

    windows = normalize_window_map(group.time_windows, allowed)
    for record in participants:
        windows = intersect_window_maps(windows, normalize_window_map(record.time_windows, allowed), allowed)

    everyone = [group] + list(participants)
    declared_min = _declared(everyone, "min_duration_minutes")
    declared_max = _declared(everyone, "max_duration_minutes")
    declared_preferred = _declared(everyone, "preferred_duration_minutes")
    declared_step = [s for s in _declared(everyone, "slot_step_minutes") if s > 0]
    declared_days = [d for d in _declared(everyone, "max_suggestion_days_per_week") if d > 0]

    preferred = min(declared_preferred) if declared_preferred else DEFAULT_SLOT_MINUTES
    preferred = preferred or DEFAULT_SLOT_MINUTES
    min_duration = max(declared_min) if declared_min else preferred
    max_duration = min(declared_max) if declared_max else max(min_duration, preferred)
    if min_duration > max_duration:
        min_duration = max_duration
    preferred = max(min_duration, min(max_duration, preferred))
    step = max(MIN_STEP_MINUTES, min(declared_step) if declared_step else DEFAULT_STEP_MINUTES)

    time_zone = group.time_zone
    if not time_zone:
        time_zone = next((r.time_zone for r in participants if r.time_zone), DEFAULT_TIME_ZONE)

    injected = None
    if not any(is_work_day(day) for day in windows):
        fallback = find_weekday_fallback(participants if declarations is None else declarations)
        if fallback is not None:
            injected, window = fallback
            windows[injected] = [window]
            allowed = tuple(day for day in WEEKDAYS if day in allowed or day == injected)
            logger.debug("Injected weekday window %s %s-%s", injected, window.start, window.end)

    windows = {day: windows[day] for day in allowed if windows.get(day)}
    if not windows:
        logger.debug("No admissible window survived the intersection")
        return None

    return GroupConstraints(
        allowed_weekdays=tuple(allowed),
        allowed_windows=windows,
        min_duration_minutes=min_duration,
        max_duration_minutes=max_duration,
        preferred_duration_minutes=preferred,
        slot_step_minutes=step,
        max_suggestion_days_per_week=min(declared_days) if declared_days else None,
        time_zone=time_zone,
        planning_start=planning_start,
        planning_end=planning_end,
        has_weekday_preference=any(is_work_day(day) for day in windows),
        injected_weekday=injected,
    )
