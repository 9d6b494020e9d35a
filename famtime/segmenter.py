# famtime/segmenter.py
from typing import Dict, List

import pandas as pd

from .intervals import clamp_to_range
from .models import DayWindowGroup, Interval
from .timezones import TimeZoneOffsetProvider, iso_week_key
from .weekdays import WEEKDAYS


def build_day_windows(planning_start: pd.Timestamp,
                      planning_end: pd.Timestamp,
                      allowed_windows: Dict[str, List[Interval]],
                      time_zone: str,
                      provider: TimeZoneOffsetProvider) -> List[DayWindowGroup]:
    """
    Walk the horizon one local calendar day at a time and anchor each
    admissible minute window at that day's wall clock in `time_zone`.
    """
    if planning_end <= planning_start:
        return []

    first_day = provider.to_local(planning_start, time_zone).normalize()
    last_day = provider.to_local(planning_end - pd.Timedelta(minutes=1), time_zone).normalize()

    groups: List[DayWindowGroup] = []
    for local_midnight in pd.date_range(first_day, last_day, freq="D"):
        day = local_midnight.date()
        weekday = WEEKDAYS[day.weekday()]
        minute_windows = allowed_windows.get(weekday) or []
        if not minute_windows:
            continue

        windows: List[Interval] = []
        for window in minute_windows:
            start = provider.local_to_utc(local_midnight + pd.Timedelta(minutes=window.start), time_zone)
            end = provider.local_to_utc(local_midnight + pd.Timedelta(minutes=window.end), time_zone)
            if end <= start:
                continue
            clipped = clamp_to_range(Interval(start, end), planning_start, planning_end)
            if clipped is not None:
                windows.append(clipped)

        if windows:
            groups.append(DayWindowGroup(
                day_id=f"{day.isoformat()}-{weekday}",
                day=day,
                weekday=weekday,
                week_key=iso_week_key(day),
                windows=sorted(windows, key=lambda iv: iv.start),
                day_start=provider.local_to_utc(local_midnight, time_zone),
            ))
    return groups
