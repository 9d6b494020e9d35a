# tests/conftest.py
from datetime import date

import pandas as pd
import pytest

from famtime.models import CandidateSlot, GroupConstraints, Interval
from famtime.timezones import UtcOffsetProvider, iso_week_key
from famtime.weekdays import WEEKDAYS, normalize_window_map

# Monday of ISO week 2025-W45
MONDAY = pd.Timestamp("2025-11-03 00:00", tz="UTC")


@pytest.fixture
def monday():
    return MONDAY


@pytest.fixture
def utc_provider():
    return UtcOffsetProvider()


@pytest.fixture
def make_slot():
    """CandidateSlot on a UTC calendar day: make_slot("2025-11-04", 18, 60)"""
    def _make(day_text, hour, minutes=60, bias="start"):
        start = pd.Timestamp(f"{day_text} {hour:02d}:00", tz="UTC")
        day = date.fromisoformat(day_text)
        code = WEEKDAYS[day.weekday()]
        return CandidateSlot(
            start=start,
            end=start + pd.Timedelta(minutes=minutes),
            day_key=code,
            week_key=iso_week_key(day),
            day_id=f"{day_text}-{code}",
            duration_minutes=minutes,
            bias=bias,
        )
    return _make


@pytest.fixture
def make_constraints():
    def _make(**overrides):
        values = dict(
            allowed_weekdays=WEEKDAYS,
            allowed_windows=normalize_window_map(None),
            min_duration_minutes=60,
            max_duration_minutes=60,
            preferred_duration_minutes=60,
            slot_step_minutes=15,
            max_suggestion_days_per_week=None,
            time_zone="UTC",
            planning_start=MONDAY,
            planning_end=MONDAY + pd.Timedelta(days=21),
            has_weekday_preference=True,
        )
        values.update(overrides)
        return GroupConstraints(**values)
    return _make


@pytest.fixture
def window():
    """Interval between two UTC wall times on the same day: window("2025-11-04", "18:00", "21:00")"""
    def _make(day_text, start, end):
        return Interval(
            pd.Timestamp(f"{day_text} {start}", tz="UTC"),
            pd.Timestamp(f"{day_text} {end}", tz="UTC"),
        )
    return _make
