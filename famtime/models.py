# famtime/models.py
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd

MINUTES_PER_DAY = 24 * 60
DEFAULT_LOOKAHEAD_DAYS = 21
DEFAULT_SLOT_MINUTES = 60
DEFAULT_STEP_MINUTES = 15
MIN_STEP_MINUTES = 15
DEFAULT_MAX_SUGGESTIONS = 12
DEFAULT_TIME_ZONE = "Europe/Copenhagen"

QUIET_START_MINUTES = 6 * 60       # nothing starts before 06:00
WEEKDAY_MAX_DURATION = 180
WEEKEND_MIN_DURATION = 120
MIDDAY_HOUR = 12
EVENING_CUTOFF_HOUR = 17

Instant = Union[int, pd.Timestamp]


@dataclass(frozen=True)
class Interval:
    """Half-open [start, end). Ints are minutes since local midnight,
    Timestamps are tz-aware UTC instants."""
    start: Instant
    end: Instant

    def __post_init__(self):
        if not self.end > self.start:
            raise ValueError(f"Interval end must be after start: {self.start} -> {self.end}")

    @property
    def duration_minutes(self) -> int:
        span = self.end - self.start
        if isinstance(span, pd.Timedelta):
            return int(span.total_seconds() // 60)
        return int(span)


@dataclass(frozen=True)
class PreferenceRecord:
    # None = not declared; reconciliation decides what that means for the group
    allowed_weekdays: Optional[Tuple[str, ...]] = None
    time_windows: Any = None                 # raw definition, see weekdays.normalize_window_map
    min_duration_minutes: Optional[int] = None
    max_duration_minutes: Optional[int] = None
    preferred_duration_minutes: Optional[int] = None
    buffer_before_minutes: Optional[int] = None
    buffer_after_minutes: Optional[int] = None
    time_zone: Optional[str] = None
    max_suggestion_days_per_week: Optional[int] = None
    slot_step_minutes: Optional[int] = None


@dataclass
class CalendarEntry:
    participant_id: str
    busy: List[Interval] = field(default_factory=list)
    preferences: PreferenceRecord = field(default_factory=PreferenceRecord)


@dataclass
class GroupConstraints:
    allowed_weekdays: Tuple[str, ...]
    allowed_windows: Dict[str, List[Interval]]
    min_duration_minutes: int
    max_duration_minutes: int
    preferred_duration_minutes: int
    slot_step_minutes: int
    max_suggestion_days_per_week: Optional[int]
    time_zone: str
    planning_start: pd.Timestamp
    planning_end: pd.Timestamp
    has_weekday_preference: bool = False
    injected_weekday: Optional[str] = None   # set when the weekday fallback kicked in


@dataclass
class DayWindowGroup:
    day_id: str          # "2025-11-04-Tue"
    day: date            # local calendar date
    weekday: str
    week_key: str        # "2025-W45"
    windows: List[Interval]
    day_start: Optional[pd.Timestamp] = None   # local midnight as a UTC instant; the step grid starts here


@dataclass(frozen=True)
class CandidateSlot:
    start: pd.Timestamp
    end: pd.Timestamp
    day_key: str
    week_key: str
    day_id: str
    duration_minutes: int
    bias: str = "start"


@dataclass(frozen=True)
class Suggestion:
    id: str
    start: pd.Timestamp
    end: pd.Timestamp


class NoSuggestionReason(str, Enum):
    INVALID_HORIZON = "invalid_horizon"
    UNSATISFIABLE_CONSTRAINTS = "unsatisfiable_constraints"
    NO_COMMON_FREE_TIME = "no_common_free_time"
    NO_ELIGIBLE_WINDOWS = "no_eligible_windows"
    NO_CANDIDATES = "no_candidates"


@dataclass
class SuggestionResult:
    slots: List[Suggestion]
    constraints: Optional[GroupConstraints]
    reason: str = ""

    def as_dict(self) -> Dict[str, Any]:
        return {"slots": self.slots, "constraints": self.constraints}
