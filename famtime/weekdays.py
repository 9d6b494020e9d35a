# famtime/weekdays.py
import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any, Dict, List, Optional, Tuple

from .intervals import merge_sorted
from .models import Interval, MINUTES_PER_DAY, QUIET_START_MINUTES

logger = logging.getLogger(__name__)

WEEKDAYS: Tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
WORK_DAYS = frozenset({"Mon", "Tue", "Wed", "Thu"})
WEEKEND_DAYS = frozenset({"Fri", "Sat", "Sun"})

_ALIASES = {
    "Mon": ("mon", "monday", "mandag", "man", "montag", "mo"),
    "Tue": ("tue", "tues", "tuesday", "tirsdag", "tir", "dienstag", "di"),
    "Wed": ("wed", "wednesday", "onsdag", "ons", "mittwoch", "mi"),
    "Thu": ("thu", "thur", "thurs", "thursday", "torsdag", "tor", "donnerstag", "do"),
    "Fri": ("fri", "friday", "fredag", "fre", "freitag", "fr"),
    "Sat": ("sat", "saturday", "lørdag", "lordag", "lør", "lor", "samstag", "sa"),
    "Sun": ("sun", "sunday", "søndag", "sondag", "søn", "son", "sonntag", "so"),
}
WEEKDAY_ALIASES: Dict[str, str] = {
    alias: code for code, aliases in _ALIASES.items() for alias in aliases
}

DEFAULT_WEEKDAY_WINDOW = (16 * 60, 23 * 60 + 59)
DEFAULT_WEEKEND_WINDOW = (10 * 60, 23 * 60 + 59)


def is_work_day(code: str) -> bool:
    return code in WORK_DAYS


def normalize_weekday(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return WEEKDAY_ALIASES.get(value.strip().lower())


def normalize_weekday_list(values: Any) -> Optional[Tuple[str, ...]]:
    """Canonical Mon->Sun tuple of recognized days, or None if nothing was recognized."""
    if values is None:
        return None
    if isinstance(values, str) or not isinstance(values, Iterable):
        values = [values]
    found = {normalize_weekday(v) for v in values}
    found.discard(None)
    if not found:
        return None
    return tuple(day for day in WEEKDAYS if day in found)


def parse_minutes(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if ":" not in text:
        try:
            number = float(text)
        except ValueError:
            return None
        return int(number) if math.isfinite(number) else None

    hours_part, _, minutes_part = text.partition(":")
    try:
        hours = int(hours_part)
        minutes = int(minutes_part[:2])
    except ValueError:
        return None
    return hours * 60 + minutes


def parse_window_entry(entry: Any) -> Optional[Interval]:
    if isinstance(entry, str):
        parts = entry.split("-")
        if len(parts) != 2:
            return None
        start, end = parse_minutes(parts[0]), parse_minutes(parts[1])
    elif isinstance(entry, Mapping):
        start = parse_minutes(_first_present(entry, ("start", "begin", "from")))
        end = parse_minutes(_first_present(entry, ("end", "finish", "to")))
    elif isinstance(entry, (list, tuple)) and len(entry) == 2:
        start, end = parse_minutes(entry[0]), parse_minutes(entry[1])
    else:
        return None

    if start is None or end is None or end <= start:
        return None
    return Interval(start, end)


def _first_present(entry: Mapping, keys) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def merge_minute_windows(entries: Any) -> List[Interval]:
    """Parse, clamp to the day and merge. A single entry is accepted too."""
    if entries is None:
        return []
    if isinstance(entries, (str, Mapping)) or _looks_like_pair(entries):
        entries = [entries]
    if not isinstance(entries, (list, tuple)):
        logger.debug("Ignoring time windows of type %s", type(entries).__name__)
        return []

    clamped = []
    for entry in entries:
        window = parse_window_entry(entry)
        if window is None:
            logger.debug("Dropping unparseable time window %r", entry)
            continue
        start, end = max(0, window.start), min(MINUTES_PER_DAY, window.end)
        if end > start:
            clamped.append(Interval(start, end))
    return merge_sorted(clamped)


def _looks_like_pair(entries: Any) -> bool:
    return (
        isinstance(entries, (list, tuple))
        and len(entries) == 2
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in entries)
    )


def default_windows(code: str) -> List[Interval]:
    start, end = DEFAULT_WEEKEND_WINDOW if code in WEEKEND_DAYS else DEFAULT_WEEKDAY_WINDOW
    return [Interval(start, end)]


def apply_quiet_floor(windows: List[Interval]) -> List[Interval]:
    result = []
    for window in windows:
        start = max(window.start, QUIET_START_MINUTES)
        if window.end > start:
            result.append(Interval(start, window.end))
    return result


def _day_entries(definition: Mapping) -> Dict[str, Any]:
    by_day: Dict[str, Any] = {}
    for key, value in definition.items():
        code = normalize_weekday(key)
        if code and code not in by_day:
            by_day[code] = value
    return by_day


def normalize_window_map(definition: Any, days: Tuple[str, ...] = WEEKDAYS) -> Dict[str, List[Interval]]:
    """
    Resolve a window definition into {day code: merged minute windows}.

    Per day: explicit entry, then the mapping's "default", then the built-in
    profile. List definitions apply to every day. Days left empty by the
    quiet-hours floor are omitted.
    """
    explicit: Dict[str, Any] = {}
    fallback: List[Interval] = []
    if isinstance(definition, Mapping):
        explicit = _day_entries(definition)
        fallback = merge_minute_windows(definition.get("default"))
    elif definition is not None:
        fallback = merge_minute_windows(definition)

    result: Dict[str, List[Interval]] = {}
    for day in days:
        windows = merge_minute_windows(explicit.get(day)) or fallback or default_windows(day)
        windows = apply_quiet_floor(windows)
        if windows:
            result[day] = windows
    return result


def explicit_weekday_windows(definition: Any) -> Dict[str, List[Interval]]:
    """Mon-Thu windows a record declared itself (mapping keys or list form)."""
    if definition is None:
        return {}
    if isinstance(definition, Mapping):
        declared = {
            day: apply_quiet_floor(merge_minute_windows(value))
            for day, value in _day_entries(definition).items()
            if is_work_day(day)
        }
    else:
        windows = apply_quiet_floor(merge_minute_windows(definition))
        declared = {day: windows for day in WEEKDAYS if is_work_day(day)}
    return {day: windows for day, windows in declared.items() if windows}
