# famtime/busy.py
"""
Adapters between stored calendar/event payloads and engine intervals.

The engine only ever receives Interval lists; these helpers are what the
store and the device-calendar bridge use to produce them.
"""
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .intervals import expand_with_buffer, merge_sorted
from .models import CalendarEntry, Interval
from .preferences import build_preference_record

logger = logging.getLogger(__name__)

PRIVATE_EVENT_TRAVEL_BUFFER_MINUTES = 30


def to_timestamp(value: Any) -> Optional[pd.Timestamp]:
    """tz-aware UTC Timestamp from a datetime, ISO string or epoch milliseconds."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            ts = pd.Timestamp(value, unit="ms")
        elif isinstance(value, (str, datetime, date, pd.Timestamp)):
            ts = pd.Timestamp(value)
        else:
            return None
    except (ValueError, TypeError, OverflowError) as exc:
        logger.debug("Unparseable instant %r: %s", value, exc)
        return None
    if pd.isna(ts):
        return None
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def _pick(item: Mapping, keys) -> Any:
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


def to_interval(start: Any, end: Any) -> Optional[Interval]:
    start_ts, end_ts = to_timestamp(start), to_timestamp(end)
    if start_ts is None or end_ts is None or end_ts <= start_ts:
        return None
    return Interval(start_ts, end_ts)


def normalize_busy_payload(items: Any) -> List[Interval]:
    if not isinstance(items, (list, tuple)):
        return []

    intervals = []
    for item in items:
        if isinstance(item, Interval):
            interval = to_interval(item.start, item.end)
        elif isinstance(item, Mapping):
            interval = to_interval(_pick(item, ("start", "from", "begin")), _pick(item, ("end", "to", "finish")))
        else:
            interval = None
        if interval is not None:
            intervals.append(interval)
    return intervals


def build_event_busy_intervals(events: Any) -> List[Interval]:
    """Busy time of shared events, including any proposed (pending) change."""
    if not isinstance(events, (list, tuple)):
        return []

    intervals = []
    for event in events:
        if not isinstance(event, Mapping):
            continue
        for source in (event, event.get("pendingChange")):
            if isinstance(source, Mapping):
                interval = to_interval(source.get("start"), source.get("end"))
                if interval is not None:
                    intervals.append(interval)
    return intervals


def merge_busy_intervals(primary: Iterable[Interval] = (), secondary: Iterable[Interval] = ()) -> List[Interval]:
    return merge_sorted(list(primary) + list(secondary))


def apply_travel_buffer(intervals: Iterable[Interval], buffer_minutes: int = 0) -> List[Interval]:
    return [expand_with_buffer(interval, buffer_minutes, buffer_minutes) for interval in intervals]


def busy_lists_equal(first: List[Interval], second: List[Interval]) -> bool:
    if len(first) != len(second):
        return False
    return all(a.start == b.start and a.end == b.end for a, b in zip(first, second))


def calendar_entry_from_mapping(raw: Any) -> Optional[CalendarEntry]:
    """CalendarEntry from a stored document; entries without an id are dropped."""
    if isinstance(raw, CalendarEntry):
        return raw
    if not isinstance(raw, Mapping):
        return None
    participant_id = _pick(raw, ("participantId", "participant_id", "userId", "user_id"))
    if not participant_id:
        return None
    busy = _pick(raw, ("busy", "busyIntervals", "busy_intervals"))
    return CalendarEntry(
        participant_id=str(participant_id),
        busy=normalize_busy_payload(busy),
        preferences=build_preference_record(raw.get("preferences")),
    )


class DeviceCalendarBridge(ABC):
    """Read-only view of one participant's on-device calendar."""

    @abstractmethod
    def busy_intervals(self, participant_id: str, start: pd.Timestamp, end: pd.Timestamp) -> List[Interval]:
        """Busy time for `participant_id` overlapping [start, end)."""


class StaticCalendarBridge(DeviceCalendarBridge):
    def __init__(self, busy_by_participant: Optional[Dict[str, List[Interval]]] = None) -> None:
        self._busy = dict(busy_by_participant or {})

    def busy_intervals(self, participant_id: str, start: pd.Timestamp, end: pd.Timestamp) -> List[Interval]:
        return [
            interval for interval in self._busy.get(participant_id, [])
            if interval.start < end and interval.end > start
        ]


def with_device_busy(entry: CalendarEntry,
                     bridge: DeviceCalendarBridge,
                     start: pd.Timestamp,
                     end: pd.Timestamp,
                     travel_buffer_minutes: int = PRIVATE_EVENT_TRAVEL_BUFFER_MINUTES) -> CalendarEntry:
    """Copy of `entry` with the participant's device events (plus travel time) merged in."""
    device_busy = apply_travel_buffer(
        normalize_busy_payload(bridge.busy_intervals(entry.participant_id, start, end)),
        travel_buffer_minutes,
    )
    return CalendarEntry(
        participant_id=entry.participant_id,
        busy=merge_busy_intervals(entry.busy, device_busy),
        preferences=entry.preferences,
    )
