# famtime/timezones.py
import logging
from abc import ABC, abstractmethod
from datetime import date, tzinfo
from typing import Dict, Optional

import pandas as pd

logger = logging.getLogger(__name__)

UTC_NAMES = frozenset({"UTC", "Etc/UTC", "GMT", "Z"})


def as_utc(value: pd.Timestamp) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def iso_week_key(day: date) -> str:
    """ISO 8601 year-week, e.g. 2026-W01 for 2025-12-29."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


class TimeZoneOffsetProvider(ABC):
    """Answers "how far ahead of UTC is this zone at this instant"."""

    @abstractmethod
    def offset_minutes(self, instant: pd.Timestamp, zone_id: str) -> int:
        """Minutes to add to a UTC instant to get local wall time."""

    def to_local(self, instant: pd.Timestamp, zone_id: str) -> pd.Timestamp:
        """Naive wall-clock time of `instant` in `zone_id`."""
        utc = as_utc(instant)
        offset = self.offset_minutes(utc, zone_id)
        return utc.tz_localize(None) + pd.Timedelta(minutes=offset)

    def local_to_utc(self, wall: pd.Timestamp, zone_id: str) -> pd.Timestamp:
        """UTC instant for a naive wall-clock time.

        Two passes so a wall time on the far side of a DST switch picks up the
        offset that is valid there, not the one valid at the naive guess.
        """
        naive = pd.Timestamp(wall)
        if naive.tzinfo is not None:
            naive = naive.tz_localize(None)
        guess = naive.tz_localize("UTC")
        first = guess - pd.Timedelta(minutes=self.offset_minutes(guess, zone_id))
        return guess - pd.Timedelta(minutes=self.offset_minutes(first, zone_id))


class UtcOffsetProvider(TimeZoneOffsetProvider):
    def offset_minutes(self, instant: pd.Timestamp, zone_id: str) -> int:
        return 0


class PandasOffsetProvider(TimeZoneOffsetProvider):
    """Offsets from the IANA database pandas resolves zone names against.

    Zone objects are cached on the instance; unknown zones are treated as UTC.
    """

    def __init__(self) -> None:
        self._zones: Dict[str, Optional[tzinfo]] = {}

    def _zone(self, zone_id: str) -> Optional[tzinfo]:
        if zone_id not in self._zones:
            try:
                self._zones[zone_id] = pd.Timestamp(0, tz=zone_id).tzinfo
            except (KeyError, ValueError, TypeError) as exc:
                logger.warning("Unknown time zone %r, falling back to UTC: %s", zone_id, exc)
                self._zones[zone_id] = None
        return self._zones[zone_id]

    def offset_minutes(self, instant: pd.Timestamp, zone_id: str) -> int:
        if not zone_id or zone_id in UTC_NAMES:
            return 0
        zone = self._zone(zone_id)
        if zone is None:
            return 0
        offset = as_utc(instant).tz_convert(zone).utcoffset()
        return int(offset.total_seconds() // 60) if offset is not None else 0
