# famtime/suggestions.py
import logging
from collections.abc import Iterable as IterableABC, Mapping
from dataclasses import replace
from typing import Any, Iterable, List, Optional

import pandas as pd

from .busy import calendar_entry_from_mapping, normalize_busy_payload, to_timestamp
from .constraints import derive_group_constraints
from .free_time import eligible_day_groups, normalize_busy, resolve_common_free
from .generator import generate_candidates
from .models import (DEFAULT_LOOKAHEAD_DAYS, DEFAULT_MAX_SUGGESTIONS, DEFAULT_SLOT_MINUTES,
                     NoSuggestionReason, SuggestionResult)
from .preferences import build_preference_record
from .segmenter import build_day_windows
from .selector import select_suggestions
from .timezones import PandasOffsetProvider, TimeZoneOffsetProvider

logger = logging.getLogger(__name__)


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_list(value: Any) -> list:
    if value is None or isinstance(value, (str, bytes, Mapping)) or not isinstance(value, IterableABC):
        return []
    return list(value)


def _empty(reason: NoSuggestionReason, constraints=None) -> SuggestionResult:
    logger.debug("No suggestions: %s", reason.value)
    return SuggestionResult(slots=[], constraints=constraints, reason=reason.value)


def compute_suggestions(calendars: Optional[Iterable[Any]],
                        period_start: Any = None,
                        period_end: Any = None,
                        group_preferences: Any = None,
                        user_preferences: Optional[Mapping] = None,
                        global_busy_intervals: Optional[Iterable[Any]] = None,
                        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
                        default_slot_duration_minutes: int = DEFAULT_SLOT_MINUTES,
                        seed_key: str = "",
                        now: Any = None,
                        offset_provider: Optional[TimeZoneOffsetProvider] = None) -> SuggestionResult:
    """
    Suggest meeting slots where every participant is free.

    calendars: CalendarEntry objects or mappings with participantId/userId,
               busy/busyIntervals and preferences.
    user_preferences: participant id -> preferences; wins over the calendar's own.
    global_busy_intervals: shared busy time (confirmed and pending family events).
    now: reference moment for the same-day filter; defaults to period_start.

    Never raises on malformed input. An empty `slots` with `constraints`
    None means the preferences cannot be satisfied at all; with constraints
    present it means nothing is free right now.
    """
    provider = offset_provider or PandasOffsetProvider()
    now_ts = to_timestamp(now)
    planning_start = to_timestamp(period_start)
    if planning_start is None:
        planning_start = now_ts if now_ts is not None else pd.Timestamp.now(tz="UTC").floor("min")
    planning_end = to_timestamp(period_end)
    if planning_end is None:
        planning_end = planning_start + pd.Timedelta(days=DEFAULT_LOOKAHEAD_DAYS)
    if now_ts is None:
        now_ts = planning_start

    if planning_end <= planning_start:
        return _empty(NoSuggestionReason.INVALID_HORIZON)

    # 1) Preference records: group first, participants inherit from it
    group = build_preference_record(group_preferences)
    if group.preferred_duration_minutes is None:
        default_duration = _as_int(default_slot_duration_minutes, DEFAULT_SLOT_MINUTES)
        group = replace(
            group,
            preferred_duration_minutes=default_duration if default_duration > 0 else DEFAULT_SLOT_MINUTES,
        )
    user_preferences = user_preferences if isinstance(user_preferences, Mapping) else {}

    participants = []
    declarations = []
    busy_lists: List[list] = []
    for raw in _as_list(calendars):
        entry = calendar_entry_from_mapping(raw)
        if entry is None:
            logger.debug("Skipping calendar without participant id")
            continue
        override = user_preferences.get(entry.participant_id)
        own = build_preference_record(override if override is not None else entry.preferences)
        record = build_preference_record(own, fallback=group)
        declarations.append(own)
        participants.append(record)
        busy_lists.append(normalize_busy(
            normalize_busy_payload(list(entry.busy)),
            record.buffer_before_minutes,
            record.buffer_after_minutes,
            planning_start,
            planning_end,
        ))

    shared_busy = normalize_busy(
        normalize_busy_payload(_as_list(global_busy_intervals)), 0, 0, planning_start, planning_end
    )
    if shared_busy:
        busy_lists.append(shared_busy)

    # 2) Constraints
    constraints = derive_group_constraints(participants, group, planning_start, planning_end, declarations)
    if constraints is None:
        return _empty(NoSuggestionReason.UNSATISFIABLE_CONSTRAINTS)

    # 3) Common free time and admissible windows
    common_free = resolve_common_free(busy_lists, planning_start, planning_end)
    if not common_free:
        return _empty(NoSuggestionReason.NO_COMMON_FREE_TIME, constraints)

    day_groups = build_day_windows(
        planning_start, planning_end, constraints.allowed_windows, constraints.time_zone, provider
    )
    eligible = eligible_day_groups(common_free, day_groups)
    if not eligible:
        return _empty(NoSuggestionReason.NO_ELIGIBLE_WINDOWS, constraints)

    # 4) Candidates, then trimming and quotas
    seed_key = str(seed_key or "")
    candidates = generate_candidates(eligible, constraints, seed_key)
    slots = select_suggestions(
        candidates,
        constraints,
        max(1, _as_int(max_suggestions, DEFAULT_MAX_SUGGESTIONS)),
        seed_key,
        now_ts,
        provider,
    ) if candidates else []
    if not slots:
        return _empty(NoSuggestionReason.NO_CANDIDATES, constraints)

    return SuggestionResult(slots=slots, constraints=constraints)


def suggestions_frame(result: SuggestionResult) -> pd.DataFrame:
    """Suggestions as a dataframe with columns: id, start, end, duration_minutes"""
    rows = [{
        "id": s.id,
        "start": s.start,
        "end": s.end,
        "duration_minutes": int((s.end - s.start).total_seconds() // 60),
    } for s in result.slots]
    if not rows:
        return pd.DataFrame(columns=["id", "start", "end", "duration_minutes"])
    return pd.DataFrame(rows).sort_values("start").reset_index(drop=True)
