# famtime/selector.py
import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Set

import pandas as pd

from .models import (CandidateSlot, EVENING_CUTOFF_HOUR, GroupConstraints, MIDDAY_HOUR,
                     Suggestion)
from .seeded import SeededSequence
from .timezones import TimeZoneOffsetProvider
from .weekdays import is_work_day

logger = logging.getLogger(__name__)


def _group_by_day(candidates: List[CandidateSlot]) -> "OrderedDict[str, List[CandidateSlot]]":
    groups: "OrderedDict[str, List[CandidateSlot]]" = OrderedDict()
    for candidate in candidates:
        groups.setdefault(candidate.day_id, []).append(candidate)
    return groups


def _is_weekday_group(slots: List[CandidateSlot]) -> bool:
    return is_work_day(slots[0].day_key)


def trim_day_groups(candidates: List[CandidateSlot],
                    limit: int,
                    has_weekday_preference: bool,
                    rng: SeededSequence) -> List[CandidateSlot]:
    """
    Drop whole days until at most 2x `limit` candidates remain.

    Weekend days go first, by seeded draw; weekdays are drawn only once no
    weekend day is left. If that empties the weekdays while a weekday is
    wanted, the earliest removed weekday comes back.
    """
    groups = _group_by_day(candidates)
    budget = 2 * limit
    total = len(candidates)
    if total <= budget:
        return list(candidates)

    removed_weekdays: List[str] = []
    removed: Dict[str, List[CandidateSlot]] = {}
    while total > budget and groups:
        pool = [day_id for day_id, slots in groups.items() if not _is_weekday_group(slots)]
        if not pool:
            pool = list(groups)
        day_id = rng.choice(pool)
        removed[day_id] = groups.pop(day_id)
        total -= len(removed[day_id])
        if _is_weekday_group(removed[day_id]):
            removed_weekdays.append(day_id)

    kept_weekday = any(_is_weekday_group(slots) for slots in groups.values())
    if has_weekday_preference and not kept_weekday and removed_weekdays:
        restore_id = min(removed_weekdays, key=lambda d: removed[d][0].start)
        restore = removed[restore_id]
        if total + len(restore) > budget:
            weekend_ids = [d for d, slots in groups.items() if not _is_weekday_group(slots)]
            if weekend_ids:
                groups.pop(rng.choice(weekend_ids))
        groups[restore_id] = restore
        logger.debug("Restored weekday %s after trimming", restore_id)

    kept = [slot for slots in groups.values() for slot in slots]
    return sorted(kept, key=lambda c: (c.start, c.end))


def filter_same_day(candidates: List[CandidateSlot],
                    now: pd.Timestamp,
                    time_zone: str,
                    provider: TimeZoneOffsetProvider) -> List[CandidateSlot]:
    """Drop past slots, and same-day slots unless it is afternoon and they start at 17:00 or later."""
    local_now = provider.to_local(now, time_zone)
    result = []
    for candidate in candidates:
        if candidate.start < now:
            continue
        local_start = provider.to_local(candidate.start, time_zone)
        if local_start.date() == local_now.date():
            if not (local_now.hour >= MIDDAY_HOUR and local_start.hour >= EVENING_CUTOFF_HOUR):
                continue
        result.append(candidate)
    return result


def limit_days_per_week(candidates: List[CandidateSlot], max_days: Optional[int]) -> List[CandidateSlot]:
    if not max_days or max_days <= 0 or max_days >= 7:
        return list(candidates)

    used: Dict[str, Set[str]] = {}
    result = []
    for candidate in candidates:
        days = used.setdefault(candidate.week_key, set())
        if candidate.day_id in days or len(days) < max_days:
            days.add(candidate.day_id)
            result.append(candidate)
    return result


def ensure_weekday(selected: List[CandidateSlot],
                   pools: List[List[CandidateSlot]],
                   limit: int,
                   max_days: Optional[int]) -> List[CandidateSlot]:
    """Swap in the earliest available weekday slot when `selected` has none.

    `pools` are searched in order; the first one holding a weekday wins.
    """
    if any(is_work_day(c.day_key) for c in selected):
        return selected

    replacement = None
    for pool in pools:
        weekday_slots = [c for c in pool if is_work_day(c.day_key)]
        if weekday_slots:
            replacement = min(weekday_slots, key=lambda c: c.start)
            break
    if replacement is None:
        return selected

    result = sorted(selected, key=lambda c: c.start)
    if len(result) >= limit:
        result.pop()   # latest weekend slot makes room

    if max_days and 0 < max_days < 7:
        week_days = {c.day_id for c in result if c.week_key == replacement.week_key}
        while len(week_days | {replacement.day_id}) > max_days and week_days:
            latest_day = max(week_days, key=lambda d: max(c.start for c in result if c.day_id == d))
            result = [c for c in result if c.day_id != latest_day]
            week_days.discard(latest_day)

    result.append(replacement)
    return sorted(result, key=lambda c: (c.start, c.end))


def to_suggestions(slots: List[CandidateSlot]) -> List[Suggestion]:
    suggestions = []
    for index, slot in enumerate(slots):
        start_ms = slot.start.value // 1_000_000
        end_ms = slot.end.value // 1_000_000
        suggestions.append(Suggestion(id=f"{start_ms}-{end_ms}-{index}", start=slot.start, end=slot.end))
    return suggestions


def select_suggestions(candidates: List[CandidateSlot],
                       constraints: GroupConstraints,
                       max_suggestions: int,
                       seed_key: str,
                       now: pd.Timestamp,
                       provider: TimeZoneOffsetProvider) -> List[Suggestion]:
    limit = max(1, int(max_suggestions))
    rng = SeededSequence.from_key(seed_key, "trim")

    trimmed = trim_day_groups(candidates, limit, constraints.has_weekday_preference, rng)
    upcoming = filter_same_day(trimmed, now, constraints.time_zone, provider)
    within_quota = limit_days_per_week(upcoming, constraints.max_suggestion_days_per_week)

    selected = within_quota[:limit]
    if constraints.has_weekday_preference:
        selected = ensure_weekday(
            selected,
            [
                within_quota,
                upcoming,
                filter_same_day(candidates, now, constraints.time_zone, provider),
            ],
            limit,
            constraints.max_suggestion_days_per_week,
        )
    return to_suggestions(selected)
