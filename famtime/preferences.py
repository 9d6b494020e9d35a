# famtime/preferences.py
"""
Turning stored preference documents into PreferenceRecords.

Everything that used to be an optional-field fallback chain lives here, so
the rest of the engine only ever sees fully built records.
"""
import logging
import math
from collections.abc import Mapping
from dataclasses import fields
from enum import Enum
from typing import Any, Dict, Optional, Set

from .models import PreferenceRecord
from .weekdays import normalize_weekday_list

logger = logging.getLogger(__name__)

FIELD_ALIASES = {
    "allowed_weekdays": ("allowed_weekdays", "allowedWeekdays", "allowedDays", "allowed_days", "days"),
    "time_windows": ("time_windows", "timeWindows"),
    "min_duration_minutes": ("min_duration_minutes", "minDurationMinutes"),
    "max_duration_minutes": ("max_duration_minutes", "maxDurationMinutes"),
    "preferred_duration_minutes": ("preferred_duration_minutes", "preferredDurationMinutes"),
    "buffer_before_minutes": ("buffer_before_minutes", "bufferBeforeMinutes"),
    "buffer_after_minutes": ("buffer_after_minutes", "bufferAfterMinutes"),
    "time_zone": ("time_zone", "timeZone"),
    "max_suggestion_days_per_week": ("max_suggestion_days_per_week", "maxSuggestionDaysPerWeek"),
    "slot_step_minutes": ("slot_step_minutes", "slotStepMinutes"),
}
NUMERIC_FIELDS = (
    "min_duration_minutes",
    "max_duration_minutes",
    "preferred_duration_minutes",
    "buffer_before_minutes",
    "buffer_after_minutes",
    "max_suggestion_days_per_week",
    "slot_step_minutes",
)

# camelCase keys as stored in calendar documents
DOCUMENT_KEYS = tuple(aliases[1] for aliases in FIELD_ALIASES.values())
DOCUMENT_SOURCES = ("preferences", "sharedPreferences", "constraints")


def _as_minutes(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return int(value)


def _as_zone(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _read(raw: Any, name: str) -> Any:
    if isinstance(raw, PreferenceRecord):
        return getattr(raw, name)
    if isinstance(raw, Mapping):
        for key in FIELD_ALIASES[name]:
            if raw.get(key) is not None:
                return raw[key]
    return None


def build_preference_record(raw: Any, fallback: Optional[PreferenceRecord] = None) -> PreferenceRecord:
    """
    Build a PreferenceRecord from a mapping (camelCase or snake_case keys) or
    an existing record. Invalid values are dropped; anything left undeclared
    is inherited from `fallback`.
    """
    if isinstance(raw, Mapping) and isinstance(raw.get("preferences"), Mapping):
        raw = raw["preferences"]

    values: Dict[str, Any] = {}
    for name in NUMERIC_FIELDS:
        values[name] = _as_minutes(_read(raw, name))
    values["allowed_weekdays"] = normalize_weekday_list(_read(raw, "allowed_weekdays"))
    values["time_windows"] = _read(raw, "time_windows")
    values["time_zone"] = _as_zone(_read(raw, "time_zone"))

    if fallback is not None:
        for f in fields(PreferenceRecord):
            if values[f.name] is None:
                values[f.name] = getattr(fallback, f.name)

    return PreferenceRecord(**values)


def extract_preferences_from_calendar_doc(doc: Any) -> Dict[str, Any]:
    """Preference keys from a calendar document, nested sources first, then the root."""
    if not isinstance(doc, Mapping):
        return {}

    sources = [doc.get(name) for name in DOCUMENT_SOURCES]
    sources = [source for source in sources if isinstance(source, Mapping)]
    sources.append(doc)

    preferences: Dict[str, Any] = {}
    for key in DOCUMENT_KEYS:
        for source in sources:
            if source.get(key) is not None:
                preferences[key] = source[key]
                break
    return preferences


class PreferenceMode(str, Enum):
    CUSTOM = "custom"
    FOLLOW = "follow"
    NONE = "none"


def normalize_preference_mode(value: Any) -> PreferenceMode:
    if value in (PreferenceMode.FOLLOW, PreferenceMode.FOLLOW.value):
        return PreferenceMode.FOLLOW
    if value in (PreferenceMode.NONE, PreferenceMode.NONE.value):
        return PreferenceMode.NONE
    return PreferenceMode.CUSTOM


def resolve_member_preferences(raw_map: Mapping) -> Dict[str, PreferenceRecord]:
    """
    Resolve every member's effective preferences.

    Entries look like {"mode": "custom"|"follow"|"none", "followUserId": ...,
    "own": {...}}. Followers get a copy of the followed member's resolved
    record; unknown targets, self-follows and cycles resolve to an empty one.
    """
    resolved: Dict[str, PreferenceRecord] = {}

    def resolve(member_id: str, chain: Set[str]) -> PreferenceRecord:
        if member_id in resolved:
            return resolved[member_id]

        entry = raw_map.get(member_id)
        if not isinstance(entry, Mapping):
            record = PreferenceRecord()
        else:
            mode = normalize_preference_mode(entry.get("mode", entry.get("familyPreferenceMode")))
            if mode is PreferenceMode.NONE:
                record = PreferenceRecord()
            elif mode is PreferenceMode.FOLLOW:
                target = entry.get("followUserId", entry.get("follow_user_id"))
                target = target.strip() if isinstance(target, str) else ""
                if target and target != member_id and target in raw_map and target not in chain:
                    record = resolve(target, chain | {member_id})
                else:
                    logger.debug("Member %s follows unusable target %r", member_id, target)
                    record = PreferenceRecord()
            else:
                record = build_preference_record(entry.get("own", entry.get("preferences")))

        resolved[member_id] = record
        return record

    for member_id in raw_map:
        resolve(member_id, set())
    return resolved
