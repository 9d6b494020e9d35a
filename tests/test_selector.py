# tests/test_selector.py
import pandas as pd

from famtime.seeded import SeededSequence
from famtime.selector import (ensure_weekday, filter_same_day, limit_days_per_week, select_suggestions,
                              to_suggestions, trim_day_groups)


def ts(text):
    return pd.Timestamp(text, tz="UTC")


def test_weekly_quota_keeps_earliest_days(make_slot):
    candidates = [
        make_slot("2025-11-03", 18),
        make_slot("2025-11-04", 18),
        make_slot("2025-11-05", 18),
        make_slot("2025-11-10", 18),
        make_slot("2025-11-11", 18),
    ]
    kept = limit_days_per_week(candidates, 1)
    assert [c.day_id for c in kept] == ["2025-11-03-Mon", "2025-11-10-Mon"]


def test_weekly_quota_admits_more_slots_on_a_used_day(make_slot):
    candidates = [
        make_slot("2025-11-08", 10, 120),
        make_slot("2025-11-08", 18, 120),
        make_slot("2025-11-09", 10, 120),
    ]
    kept = limit_days_per_week(candidates, 1)
    assert [c.start.hour for c in kept] == [10, 18]
    assert {c.day_id for c in kept} == {"2025-11-08-Sat"}


def test_weekly_quota_disabled(make_slot):
    candidates = [make_slot("2025-11-03", 18), make_slot("2025-11-04", 18)]
    assert limit_days_per_week(candidates, None) == candidates
    assert limit_days_per_week(candidates, 0) == candidates
    assert limit_days_per_week(candidates, 7) == candidates


def test_same_day_slots_dropped_before_midday(make_slot, utc_provider):
    candidates = [make_slot("2025-11-03", 9), make_slot("2025-11-03", 18), make_slot("2025-11-04", 18)]
    kept = filter_same_day(candidates, ts("2025-11-03 10:00"), "UTC", utc_provider)
    assert [c.day_id for c in kept] == ["2025-11-04-Tue"]


def test_same_day_evening_slots_survive_in_the_afternoon(make_slot, utc_provider):
    candidates = [make_slot("2025-11-03", 14), make_slot("2025-11-03", 18), make_slot("2025-11-04", 18)]
    kept = filter_same_day(candidates, ts("2025-11-03 13:00"), "UTC", utc_provider)
    assert [(c.day_id, c.start.hour) for c in kept] == [("2025-11-03-Mon", 18), ("2025-11-04-Tue", 18)]


def test_trim_is_noop_within_budget(make_slot):
    candidates = [make_slot("2025-11-04", 18), make_slot("2025-11-08", 10)]
    assert trim_day_groups(candidates, 1, True, SeededSequence.from_key("trim")) == candidates


def test_trim_drops_weekend_days_before_weekdays(make_slot):
    weekdays = [make_slot(day, 18) for day in ("2025-11-03", "2025-11-04", "2025-11-05", "2025-11-06")]
    candidates = weekdays + [make_slot("2025-11-08", 10, 120)]

    assert trim_day_groups(candidates, 2, True, SeededSequence.from_key("trim")) == weekdays


def test_trim_takes_every_weekend_day_even_when_weekdays_outnumber(make_slot):
    weekdays = [make_slot(day, 18) for day in ("2025-11-03", "2025-11-04", "2025-11-05", "2025-11-06")]
    weekend = [make_slot("2025-11-08", 10, 120), make_slot("2025-11-09", 10, 120)]

    kept = trim_day_groups(weekdays + weekend, 1, False, SeededSequence.from_key("trim"))
    assert len(kept) == 2
    assert all(slot.day_key in ("Mon", "Tue", "Wed", "Thu") for slot in kept)


def test_trim_restores_a_weekday_when_all_were_removed(make_slot):
    monday = [make_slot("2025-11-03", 16), make_slot("2025-11-03", 18), make_slot("2025-11-03", 20)]
    saturday = make_slot("2025-11-08", 10, 120)
    candidates = monday + [saturday]

    assert trim_day_groups(candidates, 1, False, SeededSequence.from_key("trim")) == []
    assert trim_day_groups(candidates, 1, True, SeededSequence.from_key("trim")) == monday


def test_ensure_weekday_swaps_out_latest_weekend_slot(make_slot):
    saturday = make_slot("2025-11-08", 10, 120)
    sunday = make_slot("2025-11-09", 10, 120)
    tuesday = make_slot("2025-11-11", 18)

    assert ensure_weekday([saturday, sunday], [[], [tuesday]], 2, None) == [saturday, tuesday]
    assert ensure_weekday([saturday, sunday], [[tuesday]], 3, None) == [saturday, sunday, tuesday]


def test_ensure_weekday_respects_weekly_quota(make_slot):
    saturday = make_slot("2025-11-08", 10, 120)
    tuesday = make_slot("2025-11-04", 18)
    assert ensure_weekday([saturday], [[tuesday]], 3, 1) == [tuesday]


def test_ensure_weekday_leaves_selection_with_weekday(make_slot):
    selected = [make_slot("2025-11-04", 18), make_slot("2025-11-08", 10, 120)]
    assert ensure_weekday(selected, [[make_slot("2025-11-03", 18)]], 2, None) == selected


def test_ensure_weekday_without_replacement(make_slot):
    selected = [make_slot("2025-11-08", 10, 120)]
    assert ensure_weekday(selected, [[], [make_slot("2025-11-09", 10, 120)]], 1, None) == selected


def test_suggestion_ids(make_slot):
    slot = make_slot("2025-11-04", 18)
    start_ms = int(slot.start.timestamp() * 1000)
    end_ms = int(slot.end.timestamp() * 1000)

    suggestions = to_suggestions([slot])
    assert suggestions[0].id == f"{start_ms}-{end_ms}-0"
    assert suggestions[0].start == slot.start and suggestions[0].end == slot.end


def test_one_day_per_week_quota(make_slot, make_constraints, utc_provider):
    candidates = [make_slot(day, 18) for day in ("2025-11-03", "2025-11-04", "2025-11-05", "2025-11-06")]
    constraints = make_constraints(max_suggestion_days_per_week=1)

    suggestions = select_suggestions(candidates, constraints, 12, "family", ts("2025-11-02 00:00"), utc_provider)
    assert len(suggestions) == 1
    assert suggestions[0].start == ts("2025-11-03 18:00")


def test_selection_truncates_and_stays_sorted(make_slot, make_constraints, utc_provider):
    days = ["2025-11-04", "2025-11-05", "2025-11-06", "2025-11-07", "2025-11-08"]
    candidates = [make_slot(day, 18) for day in days]
    constraints = make_constraints()

    suggestions = select_suggestions(candidates, constraints, 3, "family", ts("2025-11-03 00:00"), utc_provider)
    assert len(suggestions) == 3
    starts = [s.start for s in suggestions]
    assert starts == sorted(starts)


def test_selection_pulls_in_a_weekday(make_slot, make_constraints, utc_provider):
    candidates = [
        make_slot("2025-11-07", 18, 120),
        make_slot("2025-11-08", 10, 120),
        make_slot("2025-11-11", 18),
    ]
    constraints = make_constraints()

    suggestions = select_suggestions(candidates, constraints, 2, "family", ts("2025-11-03 00:00"), utc_provider)
    assert [s.start for s in suggestions] == [ts("2025-11-07 18:00"), ts("2025-11-11 18:00")]


def test_weekday_guarantee_keeps_the_same_day_rule(make_slot, make_constraints, utc_provider):
    # the only weekday slot is this afternoon before 17:00
    candidates = [make_slot("2025-11-03", 16), make_slot("2025-11-08", 10, 120)]
    constraints = make_constraints()

    suggestions = select_suggestions(candidates, constraints, 2, "family", ts("2025-11-03 13:00"), utc_provider)
    assert [s.start for s in suggestions] == [ts("2025-11-08 10:00")]
