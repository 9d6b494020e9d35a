# demo.py
import logging

import matplotlib.pyplot as plt
import pandas as pd

from famtime.busy import build_event_busy_intervals
from famtime.suggestions import compute_suggestions, suggestions_frame


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    TZ = "Europe/Copenhagen"

    period_start = pd.Timestamp("2025-11-03 08:00").tz_localize(TZ)
    period_end = period_start + pd.Timedelta(days=21)

    calendars = [
        {
            "userId": "anna",
            "busy": [
                {"start": pd.Timestamp("2025-11-04 17:00").tz_localize(TZ),
                 "end": pd.Timestamp("2025-11-04 19:00").tz_localize(TZ)},
                {"start": pd.Timestamp("2025-11-08 10:00").tz_localize(TZ),
                 "end": pd.Timestamp("2025-11-08 13:30").tz_localize(TZ)},
            ],
        },
        {
            "userId": "bo",
            "busy": [
                {"start": pd.Timestamp("2025-11-05 16:00").tz_localize(TZ),
                 "end": pd.Timestamp("2025-11-05 20:00").tz_localize(TZ)},
            ],
        },
    ]

    user_preferences = {
        "anna": {
            "allowedWeekdays": ["tirsdag", "torsdag", "lørdag", "søndag"],
            "timeWindows": {"default": ["17:00-21:00"], "saturday": ["10:00-18:00"]},
            "bufferBeforeMinutes": 15,
            "bufferAfterMinutes": 15,
            "maxSuggestionDaysPerWeek": 3,
        },
        "bo": {
            "minDurationMinutes": 60,
            "maxDurationMinutes": 240,
            "timeZone": TZ,
        },
    }

    shared_events = [
        {
            "start": pd.Timestamp("2025-11-09 12:00").tz_localize(TZ),
            "end": pd.Timestamp("2025-11-09 15:00").tz_localize(TZ),
            "pendingChange": {
                "start": pd.Timestamp("2025-11-16 12:00").tz_localize(TZ),
                "end": pd.Timestamp("2025-11-16 15:00").tz_localize(TZ),
            },
        },
    ]

    result = compute_suggestions(
        calendars=calendars,
        period_start=period_start,
        period_end=period_end,
        user_preferences=user_preferences,
        global_busy_intervals=build_event_busy_intervals(shared_events),
        max_suggestions=6,
        seed_key="family-demo",
    )

    print("=== Suggestions ===")
    if not result.slots:
        print(f"Nothing to suggest ({result.reason})")
        return

    df = suggestions_frame(result)
    df["start"] = df["start"].dt.tz_convert(TZ)
    df["end"] = df["end"].dt.tz_convert(TZ)
    print(df)

    c = result.constraints
    print(f"\nDays: {', '.join(c.allowed_weekdays)}  "
          f"duration: {c.min_duration_minutes}-{c.max_duration_minutes} min  "
          f"zone: {c.time_zone}")

    # Plot suggestions per day
    plt.figure(figsize=(10, 3))
    days = df["start"].dt.strftime("%a %d/%m")
    starts = df["start"].dt.hour + df["start"].dt.minute / 60
    plt.barh(days, df["duration_minutes"] / 60, left=starts)
    plt.title("Suggested Slots")
    plt.xlabel("Hour of day")
    plt.xlim(6, 24)
    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
