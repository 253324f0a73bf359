from datetime import datetime, timezone

from fittrack.core.progress import metric_label, summarize_dashboard, summarize_progress


def _workout(completed_at, calories=0, minutes=0):
    return {"completed_at": completed_at, "calories_burned": calories, "duration_minutes": minutes}


def test_empty_progress():
    summary = summarize_progress([])

    assert summary == {
        "total_workouts": 0,
        "total_calories": 0,
        "avg_calories": 0,
        "total_minutes": 0,
        "this_month": 0,
        "chart": [],
    }


def test_average_rounds_half_up():
    workouts = [
        _workout("2026-10-01T08:00:00+00:00", calories=100),
        _workout("2026-10-02T08:00:00+00:00", calories=201),
    ]

    assert summarize_progress(workouts)["avg_calories"] == 151


def test_this_month_uses_reference_time():
    now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
    workouts = [
        _workout("2026-09-30T23:59:00+00:00"),
        _workout("2026-10-01T00:00:00+00:00"),
        _workout("2026-10-17T09:30:00.123456+00:00"),
        _workout("2025-10-17T09:30:00+00:00"),
    ]

    assert summarize_progress(workouts, now=now)["this_month"] == 2


def test_missing_values_count_as_zero():
    workouts = [{"completed_at": "2026-10-01T08:00:00+00:00", "calories_burned": None, "duration_minutes": None}]

    summary = summarize_progress(workouts)

    assert summary["total_calories"] == 0
    assert summary["chart"] == [{"date": "2026-10-01", "calories": 0, "duration": 0}]


def test_dashboard_without_heart_rate():
    summary = summarize_dashboard([], [{"metric_type": "steps", "value": 1000}])

    assert summary["heart_rate_latest"] is None
    assert summary["radar"] == [{"metric": "Steps", "value": 1000.0}]


def test_metric_label():
    assert metric_label("heart_rate") == "Heart Rate"
    assert metric_label("hydration") == "Hydration"
