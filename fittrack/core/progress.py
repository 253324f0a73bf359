"""
진행 상황/대시보드 요약 계산 (표시용 합계)
"""
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

RADAR_METRICS = ["heart_rate", "sleep_hours", "steps", "stress_level", "hydration"]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def metric_label(metric_type: str) -> str:
    """'sleep_hours' -> 'Sleep Hours'"""
    return " ".join(word.capitalize() for word in metric_type.split("_"))


def summarize_progress(workouts: List[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    전체 운동 기록 요약

    Args:
        workouts: completed_at 오름차순 운동 기록
        now: 이번 달 판정 기준 시각 (기본: 현재 UTC)
    """
    now = now or datetime.now(timezone.utc)
    total_workouts = len(workouts)
    total_calories = sum(w.get("calories_burned") or 0 for w in workouts)
    total_minutes = sum(w.get("duration_minutes") or 0 for w in workouts)

    this_month = 0
    chart = []
    for workout in workouts:
        completed = _parse_timestamp(workout["completed_at"])
        if completed.year == now.year and completed.month == now.month:
            this_month += 1
        chart.append({
            "date": completed.date().isoformat(),
            "calories": workout.get("calories_burned") or 0,
            "duration": workout.get("duration_minutes") or 0,
        })

    return {
        "total_workouts": total_workouts,
        "total_calories": total_calories,
        "avg_calories": _round_half_up(total_calories / total_workouts) if total_workouts else 0,
        "total_minutes": total_minutes,
        "this_month": this_month,
        "chart": chart,
    }


def summarize_dashboard(recent_workouts: List[Dict[str, Any]],
                        recent_metrics: List[Dict[str, Any]]) -> Dict[str, Any]:
    """홈 화면 요약 - 최근 운동 기록과 최근 건강 지표 기준"""
    heart_rate = next(
        (m["value"] for m in recent_metrics if m.get("metric_type") == "heart_rate"),
        None
    )
    radar = [
        {"metric": metric_label(m["metric_type"]), "value": float(m["value"])}
        for m in recent_metrics
        if m.get("metric_type") in RADAR_METRICS
    ]
    return {
        "workouts_count": len(recent_workouts),
        "calories_burned": sum(w.get("calories_burned") or 0 for w in recent_workouts),
        "active_minutes": sum(w.get("duration_minutes") or 0 for w in recent_workouts),
        "heart_rate_latest": heart_rate,
        "radar": radar,
        "recent_workouts": recent_workouts,
    }
