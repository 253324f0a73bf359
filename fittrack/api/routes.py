"""
데이터 저장소 서비스 API

모든 엔드포인트는 Bearer 토큰으로 식별한 호출자의 행만 다룹니다.
타인의 행은 404로 응답합니다.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from ..core.errors import NotFoundError
from ..core.progress import summarize_dashboard, summarize_progress
from ..database.sqlite import SQLite
from .auth_routes import get_current_user_id, get_db
from .schemas import HealthMetricIn, HealthSyncRequest, NutritionCreate, WorkoutCreate

logger = logging.getLogger(__name__)

router = APIRouter()

RECENT_CONTEXT_LIMIT = 5
DASHBOARD_METRIC_LIMIT = 10


@router.get("/health")
async def health_check(request: Request):
    """헬스 체크"""
    settings = request.app.state.settings
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "ai_gateway_configured": bool(settings.AI_GATEWAY_API_KEY),
    }


# ============================================================================
# 운동 기록
# ============================================================================

@router.post("/workouts", status_code=201)
async def create_workout(
    workout: WorkoutCreate,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    """운동 기록과 운동 항목 저장"""
    saved = db.create_workout(
        user_id=user_id,
        title=(workout.title or "").strip() or "Workout Session",
        notes=workout.notes,
        duration_minutes=workout.duration_minutes,
        calories_burned=workout.calories_burned,
        completed_at=workout.completed_at,
        exercises=[ex.model_dump() for ex in workout.exercises],
    )
    logger.info(f"🏋️ 운동 기록 저장: user_id={user_id}, workout_id={saved['id']}")
    return {"workout": saved}


@router.get("/workouts")
async def list_workouts(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    order: str = Query(default="desc", pattern="^(asc|desc)$"),
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    workouts = db.list_workouts(user_id, limit=limit, ascending=(order == "asc"))
    return {"workouts": workouts}


@router.get("/workouts/{workout_id}")
async def get_workout(
    workout_id: int,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    workout = db.get_workout(user_id, workout_id)
    if not workout:
        raise NotFoundError("Workout not found")
    return {"workout": workout}


# ============================================================================
# 식단 기록
# ============================================================================

@router.post("/nutrition", status_code=201)
async def create_nutrition_log(
    entry: NutritionCreate,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    """식단 기록 저장 (합계는 서버에서 계산)"""
    saved = db.create_nutrition_log(
        user_id=user_id,
        date=(entry.date or date.today()).isoformat(),
        notes=entry.notes,
        meals=[meal.model_dump() for meal in entry.meals],
    )
    logger.info(f"🥗 식단 기록 저장: user_id={user_id}, nutrition_id={saved['id']}")
    return {"nutrition": saved}


@router.get("/nutrition")
async def list_nutrition_logs(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    return {"nutrition": db.list_nutrition_logs(user_id, limit=limit)}


@router.get("/nutrition/{nutrition_id}")
async def get_nutrition_log(
    nutrition_id: int,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    entry = db.get_nutrition_log(user_id, nutrition_id)
    if not entry:
        raise NotFoundError("Nutrition log not found")
    return {"nutrition": entry}


# ============================================================================
# 건강 지표
# ============================================================================

@router.post("/health-metrics", status_code=201)
async def create_health_metric(
    metric: HealthMetricIn,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    saved = db.insert_health_metrics(user_id, [metric.model_dump()])
    return {"metric": saved[0]}


@router.post("/health-metrics/sync", status_code=201)
async def sync_health_metrics(
    payload: HealthSyncRequest,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    """
    기기 건강 데이터 동기화

    네이티브 헬스 연동이 수집한 지표를 일괄 저장합니다.
    중복 판정이나 병합은 하지 않습니다.
    """
    saved = db.insert_health_metrics(
        user_id, [metric.model_dump() for metric in payload.metrics], source=payload.source
    )
    logger.info(f"❤️ 건강 지표 동기화: user_id={user_id}, source={payload.source}, count={len(saved)}")
    return {"synced": len(saved), "metrics": saved}


@router.get("/health-metrics")
async def list_health_metrics(
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    metric_type: Optional[str] = None,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    return {"metrics": db.list_health_metrics(user_id, limit=limit, metric_type=metric_type)}


# ============================================================================
# AI 추천 (조회 전용 - 생성은 /functions/v1/ai-recommendations)
# ============================================================================

@router.get("/recommendations")
async def list_recommendations(
    request: Request,
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    include_expired: bool = False,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    """최신 AI 추천 목록 (기본: 만료되지 않은 최근 10개)"""
    limit = limit or request.app.state.settings.RECOMMENDATION_LIST_LIMIT
    recommendations = db.list_ai_recommendations(user_id, limit=limit, include_expired=include_expired)
    return {"recommendations": recommendations}


@router.get("/recommendations/context")
async def get_recommendation_context(
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
) -> Dict[str, Any]:
    """추천 요청에 사용할 컨텍스트 (최근 건강 지표 5개, 최근 운동 5개)"""
    return {
        "healthData": db.list_health_metrics(user_id, limit=RECENT_CONTEXT_LIMIT),
        "workoutHistory": db.list_workouts(user_id, limit=RECENT_CONTEXT_LIMIT),
    }


@router.get("/recommendations/{recommendation_id}")
async def get_recommendation(
    recommendation_id: int,
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    recommendation = db.get_ai_recommendation(user_id, recommendation_id)
    if not recommendation:
        raise NotFoundError("Recommendation not found")
    return {"recommendation": recommendation}


# ============================================================================
# 진행 상황 / 대시보드
# ============================================================================

@router.get("/progress")
async def get_progress(
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    """전체 운동 기록 요약과 차트 데이터"""
    workouts = db.list_workouts(user_id, ascending=True)
    return summarize_progress(workouts)


@router.get("/dashboard/summary")
async def get_dashboard_summary(
    user_id: int = Depends(get_current_user_id),
    db: SQLite = Depends(get_db),
):
    """홈 화면 요약 (최근 운동 5개, 최근 건강 지표 10개 기준)"""
    recent_workouts = db.list_workouts(user_id, limit=RECENT_CONTEXT_LIMIT)
    recent_metrics = db.list_health_metrics(user_id, limit=DASHBOARD_METRIC_LIMIT)
    return summarize_dashboard(recent_workouts, recent_metrics)
