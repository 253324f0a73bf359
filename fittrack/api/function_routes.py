"""
AI 추천 함수 엔드포인트 (/functions/v1/ai-recommendations)

상태 없는 단일 요청 핸들러:
본문 파싱 -> 호출자 식별 -> 프롬프트 선택 -> AI 게이트웨이 호출 -> 저장 -> 응답
"""
import json
import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from ..core.errors import CORS_HEADERS, FitTrackError, PayloadValidationError
from .auth_routes import resolve_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/functions/v1", tags=["Functions"])


def _reject_constant(name: str):
    """NaN/Infinity는 JSON 값이 아님"""
    raise ValueError(f"Invalid JSON constant: {name}")


@router.options("/ai-recommendations")
async def ai_recommendations_preflight():
    """CORS preflight - 본문 없이 허용 헤더만 반환"""
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/ai-recommendations")
async def ai_recommendations(request: Request):
    """
    AI 추천 생성

    요청 본문: {"type": str, "healthData": list, "workoutHistory": list}
    헤더: Authorization: Bearer <token>

    Returns:
        200 {"recommendation": <저장된 행>}
        그 외 {"error": <message>} 와 상태 코드 (401 / 429 / 402 / 500)
    """
    settings = request.app.state.settings
    db = request.app.state.db
    agent = request.app.state.recommendation_agent

    try:
        try:
            payload = json.loads(await request.body(), parse_constant=_reject_constant)
        except ValueError as e:
            raise PayloadValidationError("Invalid JSON body") from e
        if not isinstance(payload, dict):
            raise PayloadValidationError("Request body must be a JSON object")

        user = resolve_user(request.headers.get("Authorization"), db, settings)

        saved = await agent.generate_recommendation(
            user_id=user["user_id"],
            recommendation_type=payload.get("type"),
            health_data=payload.get("healthData"),
            workout_history=payload.get("workoutHistory"),
        )
    except FitTrackError:
        raise
    except Exception as e:
        logger.error(f"Error in ai-recommendations: {e}", exc_info=True)
        raise FitTrackError(str(e) or "Unknown error") from e

    return JSONResponse(content={"recommendation": saved}, headers=CORS_HEADERS)
