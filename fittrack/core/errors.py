"""
에러 분류 체계

모든 예외는 FitTrackError를 상속하며, 하나의 예외 핸들러가
{"error": <message>, ...extra} JSON 본문과 상태 코드로 변환합니다.
내부에서 재시도하는 에러는 없습니다.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
PAYMENT_REQUIRED_MESSAGE = "Payment required. Please add credits to your AI gateway workspace."
GENERATION_FAILED_MESSAGE = "Failed to generate recommendations"


class FitTrackError(Exception):
    """호출자에게 노출되는 에러의 기본 클래스"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None,
                 extra: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.extra}


class AuthenticationError(FitTrackError):
    """토큰 누락/무효 또는 사용자 식별 실패"""
    status_code = 401
    default_message = "No user found"


class PayloadValidationError(FitTrackError):
    """요청 본문을 해석할 수 없음 (기본 500, strict 모드 type 거부는 400)"""
    status_code = 500
    default_message = "Invalid JSON body"


class ConfigurationError(FitTrackError):
    status_code = 500


class UpstreamQuotaError(FitTrackError):
    status_code = 429
    default_message = RATE_LIMIT_MESSAGE


class UpstreamBillingError(FitTrackError):
    status_code = 402
    default_message = PAYMENT_REQUIRED_MESSAGE


class UpstreamGenericError(FitTrackError):
    """업스트림 비정상 응답 - 상세 내용은 로그에만 남김"""
    status_code = 500
    default_message = GENERATION_FAILED_MESSAGE


class PersistenceError(FitTrackError):
    status_code = 500
    default_message = "Failed to save record"


class NotFoundError(FitTrackError):
    status_code = 404
    default_message = "Not found"


class ConflictError(FitTrackError):
    status_code = 409
    default_message = "Conflict"


async def fittrack_error_handler(request: Request, exc: FitTrackError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"요청 처리 실패 [{request.method} {request.url.path}]: {exc.message}")
    else:
        logger.info(f"요청 거부 [{request.method} {request.url.path}] {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=CORS_HEADERS)


def register_exception_handlers(app: FastAPI):
    """FitTrackError 계열 예외를 JSON 에러 응답으로 변환하는 핸들러 등록"""
    app.add_exception_handler(FitTrackError, fittrack_error_handler)
