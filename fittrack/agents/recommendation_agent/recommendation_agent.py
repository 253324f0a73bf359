"""
RecommendationAgent - AI 코칭 추천 생성

건강 지표/운동 기록 컨텍스트로 프롬프트를 구성하여 AI 게이트웨이
(OpenAI 호환 chat completions)를 호출하고, 생성된 텍스트를
ai_recommendations 행으로 저장합니다.

- 요청당 1회 업스트림 호출, 재시도/스트리밍 없음
- 추천 행은 업스트림 호출이 성공한 경우에만 저장
- 저장 실패는 생성된 텍스트와 함께 호출자에게 보고
"""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import httpx

from ...config.settings import Settings
from ...core.errors import (
    ConfigurationError, PayloadValidationError, PersistenceError,
    UpstreamBillingError, UpstreamGenericError, UpstreamQuotaError
)
from ...database.sqlite import SQLite, utcnow
from .prompts import RECOMMENDATION_TYPES, build_prompt, is_known_type

logger = logging.getLogger(__name__)


class RecommendationAgent:
    """AI 추천 생성 에이전트 - 설정/저장소/전송 계층은 생성 시 주입"""

    def __init__(self, settings: Settings, db: SQLite,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.db = db
        self._transport = transport
        self.llm_available = bool(settings.AI_GATEWAY_API_KEY)
        if not self.llm_available:
            logger.warning("AI_GATEWAY_API_KEY가 설정되지 않아 AI 추천 기능을 사용할 수 없습니다.")

    async def generate_recommendation(self, user_id: int, recommendation_type: Any,
                                      health_data: Any, workout_history: Any) -> Dict[str, Any]:
        """
        추천 생성 및 저장

        Args:
            user_id: 인증 서비스에서 확인한 호출자 ID
            recommendation_type: meal / workout / health / 그 외 (other로 처리)
            health_data: 건강 지표 레코드 목록 (검증 없이 그대로 사용)
            workout_history: 운동 기록 목록 (검증 없이 그대로 사용)

        Returns:
            저장된 ai_recommendations 행
        """
        if self.settings.STRICT_RECOMMENDATION_TYPES and not is_known_type(recommendation_type):
            raise PayloadValidationError(
                f"Unsupported recommendation type. Expected one of: {', '.join(RECOMMENDATION_TYPES)}",
                status_code=400
            )

        if not self.settings.AI_GATEWAY_API_KEY:
            raise ConfigurationError("AI_GATEWAY_API_KEY not configured")

        template, system_prompt, user_prompt = build_prompt(recommendation_type, health_data, workout_history)
        logger.info(f"🧠 사용자 {user_id} 추천 생성 시작 (type={template.recommendation_type})")

        description = await self._request_completion(system_prompt, user_prompt)

        now = utcnow()
        try:
            saved = self.db.create_ai_recommendation(
                user_id=user_id,
                recommendation_type=template.recommendation_type,
                title=template.title,
                description=description,
                data={"healthData": health_data, "workoutHistory": workout_history},
                created_at=now,
                expires_at=now + timedelta(days=self.settings.RECOMMENDATION_TTL_DAYS),
            )
        except PersistenceError as e:
            logger.error(f"추천 저장 실패 (user_id={user_id}): {e.message}")
            raise PersistenceError(e.message, extra={"description": description}) from e

        logger.info(f"✅ 사용자 {user_id} 추천 저장 완료: id={saved['id']}")
        return saved

    async def _request_completion(self, system_prompt: str, user_prompt: str) -> str:
        """AI 게이트웨이 호출 후 첫 번째 completion 텍스트 반환"""
        body = {
            "model": self.settings.AI_MODEL,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        headers = {
            "Authorization": f"Bearer {self.settings.AI_GATEWAY_API_KEY}",
            "Content-Type": "application/json",
        }

        # 클라이언트 타임아웃 없음 (전송 계층 기본값만 적용)
        async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
            try:
                response = await client.post(self.settings.AI_GATEWAY_URL, json=body, headers=headers)
            except httpx.HTTPError as e:
                logger.error(f"AI gateway 연결 오류: {e}")
                raise UpstreamGenericError() from e

        if response.status_code == 429:
            logger.warning("AI gateway 요청 한도 초과 (429)")
            raise UpstreamQuotaError()
        if response.status_code == 402:
            logger.warning("AI gateway 크레딧 부족 (402)")
            raise UpstreamBillingError()
        if not response.is_success:
            logger.error(f"AI gateway error: {response.status_code} {response.text}")
            raise UpstreamGenericError()

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"AI gateway 응답 형식 오류: {e} - {response.text[:500]}")
            raise UpstreamGenericError() from e

        if not isinstance(content, str):
            logger.error(f"AI gateway 응답 content가 문자열이 아님: {type(content).__name__}")
            raise UpstreamGenericError()
        return content
