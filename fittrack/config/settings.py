import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic_settings import BaseSettings

logger = logging.getLogger("fittrack.config.settings")

BASE_DIR = Path(__file__).resolve().parents[2]  # 프로젝트 루트
dotenv_path = find_dotenv(str(BASE_DIR / ".env"), raise_error_if_not_found=False)
if dotenv_path:
    load_dotenv(dotenv_path)
else:
    logger.warning("프로젝트 루트에서 .env 파일을 찾지 못했습니다. 환경 변수가 비어있을 수 있습니다.")


class Settings(BaseSettings):
    # API 설정
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # 데이터베이스 설정
    DATABASE_PATH: str = str(BASE_DIR / "db" / "fittrack.db")

    # AI 게이트웨이 설정 (OpenAI 호환 chat completions)
    AI_GATEWAY_URL: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    AI_GATEWAY_API_KEY: Optional[str] = os.getenv("AI_GATEWAY_API_KEY")
    AI_MODEL: str = "google/gemini-2.5-flash"

    # 추천 설정
    RECOMMENDATION_TTL_DAYS: int = 7
    RECOMMENDATION_LIST_LIMIT: int = 10
    STRICT_RECOMMENDATION_TYPES: bool = False  # True면 알 수 없는 type을 400으로 거부
    EXPIRED_PURGE_INTERVAL_MINUTES: int = 60  # 0이면 만료 추천 정리 작업 비활성화

    # 로깅 설정
    LOG_LEVEL: str = "INFO"
    ENABLE_FILE_LOG: bool = False
    LOG_FILE_PATH: str = ""
    LOG_MAX_SIZE: int = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT: int = 5

    # JWT 설정
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-this-in-production")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24

    class Config:
        env_file = BASE_DIR / ".env"
        extra = "ignore"  # 정의되지 않은 환경 변수 무시


settings = Settings()

if not settings.AI_GATEWAY_API_KEY:
    logger.warning("AI_GATEWAY_API_KEY가 설정되지 않았습니다. AI 추천 기능이 제한됩니다.")
