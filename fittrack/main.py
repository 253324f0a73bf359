from contextlib import asynccontextmanager
from typing import Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .agents.recommendation_agent import RecommendationAgent
from .api import auth_router, function_router, router
from .config.logging_config import get_logger, setup_logging
from .config.settings import Settings, settings as default_settings
from .core.errors import register_exception_handlers
from .database.sqlite import SQLite

logger = get_logger(__name__)


def purge_expired_recommendations(db: SQLite):
    """만료된 AI 추천 정리 (주기 작업)"""
    try:
        deleted = db.purge_expired_recommendations()
        if deleted:
            logger.info(f"🧹 만료된 추천 {deleted}개 삭제")
    except Exception as e:
        logger.error(f"만료 추천 정리 중 오류 발생: {e}", exc_info=True)


def create_app(settings: Optional[Settings] = None, db: Optional[SQLite] = None,
               transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    FastAPI 앱 생성

    Args:
        settings: 설정 (기본: 프로세스 환경에서 로드한 설정)
        db: 데이터 저장소 (기본: settings.DATABASE_PATH로 lifespan에서 생성)
        transport: AI 게이트웨이 호출용 httpx 전송 계층 (테스트용 주입)
    """
    settings = settings or default_settings
    setup_logging(settings)

    # -----------------------------------------------------------------------------
    # Lifespan 이벤트 핸들러
    # -----------------------------------------------------------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 FitTrack 백엔드 시작")

        owns_db = db is None
        store = db or SQLite(settings.DATABASE_PATH)
        app.state.db = store
        app.state.recommendation_agent = RecommendationAgent(settings, store, transport=transport)

        scheduler = None
        if settings.EXPIRED_PURGE_INTERVAL_MINUTES > 0:
            scheduler = AsyncIOScheduler()
            scheduler.add_job(
                purge_expired_recommendations,
                'interval',
                minutes=settings.EXPIRED_PURGE_INTERVAL_MINUTES,
                args=[store],
                id='expired_recommendation_purge_job'
            )
            scheduler.start()
            logger.info(f"📅 만료 추천 정리 스케줄러 시작됨 ({settings.EXPIRED_PURGE_INTERVAL_MINUTES}분 간격)")

        app.state.scheduler = scheduler

        logger.info("✅ 시스템이 준비되었습니다!")

        yield

        logger.info("🛑 FitTrack 백엔드 종료")
        if scheduler and scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("📅 스케줄러 종료됨")
        if owns_db:
            store.close()

    app = FastAPI(
        title="FitTrack API",
        description="운동/식단/건강 지표 기록과 AI 코칭 추천",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings

    # CORS 미들웨어 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(router, prefix="/api/v1")
    app.include_router(auth_router)
    app.include_router(function_router)

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return {
            "message": "FitTrack API",
            "version": "1.0.0",
            "status": "running",
            "docs": "/docs",
        }

    return app


app = create_app()


# -----------------------------------------------------------------------------
# 서버 실행
# -----------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn
    logger.info(f"서버 시작: {default_settings.API_HOST}:{default_settings.API_PORT}")
    uvicorn.run(
        "fittrack.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        reload=False,
        log_level=default_settings.LOG_LEVEL.lower(),
    )
