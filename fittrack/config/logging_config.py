"""
로깅 설정

setup_logging은 여러 번 호출할 수 있습니다. 호출할 때마다 이 모듈이 붙인
핸들러만 교체하고 로그 레벨을 다시 적용하므로, 다른 곳에서 붙인 핸들러
(uvicorn, pytest 등)는 그대로 둡니다.
"""
import logging
import logging.handlers
from pathlib import Path
from typing import List, Optional

from .settings import Settings, settings as default_settings

CONSOLE_HANDLER_NAME = "fittrack.console"
FILE_HANDLER_NAME = "fittrack.file"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

APP_LOGGERS = ['fittrack', 'uvicorn', 'uvicorn.error', 'uvicorn.access', 'fastapi']
QUIET_LOGGERS = ['httpx', 'httpcore', 'apscheduler', 'passlib']


def _resolve_log_file(settings: Settings) -> Optional[Path]:
    if not (settings.ENABLE_FILE_LOG and settings.LOG_FILE_PATH):
        return None
    path = Path(settings.LOG_FILE_PATH)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path.resolve()


def _build_handlers(settings: Settings, level: int) -> List[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: List[logging.Handler] = []

    log_file = _resolve_log_file(settings)
    if log_file is not None:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                str(log_file),
                maxBytes=settings.LOG_MAX_SIZE,
                backupCount=settings.LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.set_name(FILE_HANDLER_NAME)
            handlers.append(file_handler)
        except OSError as e:
            logging.getLogger(__name__).warning(f"로그 파일을 열 수 없음 ({log_file}): {e}")

    console_handler = logging.StreamHandler()
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    handlers.append(console_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(settings: Optional[Settings] = None):
    """설정값으로 로깅 구성 (재호출 시 레벨/핸들러 갱신)"""
    settings = settings or default_settings
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if handler.get_name() in (CONSOLE_HANDLER_NAME, FILE_HANDLER_NAME):
            root_logger.removeHandler(handler)
            handler.close()

    root_logger.setLevel(level)
    for handler in _build_handlers(settings, level):
        root_logger.addHandler(handler)

    for name in APP_LOGGERS:
        logging.getLogger(name).setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"📊 로그 레벨 {settings.LOG_LEVEL} 적용")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
