# roprojection/core/logger.py
import sys

from loguru import logger

from roprojection.core.config import settings


def setup_logging() -> str:
    """
    Loguru 로그 설정 초기화.
    - Console: settings.LOG_LEVEL 이상
    - File: DEBUG 이상 (매일 자정 회전, 10일 보관, zip 압축)
    """
    log_dir = settings.log_dir_path
    log_file = settings.log_file_path
    log_dir.mkdir(parents=True, exist_ok=True)

    # 기존 핸들러 제거 (중복 방지)
    logger.remove()

    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    )

    logger.add(
        str(log_file),
        rotation="00:00",
        retention="10 days",
        compression="zip",
        level="DEBUG",
        enqueue=True,
        encoding="utf-8",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} - {message}",
    )

    return str(log_file)
