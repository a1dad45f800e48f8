# roprojection/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

# Config & Logger
from roprojection import __version__
from roprojection.core.config import settings
from roprojection.core.errors import register_exception_handlers
from roprojection.core.logger import setup_logging

# Routers (통합 라우터 하나만 Import)
from roprojection.api.v1.api import api_router


# ==============================================================================
# 1. Lifespan (수명 주기 관리)
# ==============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    # [Startup]
    log_file = setup_logging()
    env = getattr(settings, "APP_ENV", "local")
    logger.info(f"RO Projection API starting (env: {env}, log: {log_file})")

    yield

    # [Shutdown]
    logger.info("RO Projection API shutting down")


# ==============================================================================
# 2. FastAPI App 초기화
# ==============================================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=__version__,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# ==============================================================================
# 3. Middleware (CORS)
# ==============================================================================
# BACKEND_CORS_ORIGINS 가 비어 있으면 모든 출처 허용 (로컬 개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(o).rstrip("/") for o in settings.BACKEND_CORS_ORIGINS] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==============================================================================
# 4. Router / Exception Handlers
# ==============================================================================
app.include_router(api_router, prefix=settings.API_V1_STR)
register_exception_handlers(app)


# ==============================================================================
# 5. Root Endpoint
# ==============================================================================
@app.get("/", include_in_schema=False)
def root() -> Dict[str, Any]:
    """서버 상태 확인용 루트 엔드포인트"""
    return {
        "message": "Welcome to RO Projection API",
        "docs_url": "/docs",
        "redoc_url": "/redoc",
        "status": "running",
    }


@app.get("/health", include_in_schema=False)
def health_check():
    """로드밸런서용 단순 헬스 체크"""
    return {"status": "ok"}
