# roprojection/api/v1/api.py
from fastapi import APIRouter

from roprojection.api.v1.endpoints import health, membranes, projection

api_router = APIRouter()

# ==============================================================================
# 1. Core Engine (RO 프로젝션)
# ==============================================================================
api_router.include_router(projection.router, prefix="/projection", tags=["Projection"])

# ==============================================================================
# 2. Data & Resources (멤브레인 라이브러리, 읽기 전용)
# ==============================================================================
api_router.include_router(membranes.router, prefix="/membranes", tags=["Membranes"])

# ==============================================================================
# 3. System (헬스 체크)
# ==============================================================================
api_router.include_router(health.router, tags=["Health"])
