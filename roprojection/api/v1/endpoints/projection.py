# roprojection/api/v1/endpoints/projection.py
from __future__ import annotations

from fastapi import APIRouter
from loguru import logger

from roprojection.schemas.projection import ProjectionRequest, ProjectionResult
from roprojection.services.projection.engine import ProjectionEngine

router = APIRouter()


@router.post("/run", response_model=ProjectionResult)
def run_projection(req: ProjectionRequest) -> ProjectionResult:
    """
    [RO 프로젝션 실행]
    - 입력이 바뀔 때마다 호출자가 다시 실행 (엔진은 상태를 갖지 않음)
    - 설계 한계 초과는 실패가 아니라 warnings 로 반환
    """
    logger.debug(
        "projection request: stages={} membranes={}",
        len(req.config.stages),
        len(req.membranes),
    )
    return ProjectionEngine().run(req)
