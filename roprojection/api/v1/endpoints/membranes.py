# roprojection/api/v1/endpoints/membranes.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query

from roprojection.schemas.membrane import Membrane
from roprojection.services import membranes as library

router = APIRouter()


@router.get("", response_model=List[Membrane])
def list_membranes(
    q: Optional[str] = Query(None, description="통합 검색 (id / name / type)"),
    type: Optional[str] = Query(None, description="필터: Brackish, Seawater, Low Fouling"),
    limit: int = Query(200, ge=1, le=2000),
):
    """[멤브레인 목록 조회] 기본 라이브러리, 읽기 전용."""
    return library.list_membranes(type=type, q=q, limit=limit)


@router.get("/{membrane_id}", response_model=Membrane)
def get_membrane(membrane_id: str):
    # 없는 ID -> MembraneNotFoundError -> 404 (core.errors)
    return library.get_membrane(membrane_id)
