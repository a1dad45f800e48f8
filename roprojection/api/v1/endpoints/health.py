# roprojection/api/v1/endpoints/health.py
from __future__ import annotations

from fastapi import APIRouter

from roprojection import __version__
from roprojection.core.config import settings

router = APIRouter(prefix="/health")


@router.get("", response_model=dict)
def health_simple():
    return {
        "status": "ok",
        "env": getattr(settings, "APP_ENV", "local"),
        "version": __version__,
    }
