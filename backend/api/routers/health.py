"""Health check.

Routes
------
GET /api/health    → {"status": "healthy", "timestamp", "version", "environment"}
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from backend.config import settings
from backend.pipeline import utc_timestamp

router = APIRouter()


@router.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": utc_timestamp(),
        "version": settings.app_version,
        "environment": settings.environment,
    }
