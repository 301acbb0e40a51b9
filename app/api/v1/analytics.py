from fastapi import APIRouter, Depends, Query

from app.analytics import db as analytics_db
from app.core.security import require_api_key

router = APIRouter()


@router.get("/analytics/ai-runs")
def ai_runs_summary(_: None = Depends(require_api_key)):
    return analytics_db.get_ai_run_summary()


@router.get("/analytics/ai-runs/latest")
def ai_runs_latest(
    limit: int = Query(default=20, ge=1, le=200),
    _: None = Depends(require_api_key),
):
    return analytics_db.get_latest_runs(limit=limit)
