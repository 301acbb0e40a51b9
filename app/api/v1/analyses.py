from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core import analysis_store
from app.core.rate_limit import rate_limit
from app.core.security import current_user_id
from app.schemas.analysis import Analysis, AnalysisCreate
from app.services import analysis_service
from app.services.analysis_service import AnalysisError

router = APIRouter()


def _raise_analysis_error(exc: AnalysisError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/analyses", response_model=Analysis, status_code=status.HTTP_201_CREATED)
@rate_limit()
def create_analysis(request: Request, payload: AnalysisCreate, user_id: str = Depends(current_user_id)):
    _ = request
    try:
        return analysis_service.create_analysis(user_id, payload)
    except AnalysisError as exc:
        _raise_analysis_error(exc)


@router.get("/analyses", response_model=list[Analysis])
def list_analyses(
    limit: int = Query(default=10, ge=1, le=100),
    user_id: str = Depends(current_user_id),
):
    return analysis_store.list_analyses(user_id, limit=limit)


@router.get("/analyses/{analysis_id}", response_model=Analysis)
def get_analysis(analysis_id: str, user_id: str = Depends(current_user_id)):
    try:
        return analysis_service.get_analysis(user_id, analysis_id)
    except AnalysisError as exc:
        _raise_analysis_error(exc)


@router.post("/analyses/{analysis_id}/favorite")
def toggle_favorite(analysis_id: str, user_id: str = Depends(current_user_id)):
    try:
        return {"is_favorited": analysis_service.toggle_favorite(user_id, analysis_id)}
    except AnalysisError as exc:
        _raise_analysis_error(exc)


@router.delete("/analyses/{analysis_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_analysis(analysis_id: str, user_id: str = Depends(current_user_id)):
    try:
        analysis_service.delete_analysis(user_id, analysis_id)
    except AnalysisError as exc:
        _raise_analysis_error(exc)
