from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.security import current_user_id
from app.schemas.jobs import (
    IngestJobRequest,
    IngestJobResponse,
    IngestUrlRequest,
    JobApplication,
    JobApplicationCreate,
    JobApplicationUpdate,
    JobBoard,
)
from app.services import job_service
from app.services.job_service import JobTrackerError

router = APIRouter()


def _raise_tracker_error(exc: JobTrackerError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/jobs", response_model=JobApplication, status_code=status.HTTP_201_CREATED)
def create_job(payload: JobApplicationCreate, user_id: str = Depends(current_user_id)):
    return job_service.create_job_application(user_id, payload)


@router.get("/jobs", response_model=list[JobApplication])
def list_jobs(user_id: str = Depends(current_user_id)):
    return job_service.list_job_applications(user_id)


@router.get("/jobs/board", response_model=JobBoard)
def job_board(user_id: str = Depends(current_user_id)):
    return job_service.board(user_id)


@router.post("/jobs/ingest", response_model=IngestJobResponse)
def ingest_job(payload: IngestJobRequest, user_id: str = Depends(current_user_id)):
    try:
        return job_service.ingest_from_text(user_id, payload.text)
    except JobTrackerError as exc:
        _raise_tracker_error(exc)


@router.post("/jobs/ingest-url", response_model=IngestJobResponse)
def ingest_job_url(payload: IngestUrlRequest, user_id: str = Depends(current_user_id)):
    try:
        return job_service.ingest_from_url(user_id, payload.url)
    except JobTrackerError as exc:
        _raise_tracker_error(exc)


@router.patch("/jobs/{job_id}", response_model=JobApplication)
def update_job(job_id: str, payload: JobApplicationUpdate, user_id: str = Depends(current_user_id)):
    try:
        return job_service.update_job_application(user_id, job_id, payload)
    except JobTrackerError as exc:
        _raise_tracker_error(exc)


@router.delete("/jobs/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(job_id: str, user_id: str = Depends(current_user_id)):
    try:
        job_service.delete_job_application(user_id, job_id)
    except JobTrackerError as exc:
        _raise_tracker_error(exc)
