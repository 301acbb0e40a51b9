from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.security import current_user_id
from app.schemas.analysis import ExtractTextResponse, ResumeSuggestionsRequest, ResumeSuggestionsResponse
from app.schemas.resumes import ResumeDocument, ResumeDocumentCreate, ResumeDocumentUpdate
from app.services import resume_service
from app.services.resume_service import (
    ALLOWED_EXTENSIONS,
    ResumeError,
    extract_resume_text,
    generate_resume_suggestions,
)

router = APIRouter()


@router.post("/resumes/extract-text", response_model=ExtractTextResponse)
async def resumes_extract_text(
    file: UploadFile = File(...),
    user_id: str = Depends(current_user_id),
):
    _ = user_id
    filename = file.filename or "uploaded-file"
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type '.{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}.",
        )

    max_bytes = settings.max_upload_mb * 1024 * 1024
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum allowed size is {settings.max_upload_mb} MB.",
            )
        chunks.append(chunk)

    try:
        return extract_resume_text(filename, b"".join(chunks))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/resumes/suggestions", response_model=ResumeSuggestionsResponse)
@rate_limit()
def resumes_suggestions(request: Request, payload: ResumeSuggestionsRequest, user_id: str = Depends(current_user_id)):
    _ = (request, user_id)
    return generate_resume_suggestions(payload)


def _raise_resume_error(exc: ResumeError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/resumes", response_model=ResumeDocument, status_code=status.HTTP_201_CREATED)
def create_resume(payload: ResumeDocumentCreate, user_id: str = Depends(current_user_id)):
    return resume_service.create_resume(user_id, payload)


@router.get("/resumes", response_model=list[ResumeDocument])
def list_resumes(user_id: str = Depends(current_user_id)):
    return resume_service.list_resumes(user_id)


@router.get("/resumes/{resume_id}", response_model=ResumeDocument)
def get_resume(resume_id: str, user_id: str = Depends(current_user_id)):
    resume = resume_service.get_resume(user_id, resume_id)
    if resume is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resume not found.")
    return resume


@router.patch("/resumes/{resume_id}", response_model=ResumeDocument)
def update_resume(resume_id: str, payload: ResumeDocumentUpdate, user_id: str = Depends(current_user_id)):
    try:
        return resume_service.update_resume(user_id, resume_id, payload)
    except ResumeError as exc:
        _raise_resume_error(exc)


@router.delete("/resumes/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_resume(resume_id: str, user_id: str = Depends(current_user_id)):
    try:
        resume_service.delete_resume(user_id, resume_id)
    except ResumeError as exc:
        _raise_resume_error(exc)
