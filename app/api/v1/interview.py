from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.ai.client import LLMServiceError
from app.core import interview_session_store
from app.core.rate_limit import rate_limit
from app.core.security import current_user_id
from app.schemas.interview import (
    FollowUpRequest,
    FollowUpResponse,
    GenerateQuestionsRequest,
    GenerateQuestionsResponse,
    InterviewSession,
    InterviewSessionSave,
    PolishAnswerRequest,
    PolishAnswerResponse,
)
from app.services import interview_service

router = APIRouter()


@router.post("/interview/questions", response_model=GenerateQuestionsResponse)
@rate_limit()
def interview_questions(request: Request, payload: GenerateQuestionsRequest, user_id: str = Depends(current_user_id)):
    _ = (request, user_id)
    return interview_service.generate_questions(payload.jd, payload.count)


@router.post("/interview/polish", response_model=PolishAnswerResponse)
@rate_limit()
def interview_polish(request: Request, payload: PolishAnswerRequest, user_id: str = Depends(current_user_id)):
    _ = (request, user_id)
    try:
        polished = interview_service.polish_answer(payload.question, payload.answer, payload.jd)
    except LLMServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return PolishAnswerResponse(polished_answer=polished)


@router.post("/interview/follow-up", response_model=FollowUpResponse)
@rate_limit()
def interview_follow_up(request: Request, payload: FollowUpRequest, user_id: str = Depends(current_user_id)):
    _ = (request, user_id)
    try:
        question = interview_service.next_follow_up(payload.previous_question, payload.user_answer, payload.jd)
    except LLMServiceError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
    return FollowUpResponse(question=question)


@router.get("/interview/session", response_model=InterviewSession | None)
def get_interview_session(user_id: str = Depends(current_user_id)):
    return interview_session_store.get_session(user_id)


@router.put("/interview/session", response_model=InterviewSession)
def save_interview_session(payload: InterviewSessionSave, user_id: str = Depends(current_user_id)):
    return interview_session_store.save_session(user_id, payload)


@router.delete("/interview/session", status_code=status.HTTP_204_NO_CONTENT)
def clear_interview_session(user_id: str = Depends(current_user_id)):
    interview_session_store.clear_session(user_id)
