from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.ai.client import LLMServiceError
from app.core import outreach_store
from app.core.rate_limit import rate_limit
from app.core.security import current_user_id
from app.integrations.email import EmailNotConfigured, send_outreach_email
from app.schemas.outreach import (
    Contact,
    ContactCreate,
    FollowUpUpdate,
    GenerateContactsRequest,
    InsertResult,
    OutreachSequence,
    OutreachSequenceCreate,
    SeedResult,
    SendEmailRequest,
    SendEmailResponse,
    SequenceStatusUpdate,
    SuggestContactsResponse,
    TargetCompany,
    TargetCompanyCreate,
)
from app.services import outreach_service
from app.services.outreach_service import OutreachError

router = APIRouter()


def _raise_outreach_error(exc: OutreachError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


def _raise_llm_error(exc: LLMServiceError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/outreach/contacts", response_model=Contact, status_code=status.HTTP_201_CREATED)
def add_contact(payload: ContactCreate, user_id: str = Depends(current_user_id)):
    contact_id = outreach_store.add_contact(user_id, payload)
    return outreach_store.get_contact(user_id, contact_id)


@router.get("/outreach/contacts", response_model=list[Contact])
def list_contacts(user_id: str = Depends(current_user_id)):
    return outreach_store.list_contacts(user_id)


@router.post("/outreach/targets", response_model=dict, status_code=status.HTTP_201_CREATED)
def add_target_company(payload: TargetCompanyCreate, user_id: str = Depends(current_user_id)):
    return {"id": outreach_store.add_target_company(user_id, payload)}


@router.get("/outreach/targets", response_model=list[TargetCompany])
def list_target_companies(user_id: str = Depends(current_user_id)):
    return outreach_store.list_target_companies(user_id)


@router.get("/outreach/suggestions", response_model=SuggestContactsResponse)
def suggest_contacts(
    company_name: str = Query(min_length=1, max_length=200),
    limit: int = Query(default=10, ge=1, le=50),
    user_id: str = Depends(current_user_id),
):
    try:
        return outreach_service.suggest_contacts_for_company(user_id, company_name, limit)
    except OutreachError as exc:
        _raise_outreach_error(exc)


@router.post("/outreach/sequences", response_model=OutreachSequence, status_code=status.HTTP_201_CREATED)
def create_sequence(
    payload: OutreachSequenceCreate,
    sender_name: str | None = Query(default=None, max_length=120),
    user_id: str = Depends(current_user_id),
):
    try:
        return outreach_service.create_outreach_sequence(user_id, payload, sender_name=sender_name)
    except OutreachError as exc:
        _raise_outreach_error(exc)


@router.get("/outreach/sequences", response_model=list[OutreachSequence])
def list_sequences(user_id: str = Depends(current_user_id)):
    return outreach_store.list_sequences(user_id)


@router.patch("/outreach/sequences/{sequence_id}/status")
def update_sequence_status(sequence_id: str, payload: SequenceStatusUpdate, user_id: str = Depends(current_user_id)):
    try:
        return {"ok": outreach_service.update_sequence_status(user_id, sequence_id, payload.status)}
    except OutreachError as exc:
        _raise_outreach_error(exc)


@router.patch("/outreach/sequences/{sequence_id}/follow-up")
def schedule_follow_up(sequence_id: str, payload: FollowUpUpdate, user_id: str = Depends(current_user_id)):
    try:
        return {"ok": outreach_service.schedule_follow_up(user_id, sequence_id, payload.next_follow_up_at)}
    except OutreachError as exc:
        _raise_outreach_error(exc)


@router.post("/outreach/seed", response_model=SeedResult)
def seed_test_data(user_id: str = Depends(current_user_id)):
    return SeedResult(result=outreach_service.seed_test_data(user_id))


@router.post("/outreach/contacts/generate", response_model=InsertResult)
@rate_limit()
def generate_contacts(request: Request, payload: GenerateContactsRequest, user_id: str = Depends(current_user_id)):
    _ = request
    try:
        return outreach_service.generate_contacts_for_company(
            user_id,
            payload.company_name,
            title_hint=payload.title_hint,
            count=payload.count,
        )
    except OutreachError as exc:
        _raise_outreach_error(exc)
    except LLMServiceError as exc:
        _raise_llm_error(exc)


@router.post("/outreach/email", response_model=SendEmailResponse)
@rate_limit()
def send_email(request: Request, payload: SendEmailRequest, user_id: str = Depends(current_user_id)):
    _ = (request, user_id)
    try:
        sent = send_outreach_email(to=payload.to, subject=payload.subject, body=payload.body)
    except EmailNotConfigured as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if not sent:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send email.")
    return SendEmailResponse(sent=True)
