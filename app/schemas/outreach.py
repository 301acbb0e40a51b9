from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

ConnectionDegree = Literal[1, 2, 3]
Priority = Literal["low", "medium", "high"]
Channel = Literal["email", "dm"]
MessageStatus = Literal["draft", "queued", "sent", "failed"]
SequenceStatus = Literal["draft", "in_progress", "completed", "paused"]


class ContactCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    company: str | None = Field(default=None, max_length=200)
    title: str | None = Field(default=None, max_length=200)
    connection_degree: ConnectionDegree
    relationship_strength: float = Field(ge=0, le=10)
    last_contacted_at: int | None = Field(default=None, ge=0)
    notes: str | None = Field(default=None, max_length=4000)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class Contact(ContactCreate):
    id: str
    user_id: str
    created_at: int


class TargetCompanyCreate(BaseModel):
    company_name: str = Field(min_length=1, max_length=200)
    target_role: str | None = Field(default=None, max_length=200)
    priority: Priority | None = None


class TargetCompany(TargetCompanyCreate):
    id: str
    user_id: str
    created_at: int


class ScoredContact(BaseModel):
    contact: Contact
    referral_likelihood: int = Field(ge=0, le=100)


class SuggestContactsResponse(BaseModel):
    company_name: str
    candidates: list[ScoredContact] = Field(default_factory=list)


class SequenceMessage(BaseModel):
    type: Channel
    subject: str | None = None
    body: str
    sent_at: int | None = None
    status: MessageStatus = "draft"


class OutreachSequenceCreate(BaseModel):
    contact_id: str = Field(min_length=1, max_length=64)
    company_name: str = Field(min_length=1, max_length=200)
    target_role: str | None = Field(default=None, max_length=200)
    channel: Channel


class OutreachSequence(BaseModel):
    id: str
    user_id: str
    contact_id: str
    company_name: str
    target_role: str | None = None
    channel: Channel
    messages: list[SequenceMessage]
    status: SequenceStatus
    referral_likelihood: int = Field(ge=0, le=100)
    next_follow_up_at: int | None = None
    created_at: int


class SequenceStatusUpdate(BaseModel):
    status: SequenceStatus


class FollowUpUpdate(BaseModel):
    next_follow_up_at: int = Field(ge=0)


class GeneratedContact(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    title: str | None = Field(default=None, max_length=200)


class GenerateContactsRequest(BaseModel):
    company_name: str = Field(min_length=1, max_length=200)
    title_hint: str | None = Field(default=None, max_length=200)
    count: int | None = None


class InsertResult(BaseModel):
    inserted: int = Field(ge=0)


class SeedResult(BaseModel):
    result: Literal["seeded", "already_seeded"]


class SendEmailRequest(BaseModel):
    to: str = Field(min_length=3, max_length=320)
    subject: str = Field(min_length=1, max_length=300)
    body: str = Field(min_length=1, max_length=20000)

    @field_validator("to", "subject")
    @classmethod
    def _single_line(cls, value: str) -> str:
        if "\r" in value or "\n" in value:
            raise ValueError("must not contain line breaks")
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class SendEmailResponse(BaseModel):
    sent: bool
