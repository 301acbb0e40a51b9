from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

JobStatus = Literal["Saved", "Applied", "Interviewing", "Offer", "Rejected"]

# Kanban column order
JOB_STATUSES: tuple[JobStatus, ...] = ("Saved", "Applied", "Interviewing", "Offer", "Rejected")


class JobApplicationCreate(BaseModel):
    job_title: str = Field(min_length=1, max_length=300)
    company_name: str = Field(min_length=1, max_length=300)
    job_description: str | None = Field(default=None, max_length=50000)

    @field_validator("job_title", "company_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class JobApplicationUpdate(BaseModel):
    job_title: str | None = Field(default=None, min_length=1, max_length=300)
    company_name: str | None = Field(default=None, min_length=1, max_length=300)
    status: JobStatus | None = None
    job_description: str | None = Field(default=None, max_length=50000)
    notes: str | None = Field(default=None, max_length=10000)
    shortlisted_date: int | None = Field(default=None, ge=0)
    interview_date: int | None = Field(default=None, ge=0)
    offer_date: int | None = Field(default=None, ge=0)


class JobApplication(BaseModel):
    id: str
    user_id: str
    job_title: str
    company_name: str
    job_description: str | None = None
    status: JobStatus
    notes: str | None = None
    application_date: int
    shortlisted_date: int | None = None
    interview_date: int | None = None
    offer_date: int | None = None
    analysis_id: str | None = None


class IngestJobRequest(BaseModel):
    text: str = Field(max_length=100000)


class IngestUrlRequest(BaseModel):
    url: str = Field(min_length=1, max_length=2048)


class IngestJobResponse(BaseModel):
    job: JobApplication
    created: bool


class BoardColumn(BaseModel):
    status: JobStatus
    items: list[JobApplication] = Field(default_factory=list)


class JobBoard(BaseModel):
    columns: list[BoardColumn]
