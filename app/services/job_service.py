from __future__ import annotations

import logging
import re

from app.core import tracker_store
from app.integrations import job_page
from app.integrations.job_page import (
    DEFAULT_IMPORTED_COMPANY,
    DEFAULT_IMPORTED_TITLE,
    MAX_DESCRIPTION_CHARS,
    JobPageError,
)
from app.schemas.jobs import (
    JOB_STATUSES,
    BoardColumn,
    IngestJobResponse,
    JobApplication,
    JobApplicationCreate,
    JobApplicationUpdate,
    JobBoard,
)

logger = logging.getLogger(__name__)

MAX_TITLE_FROM_FIRST_LINE = 120

_TITLE_PREFIXES = ("Title", "Position", "Role", "Job Title")
_COMPANY_PREFIXES = ("Company", "Employer", "Organization")
_TITLE_AT_COMPANY = re.compile(r".+\s+at\s+([A-Za-z0-9 .,&\-()]+)$", re.IGNORECASE)


class JobTrackerError(RuntimeError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _not_found() -> JobTrackerError:
    return JobTrackerError("Job application not found or user does not have permission.", status_code=404)


def create_job_application(user_id: str, payload: JobApplicationCreate) -> JobApplication:
    job_id = tracker_store.insert_job(
        user_id,
        job_title=payload.job_title,
        company_name=payload.company_name,
        job_description=payload.job_description,
    )
    job = tracker_store.get_job(user_id, job_id)
    if job is None:  # pragma: no cover - row was written above
        raise _not_found()
    return job


def list_job_applications(user_id: str) -> list[JobApplication]:
    return tracker_store.list_jobs(user_id)


def update_job_application(user_id: str, job_id: str, payload: JobApplicationUpdate) -> JobApplication:
    fields = payload.model_dump(exclude_unset=True)
    for key in ("job_title", "company_name", "status"):
        if key in fields and fields[key] is None:
            raise JobTrackerError(f"{key} must not be null.", status_code=422)
    if not tracker_store.update_job_fields(user_id, job_id, **fields):
        raise _not_found()
    job = tracker_store.get_job(user_id, job_id)
    if job is None:
        raise _not_found()
    return job


def delete_job_application(user_id: str, job_id: str) -> None:
    if not tracker_store.delete_job(user_id, job_id):
        raise _not_found()


def _line_value(lines: list[str], prefixes: tuple[str, ...]) -> str:
    for line in lines:
        for prefix in prefixes:
            match = re.match(rf"^{re.escape(prefix)}\s*[:\-]?\s*(.+)$", line, re.IGNORECASE)
            if match and match.group(1).strip():
                return match.group(1).strip()
    return ""


def parse_job_text(text: str) -> tuple[str, str, str]:
    """Pull ``(title, company, description)`` out of a pasted job posting."""
    raw = text.strip()
    lines = [line.strip() for line in raw.splitlines() if line.strip()]
    first = lines[0] if lines else ""

    title = _line_value(lines, _TITLE_PREFIXES) or first[:MAX_TITLE_FROM_FIRST_LINE] or DEFAULT_IMPORTED_TITLE

    company = _line_value(lines, _COMPANY_PREFIXES)
    if not company:
        match = _TITLE_AT_COMPANY.match(first)
        company = match.group(1).strip() if match else ""
    company = company or DEFAULT_IMPORTED_COMPANY

    return title, company, raw[:MAX_DESCRIPTION_CHARS]


def _store_ingested(user_id: str, title: str, company: str, description: str) -> IngestJobResponse:
    existing = tracker_store.find_job(user_id, title, company)
    if existing is not None:
        current = existing.job_description or ""
        if len(description) > len(current):
            tracker_store.update_job_fields(user_id, existing.id, job_description=description)
            existing = existing.model_copy(update={"job_description": description})
        logger.info("job_ingest_dedupe user=%s job=%s", user_id, existing.id)
        return IngestJobResponse(job=existing, created=False)

    job_id = tracker_store.insert_job(user_id, job_title=title, company_name=company, job_description=description)
    job = tracker_store.get_job(user_id, job_id)
    if job is None:  # pragma: no cover - row was written above
        raise _not_found()
    logger.info("job_ingest_created user=%s job=%s", user_id, job_id)
    return IngestJobResponse(job=job, created=True)


def ingest_from_text(user_id: str, text: str) -> IngestJobResponse:
    if not text or not text.strip():
        raise JobTrackerError("Please paste the job text.")
    return _store_ingested(user_id, *parse_job_text(text))


def ingest_from_url(user_id: str, url: str) -> IngestJobResponse:
    try:
        page = job_page.fetch_job_page(url)
    except JobPageError as exc:
        raise JobTrackerError(str(exc), status_code=exc.status_code) from exc
    return _store_ingested(user_id, page.title, page.company, page.description)


def board(user_id: str) -> JobBoard:
    columns = {status: BoardColumn(status=status) for status in JOB_STATUSES}
    for job in tracker_store.list_jobs(user_id):
        columns[job.status].items.append(job)
    return JobBoard(columns=[columns[status] for status in JOB_STATUSES])
