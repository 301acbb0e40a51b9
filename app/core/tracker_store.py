from __future__ import annotations

import sqlite3

from app.core.db import fetch_all, fetch_one, new_id, now_ms, transaction
from app.schemas.jobs import JobApplication

_UPDATABLE_FIELDS = {
    "job_title",
    "company_name",
    "status",
    "job_description",
    "notes",
    "shortlisted_date",
    "interview_date",
    "offer_date",
}


def _row_to_job(row: sqlite3.Row) -> JobApplication:
    return JobApplication(
        id=row["id"],
        user_id=row["user_id"],
        job_title=row["job_title"],
        company_name=row["company_name"],
        job_description=row["job_description"],
        status=row["status"],
        notes=row["notes"],
        application_date=row["application_date"],
        shortlisted_date=row["shortlisted_date"],
        interview_date=row["interview_date"],
        offer_date=row["offer_date"],
        analysis_id=row["analysis_id"],
    )


def insert_job(
    user_id: str,
    *,
    job_title: str,
    company_name: str,
    job_description: str | None = None,
    status: str = "Saved",
) -> str:
    job_id = new_id()
    with transaction() as conn:
        conn.execute(
            """
            INSERT INTO job_applications (
                id, user_id, job_title, company_name, job_description, status, application_date
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (job_id, user_id, job_title, company_name, job_description, status, now_ms()),
        )
    return job_id


def list_jobs(user_id: str) -> list[JobApplication]:
    rows = fetch_all(
        "SELECT * FROM job_applications WHERE user_id = ? ORDER BY application_date DESC, rowid DESC",
        (user_id,),
    )
    return [_row_to_job(row) for row in rows]


def get_job(user_id: str, job_id: str) -> JobApplication | None:
    row = fetch_one("SELECT * FROM job_applications WHERE id = ? AND user_id = ?", (job_id, user_id))
    return _row_to_job(row) if row else None


def find_job(user_id: str, job_title: str, company_name: str) -> JobApplication | None:
    row = fetch_one(
        """
        SELECT * FROM job_applications
        WHERE user_id = ? AND job_title = ? AND company_name = ?
        ORDER BY application_date ASC, rowid ASC
        LIMIT 1
        """,
        (user_id, job_title, company_name),
    )
    return _row_to_job(row) if row else None


def update_job_fields(user_id: str, job_id: str, **fields: object) -> bool:
    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported job application fields: {sorted(unknown)}")
    if not fields:
        return get_job(user_id, job_id) is not None
    assignments = ", ".join(f"{name} = ?" for name in fields)
    with transaction() as conn:
        cur = conn.execute(
            f"UPDATE job_applications SET {assignments} WHERE id = ? AND user_id = ?",
            (*fields.values(), job_id, user_id),
        )
        return cur.rowcount > 0


def delete_job(user_id: str, job_id: str) -> bool:
    with transaction() as conn:
        row = conn.execute(
            "SELECT analysis_id FROM job_applications WHERE id = ? AND user_id = ?",
            (job_id, user_id),
        ).fetchone()
        if not row:
            return False
        if row["analysis_id"]:
            conn.execute("DELETE FROM analyses WHERE id = ? AND user_id = ?", (row["analysis_id"], user_id))
        conn.execute("DELETE FROM job_applications WHERE id = ? AND user_id = ?", (job_id, user_id))
    return True
