from __future__ import annotations

import sqlite3

from app.core.db import fetch_all, fetch_one, new_id, now_ms, transaction
from app.schemas.analysis import Analysis, AnalysisResult, AnalysisStatus


def _row_to_analysis(row: sqlite3.Row) -> Analysis:
    result = AnalysisResult.model_validate_json(row["result_json"] or "{}")
    return Analysis(
        **result.model_dump(),
        id=row["id"],
        user_id=row["user_id"],
        resume_file_name=row["resume_file_name"],
        job_description=row["job_description"],
        job_application_id=row["job_application_id"],
        status=row["status"],
        error_message=row["error_message"],
        is_favorited=bool(row["is_favorited"]),
        created_at=row["created_at"],
    )


def create_analysis(
    user_id: str,
    *,
    job_description: str,
    resume_file_name: str | None = None,
    job_application_id: str | None = None,
) -> str:
    analysis_id = new_id()
    with transaction() as conn:
        conn.execute(
            """
            INSERT INTO analyses (
                id, user_id, resume_file_name, job_description, job_application_id,
                status, result_json, error_message, is_favorited, created_at
            ) VALUES (?, ?, ?, ?, ?, 'processing', ?, NULL, 0, ?)
            """,
            (
                analysis_id,
                user_id,
                resume_file_name,
                job_description,
                job_application_id,
                AnalysisResult().model_dump_json(),
                now_ms(),
            ),
        )
        if job_application_id:
            conn.execute(
                "UPDATE job_applications SET analysis_id = ? WHERE id = ? AND user_id = ?",
                (analysis_id, job_application_id, user_id),
            )
    return analysis_id


def update_analysis_results(
    analysis_id: str,
    *,
    result: AnalysisResult,
    status: AnalysisStatus,
    error_message: str | None = None,
) -> None:
    with transaction() as conn:
        conn.execute(
            "UPDATE analyses SET result_json = ?, status = ?, error_message = ? WHERE id = ?",
            (result.model_dump_json(), status, error_message, analysis_id),
        )


def list_analyses(user_id: str, limit: int = 10) -> list[Analysis]:
    rows = fetch_all(
        "SELECT * FROM analyses WHERE user_id = ? ORDER BY created_at DESC, rowid DESC LIMIT ?",
        (user_id, limit),
    )
    return [_row_to_analysis(row) for row in rows]


def get_analysis(user_id: str, analysis_id: str) -> Analysis | None:
    row = fetch_one("SELECT * FROM analyses WHERE id = ? AND user_id = ?", (analysis_id, user_id))
    return _row_to_analysis(row) if row else None


def toggle_favorite(user_id: str, analysis_id: str) -> bool | None:
    with transaction() as conn:
        row = conn.execute(
            "SELECT is_favorited FROM analyses WHERE id = ? AND user_id = ?",
            (analysis_id, user_id),
        ).fetchone()
        if not row:
            return None
        favorited = not bool(row["is_favorited"])
        conn.execute("UPDATE analyses SET is_favorited = ? WHERE id = ?", (1 if favorited else 0, analysis_id))
    return favorited


def delete_analysis(user_id: str, analysis_id: str) -> bool:
    with transaction() as conn:
        cur = conn.execute("DELETE FROM analyses WHERE id = ? AND user_id = ?", (analysis_id, user_id))
        return cur.rowcount > 0
