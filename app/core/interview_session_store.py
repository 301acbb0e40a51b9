from __future__ import annotations

import json

from app.core.db import fetch_one, now_ms, transaction
from app.schemas.interview import InterviewSession, InterviewSessionSave


def save_session(user_id: str, session: InterviewSessionSave) -> InterviewSession:
    """Store the user's in-progress interview, replacing any earlier one."""
    updated_at = now_ms()
    with transaction() as conn:
        conn.execute(
            """
            INSERT INTO interview_sessions (user_id, jd, resume_file_name, questions_json, current_idx, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                jd = excluded.jd,
                resume_file_name = excluded.resume_file_name,
                questions_json = excluded.questions_json,
                current_idx = excluded.current_idx,
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                session.jd,
                session.resume_file_name,
                json.dumps(session.questions),
                session.current_idx,
                updated_at,
            ),
        )
    return InterviewSession(**session.model_dump(), updated_at=updated_at)


def get_session(user_id: str) -> InterviewSession | None:
    row = fetch_one("SELECT * FROM interview_sessions WHERE user_id = ?", (user_id,))
    if not row:
        return None
    return InterviewSession(
        jd=row["jd"],
        resume_file_name=row["resume_file_name"],
        questions=json.loads(row["questions_json"]),
        current_idx=row["current_idx"],
        updated_at=row["updated_at"],
    )


def clear_session(user_id: str) -> None:
    with transaction() as conn:
        conn.execute("DELETE FROM interview_sessions WHERE user_id = ?", (user_id,))
