from __future__ import annotations

import sqlite3

from app.core.db import fetch_all, fetch_one, new_id, now_ms, transaction
from app.schemas.resumes import ResumeDocument

_UPDATABLE_FIELDS = {"title", "content", "template_id"}


def _row_to_resume(row: sqlite3.Row) -> ResumeDocument:
    return ResumeDocument(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        content=row["content"],
        template_id=row["template_id"],
        last_modified=row["last_modified"],
    )


def insert_resume(user_id: str, *, title: str, content: str, template_id: str | None = None) -> str:
    resume_id = new_id()
    with transaction() as conn:
        conn.execute(
            """
            INSERT INTO resume_documents (id, user_id, title, content, template_id, last_modified)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (resume_id, user_id, title, content, template_id, now_ms()),
        )
    return resume_id


def get_resume(user_id: str, resume_id: str) -> ResumeDocument | None:
    row = fetch_one("SELECT * FROM resume_documents WHERE id = ? AND user_id = ?", (resume_id, user_id))
    return _row_to_resume(row) if row else None


def list_resumes(user_id: str) -> list[ResumeDocument]:
    rows = fetch_all(
        "SELECT * FROM resume_documents WHERE user_id = ? ORDER BY last_modified DESC, rowid DESC",
        (user_id,),
    )
    return [_row_to_resume(row) for row in rows]


def update_resume_fields(user_id: str, resume_id: str, **fields: object) -> bool:
    """Patch the given columns and bump ``last_modified``, even when nothing else changes."""
    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported resume fields: {sorted(unknown)}")
    values = {**fields, "last_modified": now_ms()}
    assignments = ", ".join(f"{name} = ?" for name in values)
    with transaction() as conn:
        cur = conn.execute(
            f"UPDATE resume_documents SET {assignments} WHERE id = ? AND user_id = ?",
            (*values.values(), resume_id, user_id),
        )
        return cur.rowcount > 0


def delete_resume(user_id: str, resume_id: str) -> bool:
    with transaction() as conn:
        cur = conn.execute("DELETE FROM resume_documents WHERE id = ? AND user_id = ?", (resume_id, user_id))
        return cur.rowcount > 0
