from __future__ import annotations

import os
import sqlite3
import threading
import time
import uuid
from contextlib import contextmanager
from typing import Iterator

from app.core.config import settings

_conn: sqlite3.Connection | None = None
_conn_lock = threading.RLock()

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS contacts (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        email TEXT,
        company TEXT,
        title TEXT,
        connection_degree INTEGER NOT NULL,
        relationship_strength REAL NOT NULL,
        last_contacted_at INTEGER,
        notes TEXT,
        created_at INTEGER NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_contacts_user ON contacts (user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_contacts_user_email ON contacts (user_id, email);",
    """
    CREATE TABLE IF NOT EXISTS target_companies (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        company_name TEXT NOT NULL,
        target_role TEXT,
        priority TEXT,
        created_at INTEGER NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS outreach_sequences (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        contact_id TEXT NOT NULL,
        company_name TEXT NOT NULL,
        target_role TEXT,
        channel TEXT NOT NULL,
        messages_json TEXT NOT NULL,
        status TEXT NOT NULL,
        referral_likelihood INTEGER NOT NULL,
        next_follow_up_at INTEGER,
        created_at INTEGER NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS job_applications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        job_title TEXT NOT NULL,
        company_name TEXT NOT NULL,
        job_description TEXT,
        status TEXT NOT NULL,
        notes TEXT,
        application_date INTEGER NOT NULL,
        shortlisted_date INTEGER,
        interview_date INTEGER,
        offer_date INTEGER,
        analysis_id TEXT
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_jobs_user_title_company ON job_applications (user_id, job_title, company_name);",
    """
    CREATE TABLE IF NOT EXISTS analyses (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        resume_file_name TEXT,
        job_description TEXT NOT NULL,
        job_application_id TEXT,
        status TEXT NOT NULL,
        result_json TEXT NOT NULL,
        error_message TEXT,
        is_favorited INTEGER NOT NULL DEFAULT 0,
        created_at INTEGER NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS notification_states (
        user_id TEXT PRIMARY KEY,
        state_json TEXT NOT NULL,
        updated_at INTEGER NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS resume_documents (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        template_id TEXT,
        last_modified INTEGER NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_resume_documents_user ON resume_documents (user_id, last_modified);",
    """
    CREATE TABLE IF NOT EXISTS interview_sessions (
        user_id TEXT PRIMARY KEY,
        jd TEXT NOT NULL,
        resume_file_name TEXT,
        questions_json TEXT NOT NULL,
        current_idx INTEGER NOT NULL,
        updated_at INTEGER NOT NULL
    );
    """,
)

_TABLES = (
    "contacts",
    "target_companies",
    "outreach_sequences",
    "job_applications",
    "analyses",
    "notification_states",
    "resume_documents",
    "interview_sessions",
)


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return uuid.uuid4().hex


def get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        _conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        _conn.row_factory = sqlite3.Row
        _conn.execute("PRAGMA journal_mode=WAL;")
        _conn.execute("PRAGMA synchronous=NORMAL;")
        _conn.execute("PRAGMA busy_timeout=5000;")
        for statement in _SCHEMA:
            _conn.execute(statement)
        return _conn


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    conn = get_connection()
    with _conn_lock:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        conn.commit()


def fetch_all(sql: str, params: tuple = ()) -> list[sqlite3.Row]:
    conn = get_connection()
    with _conn_lock:
        return conn.execute(sql, params).fetchall()


def fetch_one(sql: str, params: tuple = ()) -> sqlite3.Row | None:
    conn = get_connection()
    with _conn_lock:
        return conn.execute(sql, params).fetchone()


def clear_all_tables() -> None:
    with transaction() as conn:
        for table in _TABLES:
            conn.execute(f"DELETE FROM {table}")


def close_connection() -> None:
    global _conn
    with _conn_lock:
        if _conn is not None:
            _conn.close()
            _conn = None
