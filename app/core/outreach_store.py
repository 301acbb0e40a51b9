from __future__ import annotations

import json
import sqlite3
from typing import Iterable

from app.core.db import fetch_all, fetch_one, new_id, now_ms, transaction
from app.schemas.outreach import (
    Contact,
    ContactCreate,
    OutreachSequence,
    SequenceMessage,
    TargetCompany,
    TargetCompanyCreate,
)


def normalize_email(email: str | None) -> str | None:
    if not email:
        return None
    key = email.strip().lower()
    return key or None


def _row_to_contact(row: sqlite3.Row) -> Contact:
    return Contact(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        email=row["email"],
        company=row["company"],
        title=row["title"],
        connection_degree=row["connection_degree"],
        relationship_strength=row["relationship_strength"],
        last_contacted_at=row["last_contacted_at"],
        notes=row["notes"],
        created_at=row["created_at"],
    )


def _row_to_sequence(row: sqlite3.Row) -> OutreachSequence:
    messages = [SequenceMessage(**item) for item in json.loads(row["messages_json"] or "[]")]
    return OutreachSequence(
        id=row["id"],
        user_id=row["user_id"],
        contact_id=row["contact_id"],
        company_name=row["company_name"],
        target_role=row["target_role"],
        channel=row["channel"],
        messages=messages,
        status=row["status"],
        referral_likelihood=row["referral_likelihood"],
        next_follow_up_at=row["next_follow_up_at"],
        created_at=row["created_at"],
    )


def _insert_contact(conn: sqlite3.Connection, user_id: str, contact: ContactCreate, created_at: int) -> str:
    contact_id = new_id()
    conn.execute(
        """
        INSERT INTO contacts (
            id, user_id, name, email, company, title, connection_degree,
            relationship_strength, last_contacted_at, notes, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            contact_id,
            user_id,
            contact.name,
            normalize_email(contact.email),
            contact.company,
            contact.title,
            contact.connection_degree,
            contact.relationship_strength,
            contact.last_contacted_at,
            contact.notes,
            created_at,
        ),
    )
    return contact_id


def add_contact(user_id: str, contact: ContactCreate) -> str:
    with transaction() as conn:
        return _insert_contact(conn, user_id, contact, now_ms())


def add_contacts(user_id: str, contacts: Iterable[ContactCreate]) -> list[str]:
    created_at = now_ms()
    with transaction() as conn:
        return [_insert_contact(conn, user_id, contact, created_at) for contact in contacts]


def list_contacts(user_id: str) -> list[Contact]:
    rows = fetch_all(
        "SELECT * FROM contacts WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    )
    return [_row_to_contact(row) for row in rows]


def has_contacts(user_id: str) -> bool:
    return fetch_one("SELECT 1 FROM contacts WHERE user_id = ? LIMIT 1", (user_id,)) is not None


def get_contact(user_id: str, contact_id: str) -> Contact | None:
    row = fetch_one("SELECT * FROM contacts WHERE id = ? AND user_id = ?", (contact_id, user_id))
    return _row_to_contact(row) if row else None


def existing_emails(user_id: str, emails: Iterable[str]) -> set[str]:
    keys = sorted({key for key in (normalize_email(email) for email in emails) if key})
    if not keys:
        return set()
    placeholders = ", ".join("?" for _ in keys)
    rows = fetch_all(
        f"SELECT email FROM contacts WHERE user_id = ? AND email IN ({placeholders})",
        (user_id, *keys),
    )
    return {row["email"] for row in rows}


def add_target_company(user_id: str, target: TargetCompanyCreate) -> str:
    target_id = new_id()
    with transaction() as conn:
        conn.execute(
            """
            INSERT INTO target_companies (id, user_id, company_name, target_role, priority, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (target_id, user_id, target.company_name.strip(), target.target_role, target.priority, now_ms()),
        )
    return target_id


def list_target_companies(user_id: str) -> list[TargetCompany]:
    rows = fetch_all(
        "SELECT * FROM target_companies WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    )
    return [
        TargetCompany(
            id=row["id"],
            user_id=row["user_id"],
            company_name=row["company_name"],
            target_role=row["target_role"],
            priority=row["priority"],
            created_at=row["created_at"],
        )
        for row in rows
    ]


def insert_sequence(sequence: OutreachSequence) -> None:
    messages_json = json.dumps([message.model_dump() for message in sequence.messages], ensure_ascii=False)
    with transaction() as conn:
        conn.execute(
            """
            INSERT INTO outreach_sequences (
                id, user_id, contact_id, company_name, target_role, channel, messages_json,
                status, referral_likelihood, next_follow_up_at, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                sequence.id,
                sequence.user_id,
                sequence.contact_id,
                sequence.company_name,
                sequence.target_role,
                sequence.channel,
                messages_json,
                sequence.status,
                sequence.referral_likelihood,
                sequence.next_follow_up_at,
                sequence.created_at,
            ),
        )


def list_sequences(user_id: str) -> list[OutreachSequence]:
    rows = fetch_all(
        "SELECT * FROM outreach_sequences WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
        (user_id,),
    )
    return [_row_to_sequence(row) for row in rows]


def get_sequence(user_id: str, sequence_id: str) -> OutreachSequence | None:
    row = fetch_one(
        "SELECT * FROM outreach_sequences WHERE id = ? AND user_id = ?",
        (sequence_id, user_id),
    )
    return _row_to_sequence(row) if row else None


def update_sequence_fields(user_id: str, sequence_id: str, **fields: object) -> bool:
    allowed = {"status", "next_follow_up_at"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unsupported sequence fields: {sorted(unknown)}")
    if not fields:
        return False
    assignments = ", ".join(f"{name} = ?" for name in fields)
    with transaction() as conn:
        cur = conn.execute(
            f"UPDATE outreach_sequences SET {assignments} WHERE id = ? AND user_id = ?",
            (*fields.values(), sequence_id, user_id),
        )
        return cur.rowcount > 0
