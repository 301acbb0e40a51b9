from __future__ import annotations

import logging
from typing import Any

from app.ai.client import json_completion, require_parsed
from app.core import notification_store, outreach_store
from app.core.config import settings
from app.core.config.scoring import get_scoring_value
from app.core.db import new_id, now_ms
from app.schemas.outreach import (
    Contact,
    ContactCreate,
    GeneratedContact,
    InsertResult,
    OutreachSequence,
    OutreachSequenceCreate,
    ScoredContact,
    SequenceMessage,
    SequenceStatus,
    SuggestContactsResponse,
    TargetCompanyCreate,
)
from app.services.referral_scorer import rank_contacts, score_contact

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000


class OutreachError(RuntimeError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _first_name(name: str | None) -> str:
    parts = (name or "").split()
    return parts[0] if parts else "there"


def suggest_contacts_for_company(
    user_id: str,
    company_name: str,
    limit: int | None = None,
    *,
    now: int | None = None,
) -> SuggestContactsResponse:
    company = company_name.strip()
    if not company:
        raise OutreachError("company_name must not be blank.")
    if limit is None:
        limit = int(get_scoring_value("outreach.suggest_limit", 10))
    contacts = outreach_store.list_contacts(user_id)
    ranked = rank_contacts(contacts, company, limit, now_ms=now)
    logger.info("outreach_suggest user=%s company=%s contacts=%s returned=%s", user_id, company, len(contacts), len(ranked))
    return SuggestContactsResponse(
        company_name=company,
        candidates=[
            ScoredContact(contact=item.contact, referral_likelihood=item.referral_likelihood)
            for item in ranked
        ],
    )


def draft_sequence_messages(
    *,
    contact: Contact,
    company_name: str,
    target_role: str | None,
    channel: str,
    sender_name: str | None,
) -> list[SequenceMessage]:
    you = sender_name or "there"
    role = target_role or "a role"
    greeting_name = _first_name(contact.name)
    intro = f"Hi {greeting_name},"
    if (contact.company or "").strip().lower() == company_name.strip().lower():
        context_line = f"Noticed you're at {company_name}. I'm exploring {role} opportunities there."
    else:
        context_line = (
            f"I'm exploring {role} opportunities at {company_name} and saw you're well-connected in the space."
        )
    if contact.connection_degree == 1:
        ask = "Would you be open to a quick 10-min chat or a referral if it feels like a fit?"
    else:
        ask = "If comfortable, would you introduce me to someone on the team for context or a referral?"
    close = "Happy to share a concise resume and tailored summary. Appreciate it!"
    signoff = f"- {you}"

    if channel == "email":
        intro_body = (
            f"{intro}\n\n"
            f"{context_line}\n"
            "I've been working on outcomes like:\n"
            "• [Add 1-2 quantified wins relevant to the team]\n"
            "• [Add 1-2 relevant tools/stack highlights]\n\n"
            f"{ask}\n"
            f"{close}\n\n"
            f"{signoff}"
        )
        follow_up_body = (
            f"Hi {greeting_name},\n\n"
            "Just wanted to float this to the top of your inbox. Would value your quick take. "
            'If it\'s easier, a simple "yes/no" works and I\'ll take it from there.\n\n'
            f"Thanks!\n{signoff}"
        )
        return [
            SequenceMessage(type="email", subject=f"[Warm Intro] {role} @ {company_name}", body=intro_body),
            SequenceMessage(type="email", subject=f"Quick follow-up: {role} @ {company_name}", body=follow_up_body),
        ]

    return [
        SequenceMessage(
            type="dm",
            body=f"{intro} {context_line} A quick intro or pointer would mean a lot. Can I send a 1-pager? {signoff}",
        ),
        SequenceMessage(
            type="dm",
            body=f"Bumping this in case it got buried. Would love a quick steer. Thanks! {signoff}",
        ),
    ]


def create_outreach_sequence(
    user_id: str,
    payload: OutreachSequenceCreate,
    *,
    sender_name: str | None = None,
    now: int | None = None,
) -> OutreachSequence:
    contact = outreach_store.get_contact(user_id, payload.contact_id)
    if contact is None:
        raise OutreachError("Contact not found.", status_code=404)

    created_at = now_ms() if now is None else now
    company_name = payload.company_name.strip()
    sequence = OutreachSequence(
        id=new_id(),
        user_id=user_id,
        contact_id=contact.id,
        company_name=company_name,
        target_role=payload.target_role,
        channel=payload.channel,
        messages=draft_sequence_messages(
            contact=contact,
            company_name=company_name,
            target_role=payload.target_role,
            channel=payload.channel,
            sender_name=sender_name,
        ),
        status="draft",
        referral_likelihood=score_contact(contact, company_name, now_ms=created_at),
        next_follow_up_at=created_at + settings.follow_up_delay_days * MS_PER_DAY,
        created_at=created_at,
    )
    outreach_store.insert_sequence(sequence)
    notification_store.notify(
        user_id,
        type="reminder",
        title="Outreach follow-up scheduled",
        message=f"Follow up with {contact.name} about {company_name} in {settings.follow_up_delay_days} days.",
        priority="medium",
    )
    logger.info(
        "outreach_sequence_created user=%s contact=%s company=%s likelihood=%s",
        user_id,
        contact.id,
        company_name,
        sequence.referral_likelihood,
    )
    return sequence


def update_sequence_status(user_id: str, sequence_id: str, status: SequenceStatus) -> bool:
    if not outreach_store.update_sequence_fields(user_id, sequence_id, status=status):
        raise OutreachError("Sequence not found.", status_code=404)
    return True


def schedule_follow_up(user_id: str, sequence_id: str, next_follow_up_at: int) -> bool:
    if not outreach_store.update_sequence_fields(user_id, sequence_id, next_follow_up_at=next_follow_up_at):
        raise OutreachError("Sequence not found.", status_code=404)
    return True


def seed_test_data(user_id: str, *, now: int | None = None) -> str:
    if outreach_store.has_contacts(user_id):
        return "already_seeded"
    current = now_ms() if now is None else now
    outreach_store.add_contacts(
        user_id,
        [
            ContactCreate(
                name="Priya Sharma",
                email="priya@example.com",
                company="Acme Corp",
                title="Engineering Manager",
                connection_degree=2,
                relationship_strength=4,
                last_contacted_at=current - 10 * MS_PER_DAY,
            ),
            ContactCreate(
                name="Alex Johnson",
                email="alex@example.com",
                company="Globex",
                title="Senior Recruiter",
                connection_degree=1,
                relationship_strength=5,
                last_contacted_at=current - 3 * MS_PER_DAY,
            ),
            ContactCreate(
                name="Mei Chen",
                email="mei@example.com",
                company="Acme Corp",
                title="Staff Engineer",
                connection_degree=3,
                relationship_strength=3,
            ),
        ],
    )
    outreach_store.add_target_company(
        user_id,
        TargetCompanyCreate(company_name="Acme Corp", target_role="Senior Frontend Engineer", priority="high"),
    )
    return "seeded"


def insert_generated_contacts(user_id: str, company_name: str, contacts: list[GeneratedContact]) -> InsertResult:
    """Store LLM-suggested leads, skipping emails the user already has or that repeat in the batch."""
    seen = outreach_store.existing_emails(user_id, [c.email for c in contacts if c.email])
    degree = int(get_scoring_value("outreach.generated_contacts.connection_degree", 2))
    strength = float(get_scoring_value("outreach.generated_contacts.relationship_strength", 3))

    to_insert: list[ContactCreate] = []
    for generated in contacts:
        email_key = outreach_store.normalize_email(generated.email)
        if email_key and email_key in seen:
            continue
        if email_key:
            seen.add(email_key)
        to_insert.append(
            ContactCreate(
                name=generated.name,
                email=email_key,
                company=company_name,
                title=generated.title,
                connection_degree=degree,
                relationship_strength=strength,
            )
        )
    if to_insert:
        outreach_store.add_contacts(user_id, to_insert)
    return InsertResult(inserted=len(to_insert))


def _clamp_count(count: int | None) -> int:
    low = int(get_scoring_value("outreach.generated_contacts.min", 3))
    high = int(get_scoring_value("outreach.generated_contacts.max", 10))
    default = int(get_scoring_value("outreach.generated_contacts.default", 5))
    return min(max(default if count is None else count, low), high)


def _coerce_generated(items: list[Any]) -> list[GeneratedContact]:
    contacts: list[GeneratedContact] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "").strip()
        if not name:
            continue
        title = str(item["title"]).strip()[:200] if item.get("title") else None
        email = str(item["email"]).strip()[:320] if item.get("email") else None
        contacts.append(GeneratedContact(name=name[:200], title=title, email=email))
    return contacts


def generate_contacts_for_company(
    user_id: str,
    company_name: str,
    *,
    title_hint: str | None = None,
    count: int | None = None,
) -> InsertResult:
    company = company_name.strip()
    if not company:
        raise OutreachError("company_name must not be blank.")
    total = _clamp_count(count)
    hint = (title_hint or "").strip()
    preferred = f'"{hint}"' if hint else "the most relevant hiring counterpart"
    result = json_completion(
        system_prompt="Return JSON only. No markdown code fences.",
        user_prompt=(
            "You are a helpful assistant that suggests likely professional contacts for warm introductions at a company.\n\n"
            "Task:\n"
            f'- Generate {total} realistic contacts for the company "{company}".\n'
            f"- Prefer roles related to {preferred} (e.g., hiring managers, team leads, recruiters).\n"
            "- Include plausible full names and job titles. Include emails only if you can infer a generic pattern; "
            "otherwise omit email.\n"
            "- Output strictly a JSON array of objects with fields: name (string), title (string), "
            "email (string | omit if unknown).\n"
            "Only return valid JSON. No extra commentary."
        ),
        temperature=0.4,
        task="outreach_generate_contacts",
        expect="array",
    )
    items = require_parsed(result, message="Failed to parse contacts JSON from model. Try again.")
    generated = _coerce_generated(items)
    inserted = insert_generated_contacts(user_id, company, generated)
    logger.info(
        "outreach_generated_contacts user=%s company=%s suggested=%s inserted=%s",
        user_id,
        company,
        len(generated),
        inserted.inserted,
    )
    return inserted
