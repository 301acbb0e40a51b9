"""Referral-likelihood heuristic used to rank a user's contacts for a target company.

Scores are a pure function of the contact's connection degree, relationship strength,
employer and last-contact time, plus the target company name and a reference "now".
Weights come from ``config/scoring.yaml`` (see ``load_referral_weights``).
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Generic, Iterable, Protocol, TypeVar

from app.core.config.scoring import ReferralWeights, load_referral_weights

MS_PER_DAY = 86_400_000


class InvalidConnectionDegree(ValueError):
    def __init__(self, degree: object):
        super().__init__(f"connection_degree must be a positive integer, got {degree!r}")
        self.degree = degree


class ScorableContact(Protocol):
    company: str | None
    connection_degree: int
    relationship_strength: float
    last_contacted_at: int | None


ContactT = TypeVar("ContactT", bound=ScorableContact)


@dataclass(frozen=True)
class ScoredCandidate(Generic[ContactT]):
    contact: ContactT
    referral_likelihood: int


_weights_cache: ReferralWeights | None = None


def default_weights() -> ReferralWeights:
    global _weights_cache
    if _weights_cache is None:
        _weights_cache = load_referral_weights()
    return _weights_cache


def _now_ms() -> int:
    return int(time.time() * 1000)


def _normalize_company(name: str | None) -> str:
    return (name or "").strip().lower()


def company_matches(contact_company: str | None, target_company: str) -> bool:
    contact_key = _normalize_company(contact_company)
    return bool(contact_key) and contact_key == _normalize_company(target_company)


def degree_base(connection_degree: int, weights: ReferralWeights) -> float:
    # bool is an int subclass; True would otherwise read as degree 1
    if isinstance(connection_degree, bool) or not isinstance(connection_degree, int) or connection_degree < 1:
        raise InvalidConnectionDegree(connection_degree)
    # 3rd degree and beyond share the most distant tier
    return weights.degree_base[min(connection_degree, max(weights.degree_base))]


def strength_bonus(relationship_strength: float, weights: ReferralWeights) -> float:
    # an unknown (NaN) strength earns nothing
    if math.isnan(relationship_strength):
        return 0.0
    scaled = relationship_strength / weights.strength_scale_max * weights.strength_max_bonus
    return min(scaled, weights.strength_max_bonus)


def recency_bonus(last_contacted_at: int | None, now_ms: int, weights: ReferralWeights) -> float:
    if last_contacted_at is None:
        return 0.0
    days = (now_ms - last_contacted_at) / MS_PER_DAY
    for tier in weights.recency_tiers:
        if days <= tier.max_days:
            return tier.bonus
    return 0.0


def _round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def compute_referral_likelihood(
    *,
    target_company: str,
    connection_degree: int,
    relationship_strength: float,
    contact_company: str | None = None,
    last_contacted_at: int | None = None,
    now_ms: int | None = None,
    weights: ReferralWeights | None = None,
) -> int:
    """Return the referral likelihood of one contact as an integer in [0, 100]."""
    weights = weights or default_weights()
    now = _now_ms() if now_ms is None else now_ms

    score = degree_base(connection_degree, weights)
    if company_matches(contact_company, target_company):
        score += weights.company_match_bonus
    score += strength_bonus(relationship_strength, weights)
    score += recency_bonus(last_contacted_at, now, weights)

    score = max(0.0, min(1.0, score))
    return _round_half_away_from_zero(score * 100)


def score_contact(
    contact: ScorableContact,
    target_company: str,
    *,
    now_ms: int | None = None,
    weights: ReferralWeights | None = None,
) -> int:
    return compute_referral_likelihood(
        target_company=target_company,
        connection_degree=contact.connection_degree,
        relationship_strength=contact.relationship_strength,
        contact_company=contact.company,
        last_contacted_at=contact.last_contacted_at,
        now_ms=now_ms,
        weights=weights,
    )


def rank_contacts(
    contacts: Iterable[ContactT],
    target_company: str,
    limit: int,
    *,
    now_ms: int | None = None,
    weights: ReferralWeights | None = None,
) -> list[ScoredCandidate[ContactT]]:
    """Score every contact and return the top ``limit`` by referral likelihood.

    Ties keep their input order. All contacts are scored against the same "now" so a
    single ranking is internally consistent.
    """
    if limit < 0:
        raise ValueError("limit must not be negative")
    weights = weights or default_weights()
    now = _now_ms() if now_ms is None else now_ms

    scored = [
        ScoredCandidate(
            contact=contact,
            referral_likelihood=score_contact(contact, target_company, now_ms=now, weights=weights),
        )
        for contact in contacts
    ]
    scored.sort(key=lambda item: item.referral_likelihood, reverse=True)
    return scored[:limit]
