from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

_SCORING_CONFIG_CACHE: dict[str, Any] | None = None
_SCORING_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"


def get_scoring_config() -> dict[str, Any]:
    """Load scoring config from repo-level config/scoring.yaml and cache it."""
    global _SCORING_CONFIG_CACHE

    if _SCORING_CONFIG_CACHE is not None:
        return _SCORING_CONFIG_CACHE

    if not _SCORING_CONFIG_PATH.exists():
        raise RuntimeError(
            f"Scoring config not found at '{_SCORING_CONFIG_PATH}'. "
            "Expected file: config/scoring.yaml"
        )

    try:
        raw = _SCORING_CONFIG_PATH.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(
            f"Failed to read scoring config '{_SCORING_CONFIG_PATH}': {exc}"
        ) from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(
            f"Invalid YAML in scoring config '{_SCORING_CONFIG_PATH}': {exc}"
        ) from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(
            f"Invalid scoring config '{_SCORING_CONFIG_PATH}': expected a top-level mapping."
        )

    _SCORING_CONFIG_CACHE = parsed
    return _SCORING_CONFIG_CACHE


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'referral.degree_base.1'."""
    if not path:
        return default

    current: Any = get_scoring_config()
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        if key in current:
            current = current[key]
        elif key.isdigit() and int(key) in current:
            # YAML loads bare numeric keys as ints
            current = current[int(key)]
        else:
            return default
    return current


@dataclass(frozen=True)
class RecencyTier:
    max_days: float
    bonus: float


@dataclass(frozen=True)
class ReferralWeights:
    degree_base: dict[int, float]
    company_match_bonus: float
    strength_max_bonus: float
    strength_scale_max: float
    recency_tiers: tuple[RecencyTier, ...]


DEFAULT_REFERRAL_WEIGHTS = ReferralWeights(
    degree_base={1: 0.80, 2: 0.60, 3: 0.30},
    company_match_bonus=0.25,
    strength_max_bonus=0.30,
    strength_scale_max=5.0,
    recency_tiers=(
        RecencyTier(max_days=7, bonus=0.15),
        RecencyTier(max_days=30, bonus=0.12),
        RecencyTier(max_days=90, bonus=0.08),
    ),
)


def _float_value(path: str, default: float) -> float:
    value = get_scoring_value(path, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _recency_tiers() -> tuple[RecencyTier, ...]:
    raw = get_scoring_value("referral.recency_tiers", None)
    if not isinstance(raw, list) or not raw:
        return DEFAULT_REFERRAL_WEIGHTS.recency_tiers
    tiers: list[RecencyTier] = []
    for item in raw:
        if not isinstance(item, dict):
            raise RuntimeError("referral.recency_tiers entries must be mappings with max_days and bonus.")
        tiers.append(RecencyTier(max_days=float(item["max_days"]), bonus=float(item["bonus"])))
    tiers.sort(key=lambda tier: tier.max_days)
    return tuple(tiers)


def load_referral_weights() -> ReferralWeights:
    """Build referral weights from config/scoring.yaml, keeping defaults for missing keys."""
    defaults = DEFAULT_REFERRAL_WEIGHTS
    degree_base = {
        degree: _float_value(f"referral.degree_base.{degree}", base)
        for degree, base in defaults.degree_base.items()
    }
    return ReferralWeights(
        degree_base=degree_base,
        company_match_bonus=_float_value("referral.company_match_bonus", defaults.company_match_bonus),
        strength_max_bonus=_float_value("referral.strength.max_bonus", defaults.strength_max_bonus),
        strength_scale_max=_float_value("referral.strength.scale_max", defaults.strength_scale_max),
        recency_tiers=_recency_tiers(),
    )
