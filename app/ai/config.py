import os
from dataclasses import dataclass

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    api_key: str
    base_url: str
    enabled: bool
    timeout_s: float
    max_retries: int


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "groq").strip().lower()
    model = os.getenv("AI_MODEL", "llama-3.3-70b-versatile").strip()
    if provider == "groq":
        api_key = (os.getenv("GROQ_API_KEY") or "").strip()
        base_url = (os.getenv("GROQ_BASE_URL") or GROQ_BASE_URL).strip()
    elif provider == "openai":
        api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
        base_url = (os.getenv("OPENAI_BASE_URL") or "https://api.openai.com/v1").strip()
    else:
        raise ValueError(f"Unsupported AI_PROVIDER='{provider}'")
    return AIConfig(
        provider=provider,
        model=model,
        api_key=api_key,
        base_url=base_url,
        enabled=_env_bool("LLM_ENABLED", True),
        timeout_s=float(os.getenv("LLM_TIMEOUT_S", "30")),
        max_retries=int(os.getenv("LLM_MAX_RETRIES", "2")),
    )
