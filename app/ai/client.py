from __future__ import annotations

import json
import logging
import re
import time
import uuid
from functools import lru_cache
from typing import Any, Literal, Sequence

from openai import OpenAI

from app.ai.config import AIConfig, load_ai_config
from app.ai.types import ChatMessage, Empty, LLMResult, Malformed, Parsed
from app.analytics.db import log_ai_analysis_run

logger = logging.getLogger(__name__)

JsonKind = Literal["object", "array"]

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class LLMServiceError(RuntimeError):
    def __init__(self, message: str, *, code: str = "llm_unavailable", status_code: int = 503):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def llm_enabled(cfg: AIConfig | None = None) -> bool:
    cfg = cfg or load_ai_config()
    if not cfg.enabled:
        return False
    if not cfg.api_key or _looks_like_placeholder(cfg.api_key):
        return False
    return True


@lru_cache(maxsize=4)
def _client(api_key: str, base_url: str, timeout_s: float, max_retries: int) -> OpenAI:
    return OpenAI(api_key=api_key, base_url=base_url, timeout=timeout_s, max_retries=max_retries)


def _log_ai_run(
    *,
    run_id: str,
    task: str,
    model: str,
    status: str,
    latency_ms: int | None,
    error_code: str | None = None,
) -> None:
    try:
        log_ai_analysis_run(
            run_id=run_id,
            task=task or "unknown",
            model=model,
            status=status,
            error_code=error_code,
            latency_ms=latency_ms,
        )
    except Exception:  # pragma: no cover - analytics must not break AI responses
        logger.debug("ai_run_logging_failed", exc_info=True)


def _complete(
    cfg: AIConfig,
    messages: Sequence[ChatMessage],
    *,
    temperature: float,
    max_output_tokens: int,
    json_object: bool = False,
) -> str:
    create_kwargs: dict[str, Any] = {
        "model": cfg.model,
        "messages": [{"role": m.role, "content": m.content} for m in messages],
        "temperature": temperature,
        "max_tokens": max_output_tokens,
    }
    if json_object:
        create_kwargs["response_format"] = {"type": "json_object"}
    client = _client(cfg.api_key, cfg.base_url, cfg.timeout_s, cfg.max_retries)
    response = client.chat.completions.create(**create_kwargs)
    content = response.choices[0].message.content if response.choices else ""
    return (content or "").strip()


def extract_json(text: str, expect: JsonKind = "object") -> Any | None:
    """Decode the JSON payload of an LLM reply, tolerating code fences and surrounding prose."""
    cleaned = _FENCE_RE.sub("", (text or "").strip()).strip()
    if not cleaned:
        return None
    open_char, close_char = ("{", "}") if expect == "object" else ("[", "]")
    expected_type = dict if expect == "object" else list

    candidates = [cleaned]
    start = cleaned.find(open_char)
    end = cleaned.rfind(close_char)
    if start != -1 and end > start:
        candidates.append(cleaned[start : end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, expected_type):
            return parsed
    return None


def json_completion(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.3,
    max_output_tokens: int = 1500,
    task: str = "unknown",
    expect: JsonKind = "object",
) -> LLMResult:
    cfg = load_ai_config()
    run_id = uuid.uuid4().hex
    started = time.perf_counter()

    def elapsed() -> int:
        return int((time.perf_counter() - started) * 1000)

    if not llm_enabled(cfg):
        _log_ai_run(run_id=run_id, task=task, model=cfg.model, status="skipped", error_code="llm_disabled", latency_ms=0)
        return Empty(reason="llm_disabled")

    try:
        content = _complete(
            cfg,
            [ChatMessage("system", system_prompt), ChatMessage("user", user_prompt)],
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            json_object=expect == "object",
        )
    except Exception as exc:  # noqa: BLE001 - callers decide the fallback
        logger.warning("llm_json_failed task=%s model=%s prompt_len=%s: %s", task, cfg.model, len(user_prompt), exc)
        _log_ai_run(run_id=run_id, task=task, model=cfg.model, status="error", error_code="llm_exception", latency_ms=elapsed())
        return Empty(reason="llm_exception")

    if not content:
        _log_ai_run(run_id=run_id, task=task, model=cfg.model, status="empty", error_code="empty_response", latency_ms=elapsed())
        return Empty()

    parsed = extract_json(content, expect)
    if parsed is None:
        logger.info("llm_json_malformed task=%s chars=%s", task, len(content))
        _log_ai_run(run_id=run_id, task=task, model=cfg.model, status="malformed", error_code="invalid_json", latency_ms=elapsed())
        return Malformed(raw_text=content)

    _log_ai_run(run_id=run_id, task=task, model=cfg.model, status="success", latency_ms=elapsed())
    return Parsed(value=parsed)


def text_completion(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.4,
    max_output_tokens: int = 900,
    task: str = "unknown",
) -> str | None:
    cfg = load_ai_config()
    run_id = uuid.uuid4().hex
    started = time.perf_counter()
    if not llm_enabled(cfg):
        _log_ai_run(run_id=run_id, task=task, model=cfg.model, status="skipped", error_code="llm_disabled", latency_ms=0)
        return None
    try:
        content = _complete(
            cfg,
            [ChatMessage("system", system_prompt), ChatMessage("user", user_prompt)],
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("llm_text_failed task=%s model=%s: %s", task, cfg.model, exc)
        _log_ai_run(
            run_id=run_id,
            task=task,
            model=cfg.model,
            status="error",
            error_code="llm_exception",
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        return None
    _log_ai_run(
        run_id=run_id,
        task=task,
        model=cfg.model,
        status="success" if content else "empty",
        error_code=None if content else "empty_response",
        latency_ms=int((time.perf_counter() - started) * 1000),
    )
    return content or None


def require_parsed(result: LLMResult, *, message: str) -> Any:
    if isinstance(result, Parsed):
        return result.value
    if isinstance(result, Empty) and result.reason == "llm_disabled":
        raise LLMServiceError("AI provider is not configured. Set GROQ_API_KEY.", code="llm_disabled")
    if isinstance(result, Malformed):
        raise LLMServiceError(message, code="llm_invalid", status_code=502)
    raise LLMServiceError(message, code="llm_unavailable")


def require_text(text: str | None, *, message: str) -> str:
    if text:
        return text
    if not llm_enabled():
        raise LLMServiceError("AI provider is not configured. Set GROQ_API_KEY.", code="llm_disabled")
    raise LLMServiceError(message, code="llm_unavailable")
