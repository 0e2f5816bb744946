from __future__ import annotations

import json
import logging
import re
import time
import uuid
from functools import lru_cache
from typing import Any

from openai import OpenAI, OpenAIError

from app.core.config import settings

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_PLACEHOLDER_PREFIXES = ("your_", "replace_", "sk-xxx")


class LLMError(RuntimeError):
    """Raised when a required model call cannot produce usable JSON.

    ``code`` is one of ``llm_disabled`` (no usable key or LLM_ENABLED=0),
    ``llm_unavailable`` (transport/API failure) or ``llm_invalid``
    (empty, non-JSON or non-object output).
    """

    def __init__(self, message: str, *, code: str = "llm_unavailable"):
        super().__init__(message)
        self.code = code


def llm_enabled() -> bool:
    if not settings.llm_enabled:
        return False
    api_key = (settings.openai_api_key or "").strip()
    if not api_key:
        return False
    return not api_key.lower().startswith(_PLACEHOLDER_PREFIXES) and api_key.lower() != "changeme"


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.llm_timeout_s,
        max_retries=settings.llm_max_retries,
    )


def extract_json(content: str) -> Any:
    """Parse a JSON object from model output, tolerating ```json fences."""
    text = (content or "").strip()
    fenced = _FENCED_JSON.search(text)
    if fenced:
        text = fenced.group(1)
    return json.loads(text)


def json_completion_required(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.2,
    max_output_tokens: int = 4000,
    purpose: str = "unknown",
) -> dict[str, Any]:
    """Run one JSON-mode chat completion and return the decoded object."""
    if not llm_enabled():
        raise LLMError("OpenAI is not configured.", code="llm_disabled")

    run_id = uuid.uuid4().hex
    started = time.perf_counter()
    status = "success"
    error: LLMError | None = None
    payload: Any = None

    try:
        response = _client().chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
            max_tokens=max_output_tokens,
        )
        content = response.choices[0].message.content if response.choices else ""
        if not content:
            status = "empty"
            error = LLMError("The model returned an empty response. Try again.", code="llm_invalid")
        else:
            payload = extract_json(content)
            if not isinstance(payload, dict):
                status = "invalid_schema"
                error = LLMError("The model response was not a JSON object. Try again.", code="llm_invalid")
    except OpenAIError as exc:
        status = "error"
        error = LLMError(f"OpenAI request failed: {exc}", code="llm_unavailable")
    except ValueError as exc:
        status = "invalid_json"
        error = LLMError(f"The model response was not valid JSON: {exc}", code="llm_invalid")

    logger.info(
        json.dumps(
            {
                "event": "llm_run",
                "run_id": run_id,
                "purpose": purpose,
                "model": settings.openai_model,
                "status": status,
                "error_code": error.code if error else None,
                "prompt_chars": len(user_prompt),
                "latency_ms": int((time.perf_counter() - started) * 1000),
            }
        )
    )
    if error is not None:
        raise error
    return payload
