from __future__ import annotations

import os
from typing import Any

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI


DEFAULT_BASE_URL = "https://api.gptsapi.net/v1"
DEFAULT_MODEL = "gpt-5.1-chat"
DEFAULT_TIMEOUT_SECONDS = 120.0


def _get_api_key() -> str:
    api_key = os.getenv("GPTSAPI_KEY", "").strip()
    if not api_key:
        raise RuntimeError(
            "Missing GPTSAPI_KEY. Set it before starting the evaluator "
            '(example: export GPTSAPI_KEY="YOUR_KEY_HERE").'
        )
    return api_key


def _optional_float_env(name: str) -> float | None:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {value!r}.") from exc


def _extract_content(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        parts: list[str] = []
        for item in value:
            if isinstance(item, dict):
                text = item.get("text")
                if text:
                    parts.append(str(text))
        return "\n".join(parts).strip()
    return str(value or "").strip()


class LLMClient:
    """Thin async wrapper over an OpenAI-compatible chat completions endpoint.

    Every call is a single round trip. Provider failures are re-raised as
    RuntimeError with a readable message; callers decide how to classify them.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = DEFAULT_MODEL,
        extraction_model: str | None = None,
        temperature: float | None = None,
    ) -> None:
        self._client = client
        self.model = model
        self.extraction_model = extraction_model or model
        self.temperature = temperature

    async def complete(
        self,
        *,
        system_prompt: str,
        user_content: str | list[dict],
        model: str | None = None,
        json_output: bool = False,
        max_tokens: int = 1800,
    ) -> str:
        kwargs: dict[str, Any] = {
            "model": model or self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "max_tokens": max_tokens,
        }
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except APIStatusError as exc:
            status_code = getattr(exc, "status_code", None)
            detail = getattr(exc, "message", None) or str(exc)
            if status_code is not None:
                raise RuntimeError(f"LLM request failed ({status_code}): {detail}") from exc
            raise RuntimeError(f"LLM request failed: {detail}") from exc
        except APITimeoutError as exc:
            raise RuntimeError("LLM request timed out.") from exc
        except APIConnectionError as exc:
            raise RuntimeError(f"Failed to connect to LLM provider: {exc}") from exc

        choice = response.choices[0] if response.choices else None
        if choice is None:
            raise RuntimeError("LLM response did not contain choices.")
        return _extract_content(choice.message.content)


def build_llm_client() -> LLMClient:
    base_url = os.getenv("GPTSAPI_BASE_URL", DEFAULT_BASE_URL).strip() or DEFAULT_BASE_URL
    timeout = float(os.getenv("GPTSAPI_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))
    model = os.getenv("GPTSAPI_MODEL", DEFAULT_MODEL).strip() or DEFAULT_MODEL
    extraction_model = os.getenv("GPTSAPI_EXTRACTION_MODEL", "").strip() or model
    client = AsyncOpenAI(base_url=base_url, api_key=_get_api_key(), timeout=timeout)
    return LLMClient(
        client,
        model=model,
        extraction_model=extraction_model,
        temperature=_optional_float_env("GPTSAPI_TEMPERATURE"),
    )
