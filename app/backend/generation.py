from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel

from .constants import MAX_ERROR_CHARS
from .errors import GenerationError
from .llm_client import LLMClient
from .models import (
    EvaluationInput,
    EvaluationOutput,
    InsightsInput,
    InsightsOutput,
    RisksInput,
    RisksOutput,
)
from .prompts import evaluation as evaluation_prompt
from .prompts import insights as insights_prompt
from .prompts import risks as risks_prompt


logger = logging.getLogger("uvicorn.error")

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def _truncate(text: str, max_chars: int = MAX_ERROR_CHARS) -> str:
    value = (text or "").strip()
    if len(value) <= max_chars:
        return value
    return value[: max_chars - 3] + "..."


def render_prompt(template: str, values: dict[str, Any]) -> str:
    # Single pass, so placeholder-looking text inside a value is left alone.
    return _PLACEHOLDER.sub(
        lambda match: str(values[match.group(1)]) if match.group(1) in values else match.group(0),
        template,
    )


def parse_json_with_repair(raw_content: str) -> dict:
    try:
        parsed = json.loads(raw_content)
    except json.JSONDecodeError:
        start = raw_content.find("{")
        end = raw_content.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("Output is not valid JSON.")
        try:
            parsed = json.loads(raw_content[start : end + 1])
        except json.JSONDecodeError as exc:
            raise ValueError("Output could not be repaired into valid JSON.") from exc

    if not isinstance(parsed, dict):
        raise ValueError("JSON root must be an object.")
    return parsed


@dataclass(frozen=True)
class PromptAdapter(Generic[InputT, OutputT]):
    """One fixed prompt template bound to typed input and output schemas."""

    name: str
    version: str
    system_prompt: str
    user_prompt_template: str
    input_model: Type[InputT]
    output_model: Type[OutputT]
    max_tokens: int = 1800

    def build_user_prompt(self, payload: InputT) -> str:
        return render_prompt(self.user_prompt_template, payload.model_dump(by_alias=True))

    async def generate(self, llm: LLMClient, payload: InputT | dict) -> OutputT:
        if not isinstance(payload, self.input_model):
            try:
                payload = self.input_model.model_validate(payload)
            except ValueError as exc:
                raise GenerationError(
                    f"{self.name} input failed validation: {_truncate(str(exc))}",
                    adapter=self.name,
                ) from exc

        try:
            raw_content = await llm.complete(
                system_prompt=self.system_prompt,
                user_content=self.build_user_prompt(payload),
                json_output=True,
                max_tokens=self.max_tokens,
            )
        except Exception as exc:
            raise GenerationError(f"{self.name} request failed: {_truncate(str(exc))}", adapter=self.name) from exc

        if not raw_content:
            raise GenerationError(f"{self.name} response content is empty.", adapter=self.name)

        try:
            result = self.output_model.model_validate(parse_json_with_repair(raw_content))
        except ValueError as exc:
            raise GenerationError(
                f"{self.name} output failed schema validation: {_truncate(str(exc))}",
                adapter=self.name,
            ) from exc

        logger.info("generation_done adapter=%s version=%s", self.name, self.version)
        return result


STARTUP_EVALUATION: PromptAdapter[EvaluationInput, EvaluationOutput] = PromptAdapter(
    name="evaluation",
    version=evaluation_prompt.EVALUATION_VERSION,
    system_prompt=evaluation_prompt.SYSTEM_PROMPT,
    user_prompt_template=evaluation_prompt.USER_PROMPT_TEMPLATE,
    input_model=EvaluationInput,
    output_model=EvaluationOutput,
    max_tokens=3000,
)

ACTIONABLE_INSIGHTS: PromptAdapter[InsightsInput, InsightsOutput] = PromptAdapter(
    name="insights",
    version=insights_prompt.INSIGHTS_VERSION,
    system_prompt=insights_prompt.SYSTEM_PROMPT,
    user_prompt_template=insights_prompt.USER_PROMPT_TEMPLATE,
    input_model=InsightsInput,
    output_model=InsightsOutput,
)

INVESTMENT_RISKS: PromptAdapter[RisksInput, RisksOutput] = PromptAdapter(
    name="risks",
    version=risks_prompt.RISKS_VERSION,
    system_prompt=risks_prompt.SYSTEM_PROMPT,
    user_prompt_template=risks_prompt.USER_PROMPT_TEMPLATE,
    input_model=RisksInput,
    output_model=RisksOutput,
)
