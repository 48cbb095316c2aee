"""
Unit Tests: Prompt adapters
Template rendering, JSON repair and schema enforcement against a fake LLM.
"""

import json

import pytest

from conftest import FakeLLM
from app.backend.errors import GenerationError
from app.backend.generation import (
    ACTIONABLE_INSIGHTS,
    INVESTMENT_RISKS,
    STARTUP_EVALUATION,
    parse_json_with_repair,
    render_prompt,
)
from app.backend.models import EvaluationInput, InsightsInput, RisksInput


RISKS_PAYLOAD = RisksInput(
    founder_materials="Startup Name: Acme\n\nBusiness Pitch / Idea:\nGroceries.",
    financial_projections="projections",
    market_data="market",
    competitive_landscape="competitors",
)


class TestRenderPrompt:
    def test_placeholders_are_substituted(self):
        assert render_prompt("A={a} B={b}", {"a": 1, "b": "two"}) == "A=1 B=two"

    def test_placeholder_text_inside_values_is_not_expanded(self):
        rendered = render_prompt("{first} / {second}", {"first": "{second}", "second": "X"})
        assert rendered == "{second} / X"

    def test_unknown_placeholders_and_json_braces_are_left_alone(self):
        template = '{known} {"risks": [{"risk": "string"}]} {unknown}'
        assert render_prompt(template, {"known": "ok"}) == 'ok {"risks": [{"risk": "string"}]} {unknown}'


class TestParseJsonWithRepair:
    def test_plain_object(self):
        assert parse_json_with_repair('{"evaluation": "E"}') == {"evaluation": "E"}

    def test_code_fenced_object_is_repaired(self):
        raw = 'Here you go:\n```json\n{"evaluation": "E"}\n```'
        assert parse_json_with_repair(raw) == {"evaluation": "E"}

    @pytest.mark.parametrize("raw", ["no json here", "[1, 2]", "{broken"])
    def test_unusable_output_raises(self, raw):
        with pytest.raises(ValueError):
            parse_json_with_repair(raw)


class TestPromptAdapters:
    def test_user_prompts_carry_every_input_field(self):
        prompt = INVESTMENT_RISKS.build_user_prompt(RISKS_PAYLOAD)
        for value in ("Startup Name: Acme", "projections", "market", "competitors"):
            assert value in prompt
        assert "{founderMaterials}" not in prompt

    @pytest.mark.asyncio
    async def test_evaluation_success(self):
        llm = FakeLLM(reply=json.dumps({"evaluation": "Strong team, crowded market."}))

        result = await STARTUP_EVALUATION.generate(
            llm, EvaluationInput(founder_materials="materials", aggregated_data="data")
        )

        assert result.evaluation == "Strong team, crowded market."
        assert len(llm.calls) == 1
        call = llm.calls[0]
        assert call["json_output"] is True
        assert call["max_tokens"] == 3000
        assert call["system_prompt"] == STARTUP_EVALUATION.system_prompt
        assert "materials" in call["user_content"]

    @pytest.mark.asyncio
    async def test_dict_payload_is_validated_by_alias(self):
        llm = FakeLLM(
            reply=json.dumps(
                {
                    "swotAnalysis": {
                        "strengths": "S",
                        "weaknesses": "W",
                        "opportunities": "O",
                        "threats": "T",
                    },
                    "investmentInsights": "I",
                }
            )
        )

        result = await ACTIONABLE_INSIGHTS.generate(
            llm, {"founderMaterials": "materials", "publicData": "public"}
        )

        assert result.swot_analysis.threats == "T"
        assert result.investment_insights == "I"

    @pytest.mark.asyncio
    async def test_invalid_dict_payload_raises_generation_error(self):
        llm = FakeLLM(reply=json.dumps({"evaluation": "unused"}))

        with pytest.raises(GenerationError, match="input failed validation") as exc_info:
            await STARTUP_EVALUATION.generate(llm, {"founderMaterials": "materials"})

        assert exc_info.value.adapter == "evaluation"
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_risks_are_parsed_in_order(self):
        llm = FakeLLM(
            reply=json.dumps(
                {
                    "risks": [
                        {"risk": "Churn", "mitigationStrategy": "Annual contracts"},
                        {"risk": "Funding", "mitigationStrategy": "Bridge round"},
                    ]
                }
            )
        )

        result = await INVESTMENT_RISKS.generate(llm, RISKS_PAYLOAD)

        assert [risk.risk for risk in result.risks] == ["Churn", "Funding"]

    @pytest.mark.asyncio
    async def test_schema_violation_raises_generation_error(self):
        llm = FakeLLM(reply=json.dumps({"risks": [{"risk": "Churn"}]}))

        with pytest.raises(GenerationError) as exc_info:
            await INVESTMENT_RISKS.generate(llm, RISKS_PAYLOAD)

        assert exc_info.value.adapter == "risks"
        assert "schema validation" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_output_raises_generation_error(self):
        llm = FakeLLM(reply="I cannot help with that.")

        with pytest.raises(GenerationError):
            await STARTUP_EVALUATION.generate(
                llm, EvaluationInput(founder_materials="m", aggregated_data="d")
            )

    @pytest.mark.asyncio
    async def test_empty_output_raises_generation_error(self):
        llm = FakeLLM(reply="")

        with pytest.raises(GenerationError, match="empty"):
            await STARTUP_EVALUATION.generate(
                llm, EvaluationInput(founder_materials="m", aggregated_data="d")
            )

    @pytest.mark.asyncio
    async def test_provider_failure_raises_generation_error_without_retry(self):
        llm = FakeLLM(error=RuntimeError("LLM request failed (429): rate limited"))

        with pytest.raises(GenerationError, match="429") as exc_info:
            await ACTIONABLE_INSIGHTS.generate(
                llm, InsightsInput(founder_materials="m", public_data="p")
            )

        assert exc_info.value.adapter == "insights"
        assert len(llm.calls) == 1
