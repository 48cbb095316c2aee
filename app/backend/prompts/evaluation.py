EVALUATION_VERSION = "eval_v1"

SYSTEM_PROMPT = (
    "You are an experienced venture capital analyst. Return ONLY valid JSON. No markdown. "
    "No code fences. No extra text. Use double quotes for all JSON strings."
)

USER_PROMPT_TEMPLATE = """Evaluate the startup based on the following information:

Founder Materials: {founderMaterials}
Aggregated Data: {aggregatedData}

Provide a comprehensive evaluation of the startup, including:

- Market Analysis: Assess the market size, growth potential, and trends.
- Competitive Landscape: Analyze the competitive environment and the startup's position.
- Team Assessment: Evaluate the strength and experience of the founding team.
- SWOT Analysis: Identify the startup's strengths, weaknesses, opportunities, and threats.
- Risk Assessment: Identify potential risks associated with the investment and suggest mitigation strategies.
- Investment Viability: Determine the overall investment viability of the startup.

Output JSON schema (must match exactly):
{
  "evaluation": "string"
}"""
