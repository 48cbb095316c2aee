RISKS_VERSION = "risks_v1"

SYSTEM_PROMPT = (
    "You are an investment analyst specializing in identifying risks associated with "
    "startup investments. Return ONLY valid JSON. No markdown. No code fences. No extra text."
)

USER_PROMPT_TEMPLATE = """Analyze the provided startup data and identify potential risks. For each risk, suggest a mitigation strategy.

Founder Materials: {founderMaterials}
Financial Projections: {financialProjections}
Market Data: {marketData}
Competitive Landscape: {competitiveLandscape}

List the risks in order of severity, most severe first.

Output JSON schema (must match exactly):
{
  "risks": [
    {
      "risk": "string",
      "mitigationStrategy": "string"
    }
  ]
}"""
