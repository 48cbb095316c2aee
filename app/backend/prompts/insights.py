INSIGHTS_VERSION = "insights_v1"

SYSTEM_PROMPT = (
    "You are an expert investment analyst evaluating startups. Return ONLY valid JSON. "
    "No markdown. No code fences. No extra text."
)

USER_PROMPT_TEMPLATE = """Based on the provided founder materials and aggregated public data, synthesize key information and generate concise, actionable insights tailored for investors. Provide a SWOT analysis (strengths, weaknesses, opportunities, and threats) and overall investment insights.

Founder Materials: {founderMaterials}
Public Data: {publicData}

Output JSON schema (must match exactly):
{
  "swotAnalysis": {
    "strengths": "string",
    "weaknesses": "string",
    "opportunities": "string",
    "threats": "string"
  },
  "investmentInsights": "string"
}"""
