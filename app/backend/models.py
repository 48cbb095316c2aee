from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    # Field names go over the wire in camelCase; Python code uses snake_case.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class DocumentRef(WireModel):
    name: str
    path: str


class Submission(WireModel):
    startup_name: str
    pitch: str
    uploaded_document_refs: Tuple[DocumentRef, ...] = ()


@dataclass(frozen=True)
class StagedDocument:
    path: str
    mime_hint: str
    data: bytes


@dataclass(frozen=True)
class SupportingContext:
    aggregated_data: str
    financial_projections: str
    competitive_landscape: str


class EvaluationInput(WireModel):
    founder_materials: str
    aggregated_data: str


class EvaluationOutput(WireModel):
    evaluation: str


class InsightsInput(WireModel):
    founder_materials: str
    public_data: str


class SwotAnalysis(WireModel):
    strengths: str
    weaknesses: str
    opportunities: str
    threats: str


class InsightsOutput(WireModel):
    swot_analysis: SwotAnalysis
    investment_insights: str


class RisksInput(WireModel):
    founder_materials: str
    financial_projections: str
    market_data: str
    competitive_landscape: str


class InvestmentRisk(WireModel):
    risk: str
    mitigation_strategy: str


class RisksOutput(WireModel):
    risks: List[InvestmentRisk]


class EvaluationSuccess(WireModel):
    success: Literal[True] = True
    startup_name: str
    evaluation: str
    swot: SwotAnalysis
    investment_insights: str
    risks: List[InvestmentRisk]


class EvaluationFailure(WireModel):
    success: Literal[False] = False
    error: str


EvaluationOutcome = Union[EvaluationSuccess, EvaluationFailure]


class UploadRequest(WireModel):
    filename: str
    content_type: Optional[str] = None


class UploadTicket(WireModel):
    name: str
    path: str
    content_type: str
    upload_url: str
    expires_in_minutes: int
