"""Shared fakes for the evaluation pipeline tests."""

import asyncio
from typing import Callable, Optional

import pytest

from app.backend.errors import DocumentNotFoundError
from app.backend.models import (
    EvaluationOutput,
    InsightsOutput,
    InvestmentRisk,
    RisksOutput,
    StagedDocument,
    SwotAnalysis,
)
from app.backend.submission import SubmissionForm


VALID_PITCH = "We build AI-powered inventory forecasting for independent grocery stores."


class FakeStore:
    """In-memory document store that records every call."""

    def __init__(self) -> None:
        self.documents: dict[str, StagedDocument] = {}
        self.fetch_errors: dict[str, Exception] = {}
        self.delete_errors: dict[str, Exception] = {}
        self.fetched: list[str] = []
        self.deleted: list[str] = []
        self.signed: list[tuple[str, str, int]] = []

    def add(self, path: str, data: bytes = b"%PDF-1.4", mime: str = "application/pdf") -> None:
        self.documents[path] = StagedDocument(path=path, mime_hint=mime, data=data)

    async def fetch(self, path: str) -> StagedDocument:
        self.fetched.append(path)
        await asyncio.sleep(0)
        if path in self.fetch_errors:
            raise self.fetch_errors[path]
        if path not in self.documents:
            raise DocumentNotFoundError(f"missing {path}", path=path)
        return self.documents[path]

    async def delete(self, path: str) -> None:
        self.deleted.append(path)
        await asyncio.sleep(0)
        if path in self.delete_errors:
            raise self.delete_errors[path]
        self.documents.pop(path, None)

    async def signed_upload_url(self, path: str, content_type: str, expiration_minutes: int = 15) -> str:
        self.signed.append((path, content_type, expiration_minutes))
        return f"https://storage.example.test/{path}?signature=abc"


class FakeLLM:
    """Stands in for LLMClient; replies come from a callable or a fixed string."""

    def __init__(self, reply: Optional[Callable[..., str] | str] = "", error: Optional[Exception] = None) -> None:
        self.model = "test-model"
        self.extraction_model = "test-extraction-model"
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def complete(self, **kwargs) -> str:
        self.calls.append(kwargs)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        if callable(self.reply):
            return self.reply(**kwargs)
        return self.reply


class FakeAdapter:
    """Duck-typed PromptAdapter returning a canned result or raising."""

    def __init__(self, name: str, result=None, error: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.name = name
        self.result = result
        self.error = error
        self.delay = delay
        self.payloads: list = []

    async def generate(self, llm, payload):
        self.payloads.append(payload)
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FakeExtractor:
    def __init__(self, store: FakeStore, texts: Optional[dict[str, str]] = None) -> None:
        self.store = store
        self.texts = texts or {}
        self.calls: list[str] = []

    async def extract_text(self, ref) -> str:
        self.calls.append(ref.path)
        await self.store.fetch(ref.path)
        return self.texts.get(ref.path, "")


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def canned_adapters() -> dict[str, FakeAdapter]:
    return {
        "evaluation": FakeAdapter("evaluation", EvaluationOutput(evaluation="E")),
        "insights": FakeAdapter(
            "insights",
            InsightsOutput(
                swot_analysis=SwotAnalysis(strengths="S", weaknesses="W", opportunities="O", threats="T"),
                investment_insights="I",
            ),
        ),
        "risks": FakeAdapter(
            "risks",
            RisksOutput(risks=[InvestmentRisk(risk="R1", mitigation_strategy="M1")]),
        ),
    }


@pytest.fixture
def valid_form() -> SubmissionForm:
    return SubmissionForm(startup_name="Acme", pitch=VALID_PITCH, uploaded_files=[])
