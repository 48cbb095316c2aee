from __future__ import annotations

import asyncio
import logging
import os
import time
import uuid
from typing import Optional, Protocol

from .constants import GENERIC_FAILURE_MESSAGE
from .document_store import DocumentStore, build_document_store
from .errors import DocumentNotFoundError, SubmissionError
from .generation import ACTIONABLE_INSIGHTS, INVESTMENT_RISKS, STARTUP_EVALUATION, PromptAdapter
from .llm_client import LLMClient, build_llm_client
from .models import (
    DocumentRef,
    EvaluationFailure,
    EvaluationInput,
    EvaluationOutcome,
    EvaluationSuccess,
    InsightsInput,
    RisksInput,
    Submission,
)
from .submission import SubmissionForm, validate_submission
from .supporting_context import ContextProvider, SimulatedContextProvider, build_founder_materials
from .text_extraction import TextExtractor


logger = logging.getLogger("uvicorn.error")

DEFAULT_TIMEOUT_SECONDS = 180.0


class DocumentTextExtractor(Protocol):
    async def extract_text(self, ref: DocumentRef) -> str:
        pass


def _leaf_errors(exc: BaseException) -> list[BaseException]:
    if isinstance(exc, BaseExceptionGroup):
        leaves: list[BaseException] = []
        for inner in exc.exceptions:
            leaves.extend(_leaf_errors(inner))
        return leaves
    return [exc]


class EvaluationOrchestrator:
    """Runs one submission through extraction, generation and cleanup.

    evaluate() never raises for pipeline problems: every failure becomes an
    EvaluationFailure with a generic message, and the detail goes to the log.
    Staged documents are deleted on every exit path once the submission has
    passed validation.
    """

    def __init__(
        self,
        *,
        store: DocumentStore,
        llm: LLMClient,
        extractor: Optional[DocumentTextExtractor] = None,
        context_provider: Optional[ContextProvider] = None,
        evaluation_adapter: PromptAdapter = STARTUP_EVALUATION,
        insights_adapter: PromptAdapter = ACTIONABLE_INSIGHTS,
        risks_adapter: PromptAdapter = INVESTMENT_RISKS,
        timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._llm = llm
        self._extractor = extractor or TextExtractor(store, llm)
        self._context_provider = context_provider or SimulatedContextProvider()
        self._evaluation_adapter = evaluation_adapter
        self._insights_adapter = insights_adapter
        self._risks_adapter = risks_adapter
        self._timeout_seconds = timeout_seconds

    async def evaluate(self, form: SubmissionForm) -> EvaluationOutcome:
        try:
            submission = validate_submission(form)
        except SubmissionError as exc:
            logger.info("evaluation_rejected reason=validation error=%s", exc)
            return EvaluationFailure(error=str(exc))

        evaluation_id = uuid.uuid4().hex[:12]
        start_ts = time.monotonic()
        never_staged: set[str] = set()
        logger.info(
            "evaluation_id=%s evaluation_started startup=%r documents=%s",
            evaluation_id,
            submission.startup_name,
            len(submission.uploaded_document_refs),
        )

        try:
            async with asyncio.timeout(self._timeout_seconds):
                outcome = await self._run_pipeline(evaluation_id, submission, never_staged)
            logger.info(
                "evaluation_id=%s evaluation_succeeded risks=%s",
                evaluation_id,
                len(outcome.risks),
            )
            return outcome
        except Exception as exc:
            for error in _leaf_errors(exc):
                logger.error(
                    "evaluation_id=%s evaluation_failed error_type=%s error=%s",
                    evaluation_id,
                    type(error).__name__,
                    error,
                    exc_info=error,
                )
            return EvaluationFailure(error=GENERIC_FAILURE_MESSAGE)
        finally:
            await self._cleanup(evaluation_id, submission, never_staged)
            elapsed_ms = int((time.monotonic() - start_ts) * 1000)
            logger.info("evaluation_id=%s evaluation_finished elapsed_ms=%s", evaluation_id, elapsed_ms)

    async def _run_pipeline(
        self,
        evaluation_id: str,
        submission: Submission,
        never_staged: set[str],
    ) -> EvaluationSuccess:
        extracted_texts = await self._extract_documents(evaluation_id, submission, never_staged)
        founder_materials = build_founder_materials(submission, extracted_texts)
        context = await self._context_provider.gather(submission)

        async with asyncio.TaskGroup() as group:
            evaluation_task = group.create_task(
                self._evaluation_adapter.generate(
                    self._llm,
                    EvaluationInput(
                        founder_materials=founder_materials,
                        aggregated_data=context.aggregated_data,
                    ),
                )
            )
            insights_task = group.create_task(
                self._insights_adapter.generate(
                    self._llm,
                    InsightsInput(
                        founder_materials=founder_materials,
                        public_data=context.aggregated_data,
                    ),
                )
            )
            risks_task = group.create_task(
                self._risks_adapter.generate(
                    self._llm,
                    RisksInput(
                        founder_materials=founder_materials,
                        financial_projections=context.financial_projections,
                        market_data=context.aggregated_data,
                        competitive_landscape=context.competitive_landscape,
                    ),
                )
            )

        evaluation = evaluation_task.result()
        insights = insights_task.result()
        risks = risks_task.result()
        logger.info("evaluation_id=%s generation_completed", evaluation_id)

        return EvaluationSuccess(
            startup_name=submission.startup_name,
            evaluation=evaluation.evaluation,
            swot=insights.swot_analysis,
            investment_insights=insights.investment_insights,
            risks=risks.risks,
        )

    async def _extract_documents(
        self,
        evaluation_id: str,
        submission: Submission,
        never_staged: set[str],
    ) -> list[str]:
        refs = submission.uploaded_document_refs
        if not refs:
            return []

        async def _extract_one(ref: DocumentRef) -> str:
            try:
                return await self._extractor.extract_text(ref)
            except DocumentNotFoundError:
                never_staged.add(ref.path)
                raise

        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(_extract_one(ref)) for ref in refs]

        texts = [task.result() for task in tasks]
        logger.info(
            "evaluation_id=%s documents_extracted count=%s chars=%s",
            evaluation_id,
            len(texts),
            sum(len(text) for text in texts),
        )
        return texts

    async def _cleanup(self, evaluation_id: str, submission: Submission, never_staged: set[str]) -> None:
        paths = list(
            dict.fromkeys(
                ref.path for ref in submission.uploaded_document_refs if ref.path not in never_staged
            )
        )
        if not paths:
            return

        results = await asyncio.gather(*(self._store.delete(path) for path in paths), return_exceptions=True)
        failed = 0
        for path, result in zip(paths, results):
            if isinstance(result, BaseException):
                failed += 1
                logger.warning(
                    "evaluation_id=%s document_cleanup_failed path=%s error=%s",
                    evaluation_id,
                    path,
                    result,
                    exc_info=result,
                )
        logger.info(
            "evaluation_id=%s documents_cleaned_up deleted=%s failed=%s skipped=%s",
            evaluation_id,
            len(paths) - failed,
            failed,
            len(never_staged),
        )


def _timeout_from_env() -> Optional[float]:
    raw = os.getenv("EVALUATION_TIMEOUT_SECONDS", "").strip()
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"EVALUATION_TIMEOUT_SECONDS must be a number, got {raw!r}.") from exc
    return value if value > 0 else None


def build_orchestrator(
    store: Optional[DocumentStore] = None,
    llm: Optional[LLMClient] = None,
) -> EvaluationOrchestrator:
    return EvaluationOrchestrator(
        store=store or build_document_store(),
        llm=llm or build_llm_client(),
        timeout_seconds=_timeout_from_env(),
    )
