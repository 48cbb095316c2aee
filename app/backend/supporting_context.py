from __future__ import annotations

from typing import Protocol, Sequence

from .constants import MATERIALS_SEPARATOR
from .models import DocumentRef, Submission, SupportingContext


class ContextProvider(Protocol):
    async def gather(self, submission: Submission) -> SupportingContext:
        pass


class SimulatedContextProvider:
    """Placeholder market, financial and competitive context.

    Stands in for a real data-aggregation service; swap in another
    ContextProvider to feed real data to the generation prompts.
    """

    async def gather(self, submission: Submission) -> SupportingContext:
        name = submission.startup_name
        return SupportingContext(
            aggregated_data=(
                "This is simulated aggregated public data, industry trends, and competitor "
                f'analysis for a startup like "{name}".'
            ),
            financial_projections=(
                f'These are simulated financial projections for "{name}", showing potential '
                "for high growth but with initial high burn rate."
            ),
            competitive_landscape=(
                f'The competitive landscape for a startup like "{name}" is moderately crowded '
                "with a few established players and several emerging startups."
            ),
        )


def build_founder_materials(
    submission: Submission,
    extracted_texts: Sequence[str] = (),
) -> str:
    materials = f"Startup Name: {submission.startup_name}\n\nBusiness Pitch / Idea:\n{submission.pitch}"
    refs: Sequence[DocumentRef] = submission.uploaded_document_refs
    if not refs:
        return materials

    sections = [
        f"Uploaded Document: {ref.name}\n{(text or '').strip()}"
        for ref, text in zip(refs, extracted_texts)
    ]
    return MATERIALS_SEPARATOR.join([materials, *sections])
