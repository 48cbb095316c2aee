from __future__ import annotations


class SubmissionError(ValueError):
    """Raised when a submission is missing fields or is malformed."""


class EvaluationPipelineError(RuntimeError):
    """Base class for failures inside the evaluation pipeline."""


class StoreError(EvaluationPipelineError):
    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class DocumentNotFoundError(StoreError):
    pass


class CleanupError(StoreError):
    pass


class ExtractionError(EvaluationPipelineError):
    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class GenerationError(EvaluationPipelineError):
    def __init__(self, message: str, *, adapter: str) -> None:
        super().__init__(message)
        self.adapter = adapter
