from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from .constants import MIN_PITCH_CHARS, MIN_STARTUP_NAME_CHARS
from .errors import SubmissionError
from .models import DocumentRef, Submission


@dataclass(frozen=True)
class SubmissionForm:
    """Raw caller input, as received from the form boundary."""

    startup_name: Optional[str]
    pitch: Optional[str]
    uploaded_files: Any = None


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _load_uploaded_files(raw: Any) -> list:
    if raw is None:
        return []
    if isinstance(raw, (bytes, str)):
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        if not text.strip():
            return []
        try:
            raw = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SubmissionError("uploadedFiles must be a JSON array of {name, path} objects.") from exc
    if not isinstance(raw, (list, tuple)):
        raise SubmissionError("uploadedFiles must be a JSON array of {name, path} objects.")
    return list(raw)


def _parse_document_refs(raw: Any) -> tuple[DocumentRef, ...]:
    refs: list[DocumentRef] = []
    for index, item in enumerate(_load_uploaded_files(raw)):
        if isinstance(item, DocumentRef):
            refs.append(item)
            continue
        if not isinstance(item, dict):
            raise SubmissionError(f"uploadedFiles[{index}] must be an object.")
        name = _clean_text(item.get("name"))
        path = _clean_text(item.get("path"))
        if not name or not path:
            raise SubmissionError(f'uploadedFiles[{index}] must contain non-empty "name" and "path" strings.')
        refs.append(DocumentRef(name=name, path=path))
    return tuple(refs)


def validate_submission(form: SubmissionForm) -> Submission:
    startup_name = _clean_text(form.startup_name)
    pitch = _clean_text(form.pitch)

    missing = [field for field, value in (("startupName", startup_name), ("pitch", pitch)) if not value]
    if missing:
        raise SubmissionError(f"{', '.join(missing)} required")

    problems: list[str] = []
    if len(startup_name) < MIN_STARTUP_NAME_CHARS:
        problems.append(f"startupName must be at least {MIN_STARTUP_NAME_CHARS} characters")
    if len(pitch) < MIN_PITCH_CHARS:
        problems.append(f"pitch must be at least {MIN_PITCH_CHARS} characters")
    if problems:
        raise SubmissionError("; ".join(problems))

    return Submission(
        startup_name=startup_name,
        pitch=pitch,
        uploaded_document_refs=_parse_document_refs(form.uploaded_files),
    )
