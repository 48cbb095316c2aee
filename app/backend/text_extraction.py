import base64
import logging
import re
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_MIME_TYPE
from .document_store import DocumentStore
from .errors import ExtractionError
from .generation import render_prompt
from .llm_client import LLMClient
from .models import DocumentRef, StagedDocument
from .prompts.extraction import SYSTEM_PROMPT, USER_PROMPT_TEMPLATE


logger = logging.getLogger("uvicorn.error")

ALLOWED_MIME_BY_EXTENSION = {
    ".pdf": {"application/pdf", "application/x-pdf", DEFAULT_MIME_TYPE},
    ".txt": {"text/plain", DEFAULT_MIME_TYPE},
    ".md": {"text/markdown", "text/plain", DEFAULT_MIME_TYPE},
    ".png": {"image/png", DEFAULT_MIME_TYPE},
    ".jpg": {"image/jpeg", DEFAULT_MIME_TYPE},
    ".jpeg": {"image/jpeg", DEFAULT_MIME_TYPE},
    ".webp": {"image/webp", DEFAULT_MIME_TYPE},
}
PREFERRED_MIME_BY_EXTENSION = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


def detect_extension(filename: str) -> str:
    return Path(filename or "").suffix.lower()


def sanitize_filename(filename: str) -> str:
    candidate = Path(filename or "").name
    if candidate in {"", ".", ".."}:
        candidate = "document"

    sanitized = re.sub(r"[^A-Za-z0-9._-]", "_", candidate)
    if sanitized in {"", ".", ".."}:
        sanitized = "document"

    stem = Path(sanitized).stem[:120] or "document"
    ext = Path(sanitized).suffix[:20]
    return f"{stem}{ext}"


def resolve_upload_content_type(filename: str, content_type: Optional[str]) -> str:
    """Check an upload's name and declared type; return the type to sign for."""
    extension = detect_extension(filename)
    allowed = ALLOWED_MIME_BY_EXTENSION.get(extension)
    if allowed is None:
        supported = ", ".join(sorted(ALLOWED_MIME_BY_EXTENSION))
        raise ValueError(f"Unsupported document format. Supported extensions: {supported}.")
    declared = (content_type or "").split(";")[0].strip().lower()
    if declared and declared not in allowed:
        raise ValueError(f"Invalid content type for {extension}: {content_type}")
    if not declared or declared == DEFAULT_MIME_TYPE:
        return PREFERRED_MIME_BY_EXTENSION[extension]
    return declared


def build_data_uri(document: StagedDocument) -> str:
    mime_type = (document.mime_hint or "").strip() or DEFAULT_MIME_TYPE
    payload = base64.b64encode(document.data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def build_media_part(document: StagedDocument, name: str) -> dict:
    # Chat completions only take PDFs as file parts; plain text goes inline.
    if document.mime_hint.startswith("text/"):
        text = document.data.decode("utf-8", errors="replace")
        return {"type": "text", "text": f'Contents of "{name}":\n{text}'}
    data_uri = build_data_uri(document)
    if document.mime_hint.startswith("image/"):
        return {"type": "image_url", "image_url": {"url": data_uri}}
    return {"type": "file", "file": {"filename": name, "file_data": data_uri}}


class TextExtractor:
    def __init__(self, store: DocumentStore, llm: LLMClient) -> None:
        self._store = store
        self._llm = llm

    async def extract_text(self, ref: DocumentRef) -> str:
        # Store failures propagate untouched so the caller can tell a missing
        # object from a provider problem.
        document = await self._store.fetch(ref.path)

        user_content = [
            {"type": "text", "text": render_prompt(USER_PROMPT_TEMPLATE, {"document_name": ref.name})},
            build_media_part(document, ref.name),
        ]
        try:
            text = await self._llm.complete(
                system_prompt=SYSTEM_PROMPT,
                user_content=user_content,
                model=self._llm.extraction_model,
                max_tokens=8000,
            )
        except Exception as exc:
            raise ExtractionError(f"Text extraction failed for {ref.path}: {exc}", path=ref.path) from exc

        text = text or ""
        logger.info(
            "document_text_extracted path=%s mime=%s bytes=%s chars=%s",
            ref.path,
            document.mime_hint,
            len(document.data),
            len(text),
        )
        return text
