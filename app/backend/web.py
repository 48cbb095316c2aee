import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Optional, Union

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from .constants import UPLOAD_PREFIX
from .document_store import build_document_store
from .evaluation_orchestrator import EvaluationOrchestrator, build_orchestrator
from .models import EvaluationFailure, EvaluationSuccess, UploadRequest, UploadTicket
from .submission import SubmissionForm
from .text_extraction import resolve_upload_content_type, sanitize_filename


logger = logging.getLogger("uvicorn.error")

DEFAULT_UPLOAD_URL_EXPIRATION_MINUTES = 15


def _upload_url_expiration_minutes() -> int:
    raw = os.getenv("UPLOAD_URL_EXPIRATION_MINUTES", "").strip()
    try:
        value = int(raw) if raw else DEFAULT_UPLOAD_URL_EXPIRATION_MINUTES
    except ValueError:
        logger.warning("Ignoring invalid UPLOAD_URL_EXPIRATION_MINUTES=%r", raw)
        value = DEFAULT_UPLOAD_URL_EXPIRATION_MINUTES
    return max(1, value)


def _frontend_origins() -> list[str]:
    origins = os.getenv(
        "FRONTEND_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    )
    return [origin.strip() for origin in origins.split(",") if origin.strip()]


def create_app(
    orchestrator: Optional[EvaluationOrchestrator] = None,
    store=None,
) -> FastAPI:
    """Build the HTTP app. Collaborators not passed in are built at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.store is None:
            app.state.store = build_document_store()
        if app.state.orchestrator is None:
            app.state.orchestrator = build_orchestrator(store=app.state.store)
        logger.info("evaluator_ready bucket=%s", getattr(app.state.store, "bucket", None))
        yield

    app = FastAPI(title="Startup Evaluator Backend", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_frontend_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.post("/api/uploads", response_model=UploadTicket)
    async def create_upload(body: UploadRequest, request: Request) -> UploadTicket:
        """Reserve a staging path and return a signed URL the browser can PUT to.

        The returned {name, path} pair is what the form later sends back in
        uploadedFiles; the evaluation deletes the object when it is done.
        """
        try:
            content_type = resolve_upload_content_type(body.filename, body.content_type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        path = f"{UPLOAD_PREFIX}/{uuid.uuid4().hex}/{sanitize_filename(body.filename)}"
        expiration_minutes = _upload_url_expiration_minutes()
        try:
            upload_url = await request.app.state.store.signed_upload_url(path, content_type, expiration_minutes)
        except Exception as exc:
            logger.warning("upload_url_generation_failed path=%s", path, exc_info=True)
            raise HTTPException(status_code=500, detail="Could not generate upload URL.") from exc

        logger.info("upload_url_issued path=%s content_type=%s", path, content_type)
        return UploadTicket(
            name=body.filename,
            path=path,
            content_type=content_type,
            upload_url=upload_url,
            expires_in_minutes=expiration_minutes,
        )

    @app.post("/api/evaluations", response_model=Union[EvaluationSuccess, EvaluationFailure])
    async def create_evaluation(
        request: Request,
        startup_name: Optional[str] = Form(None, alias="startupName"),
        pitch: Optional[str] = Form(None),
        uploaded_files: Optional[str] = Form(None, alias="uploadedFiles"),
    ) -> Union[EvaluationSuccess, EvaluationFailure]:
        form = SubmissionForm(startup_name=startup_name, pitch=pitch, uploaded_files=uploaded_files)
        return await request.app.state.orchestrator.evaluate(form)

    return app


app = create_app()
