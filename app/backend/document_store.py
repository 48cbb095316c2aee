import asyncio
import base64
import json
import logging
import os
from datetime import timedelta
from typing import Optional, Protocol

from google.api_core.exceptions import NotFound
from google.cloud import storage
from google.oauth2 import service_account

from .constants import DEFAULT_MIME_TYPE
from .errors import CleanupError, DocumentNotFoundError, StoreError
from .models import StagedDocument


logger = logging.getLogger("uvicorn.error")

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class DocumentStore(Protocol):
    async def fetch(self, path: str) -> StagedDocument:
        pass

    async def delete(self, path: str) -> None:
        pass


def normalize_blob_path(blob_path: str) -> str:
    return (blob_path or "").strip().lstrip("/")


def build_gs_uri(bucket: str, blob_path: str) -> str:
    return f"gs://{bucket}/{normalize_blob_path(blob_path)}"


def _service_account_info(raw_json: str, source: str) -> dict:
    try:
        info = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"{source} does not contain valid JSON.") from exc
    if not isinstance(info, dict):
        raise RuntimeError(f"{source} must contain a JSON object.")
    return info


def load_gcp_credentials() -> Optional[service_account.Credentials]:
    """Resolve service account credentials from the environment.

    Checked in order: base64-encoded JSON, inline JSON, then a key file path.
    Returns None when nothing is configured so the client falls back to
    application default credentials.
    """
    encoded = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_B64", "").strip()
    if encoded:
        padded = encoded + "=" * ((-len(encoded)) % 4)
        try:
            decoded = base64.b64decode(padded).decode("utf-8")
        except Exception as exc:
            raise RuntimeError("GOOGLE_APPLICATION_CREDENTIALS_B64 is not valid base64.") from exc
        info = _service_account_info(decoded, "GOOGLE_APPLICATION_CREDENTIALS_B64")
        return service_account.Credentials.from_service_account_info(info, scopes=[CLOUD_PLATFORM_SCOPE])

    inline = os.getenv("GOOGLE_APPLICATION_CREDENTIALS_JSON", "").strip()
    if inline:
        info = _service_account_info(inline, "GOOGLE_APPLICATION_CREDENTIALS_JSON")
        return service_account.Credentials.from_service_account_info(info, scopes=[CLOUD_PLATFORM_SCOPE])

    key_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "").strip()
    if key_path:
        if not os.path.exists(key_path):
            raise RuntimeError(f"GOOGLE_APPLICATION_CREDENTIALS points to a missing file: {key_path}")
        return service_account.Credentials.from_service_account_file(key_path, scopes=[CLOUD_PLATFORM_SCOPE])

    return None


class GCSDocumentStore:
    """Staged documents kept in a single Cloud Storage bucket.

    The storage SDK is blocking, so every call is pushed to a worker thread.
    """

    def __init__(
        self,
        client: storage.Client,
        bucket: str,
        credentials: Optional[service_account.Credentials] = None,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._credentials = credentials

    @property
    def bucket(self) -> str:
        return self._bucket

    def _fetch_sync(self, path: str) -> StagedDocument:
        clean_path = normalize_blob_path(path)
        uri = build_gs_uri(self._bucket, clean_path)
        try:
            blob = self._client.bucket(self._bucket).get_blob(clean_path)
            if blob is None:
                raise DocumentNotFoundError(f"GCS object not found: {uri}", path=path)
            data = blob.download_as_bytes()
        except StoreError:
            raise
        except NotFound as exc:
            raise DocumentNotFoundError(f"GCS object not found: {uri}", path=path) from exc
        except Exception as exc:
            raise StoreError(f"Could not retrieve file from storage: {uri} ({exc})", path=path) from exc

        return StagedDocument(
            path=path,
            mime_hint=blob.content_type or DEFAULT_MIME_TYPE,
            data=data,
        )

    def _delete_sync(self, path: str) -> None:
        clean_path = normalize_blob_path(path)
        blob = self._client.bucket(self._bucket).blob(clean_path)
        try:
            blob.delete()
        except NotFound:
            logger.info("document_delete_skipped reason=not_found uri=%s", build_gs_uri(self._bucket, clean_path))
            return
        except Exception as exc:
            raise CleanupError(
                f"Could not delete file from storage: {build_gs_uri(self._bucket, clean_path)} ({exc})",
                path=path,
            ) from exc
        logger.info("document_deleted uri=%s", build_gs_uri(self._bucket, clean_path))

    def _signed_upload_url_sync(self, path: str, content_type: str, expiration_minutes: int) -> str:
        blob = self._client.bucket(self._bucket).blob(normalize_blob_path(path))
        return blob.generate_signed_url(
            version="v4",
            expiration=timedelta(minutes=expiration_minutes),
            method="PUT",
            content_type=content_type,
            credentials=self._credentials,
        )

    async def fetch(self, path: str) -> StagedDocument:
        return await asyncio.to_thread(self._fetch_sync, path)

    async def delete(self, path: str) -> None:
        await asyncio.to_thread(self._delete_sync, path)

    async def signed_upload_url(self, path: str, content_type: str, expiration_minutes: int = 15) -> str:
        """V4 signed URL that lets the browser PUT a document straight into the bucket."""
        return await asyncio.to_thread(self._signed_upload_url_sync, path, content_type, expiration_minutes)


def build_document_store() -> GCSDocumentStore:
    bucket = os.getenv("GCS_UPLOAD_BUCKET", "").strip()
    if not bucket:
        raise RuntimeError("GCS_UPLOAD_BUCKET is not set.")

    credentials = load_gcp_credentials()
    project = os.getenv("GCP_PROJECT_ID", "").strip() or getattr(credentials, "project_id", None)
    if credentials is not None or project:
        client = storage.Client(credentials=credentials, project=project)
    else:
        client = storage.Client()
    return GCSDocumentStore(client, bucket, credentials=credentials)
