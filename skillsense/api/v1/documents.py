from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from skillsense.ai.factory import get_ai_client
from skillsense.ai.types import AIClient
from skillsense.core.config import settings
from skillsense.core.errors import NotFoundError, PayloadTooLargeError, ValidationError
from skillsense.core.rate_limit import ai_rate_limit
from skillsense.core.security import Session, require_session
from skillsense.db import store
from skillsense.schemas.documents import (
    BatchUploadResult,
    Document,
    DocumentAnalysis,
    DocumentUploadResponse,
)
from skillsense.services import extraction_service
from skillsense.services.batch_upload import UploadPayload, batch_upload
from skillsense.storage.files import BUCKETS

router = APIRouter(prefix="/documents")

MAX_BATCH_FILES = 20
_BUCKET_DOCUMENT_TYPES = {"resumes": "resume", "cvs": "cv"}


async def _read_upload(file: UploadFile, max_bytes: int, *, truncate: bool = False) -> bytes:
    """Read an upload in chunks, stopping once it exceeds ``max_bytes``.

    With ``truncate`` the oversized prefix is returned instead of raising, so the
    size check can fail that file alone.
    """
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            if truncate:
                chunks.append(chunk)
                break
            raise PayloadTooLargeError(
                f"File too large. Maximum allowed size is {max_bytes // (1024 * 1024)} MB."
            )
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("", response_model=DocumentUploadResponse, status_code=status.HTTP_201_CREATED)
@ai_rate_limit()
async def upload_document(
    request: Request,
    file: UploadFile = File(...),
    bucket: str = Form("resumes"),
    analyze: bool = Form(True),
    session: Session = Depends(require_session),
    ai: AIClient = Depends(get_ai_client),
):
    if bucket not in BUCKETS:
        raise ValidationError(f"Unknown bucket '{bucket}'. Allowed: {', '.join(BUCKETS)}.")
    content = await _read_upload(file, settings.max_upload_bytes)
    document = extraction_service.upload_document(
        session,
        file_name=file.filename or "document",
        content=content,
        content_type=file.content_type,
        bucket=bucket,
        document_type=_BUCKET_DOCUMENT_TYPES[bucket],
    )
    analysis = None
    if analyze:
        analysis = await extraction_service.analyze_document(session, document.id, extractor=ai)
        document = store.get_document(document.id) or document
    return DocumentUploadResponse(document=document, analysis=analysis)


@router.post("/batch", response_model=BatchUploadResult)
@ai_rate_limit()
async def upload_batch(
    request: Request,
    files: list[UploadFile] = File(...),
    session: Session = Depends(require_session),
    ai: AIClient = Depends(get_ai_client),
):
    if len(files) > MAX_BATCH_FILES:
        raise ValidationError(f"Upload at most {MAX_BATCH_FILES} files at once.")
    payloads = [
        UploadPayload(
            file_name=upload.filename or "document",
            content=await _read_upload(upload, settings.max_upload_bytes, truncate=True),
            content_type=upload.content_type,
        )
        for upload in files
    ]
    return await batch_upload(session, payloads, extractor=ai)


@router.get("", response_model=list[Document])
async def list_documents(session: Session = Depends(require_session)):
    return store.list_documents(session.user_id)


@router.get("/{document_id}", response_model=Document)
async def get_document(document_id: str, session: Session = Depends(require_session)):
    document = store.get_document(document_id)
    if document is None:
        raise NotFoundError("Document not found.")
    session.ensure_owner(document.user_id)
    return document


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(document_id: str, session: Session = Depends(require_session)):
    extraction_service.delete_document(session, document_id)


@router.post("/{document_id}/reanalyze", response_model=DocumentAnalysis)
@ai_rate_limit()
async def reanalyze_document(
    request: Request,
    document_id: str,
    session: Session = Depends(require_session),
    ai: AIClient = Depends(get_ai_client),
):
    return await extraction_service.reanalyze_document(session, document_id, extractor=ai)
