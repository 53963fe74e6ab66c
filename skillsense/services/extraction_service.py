from __future__ import annotations

import logging

from skillsense.ai.types import SkillExtractor
from skillsense.core.errors import NotFoundError, SkillSenseError, ValidationError
from skillsense.core.security import Session
from skillsense.db import store
from skillsense.features.skill_aggregation import aggregate_candidates
from skillsense.features.skill_summary import completeness_score
from skillsense.parsing.parse import guess_content_type, parse_bytes, validate_upload
from skillsense.schemas.documents import Document, DocumentAnalysis
from skillsense.storage import files

logger = logging.getLogger(__name__)

NO_SKILLS_MESSAGE = "No skills found in document"


def _owned_document(session: Session, document_id: str) -> Document:
    document = store.get_document(document_id)
    if document is None:
        raise NotFoundError("Document not found.")
    session.ensure_owner(document.user_id)
    return document


def _refresh_completeness(user_id: str) -> float:
    score = completeness_score(store.count_skills(user_id))
    store.update_profile(user_id, completeness_score=score)
    return score


def upload_document(
    session: Session,
    *,
    file_name: str,
    content: bytes,
    content_type: str | None = None,
    bucket: str = "resumes",
    document_type: str = "resume",
    max_bytes: int | None = None,
) -> Document:
    resolved_type = guess_content_type(file_name, content_type)
    validate_upload(file_name=file_name, content_type=resolved_type, size=len(content), max_bytes=max_bytes)
    storage_path = files.upload(bucket, session.user_id, file_name, content)
    document = store.create_document(
        user_id=session.user_id,
        file_name=file_name,
        bucket=bucket,
        storage_path=storage_path,
        content_type=resolved_type,
        document_type=document_type,
    )
    logger.info("document_uploaded user=%s document=%s bytes=%s", session.user_id, document.id, len(content))
    return document


def read_document_text(document: Document) -> str:
    content = files.download(document.bucket, document.storage_path)
    parsed = parse_bytes(file_name=document.file_name, content=content, content_type=document.content_type)
    for warning in parsed.parsing_warnings:
        logger.info("document_parse_warning document=%s: %s", document.id, warning)
    return parsed.text


async def analyze_text(
    session: Session,
    *,
    document_id: str,
    text: str,
    extractor: SkillExtractor,
    include_explicit: bool = True,
    tool_slug: str = "extract-skills",
    context: str = "Extracted from resume",
) -> DocumentAnalysis:
    """Run extraction over already-decoded text and persist the surviving skills.

    The document moves pending -> processing -> completed, or to failed with
    the error message stored when anything raises.
    """
    document = _owned_document(session, document_id)
    store.update_document_status(document.id, "processing")
    try:
        if not text.strip():
            raise ValidationError("Document contains no extractable text.")

        candidates = await extractor.extract_skills(text, include_explicit=include_explicit, tool_slug=tool_slug)
        if not candidates:
            store.update_document_status(document.id, "completed", extracted_text=text)
            logger.warning("skill_extraction_empty user=%s document=%s", session.user_id, document.id)
            return DocumentAnalysis(success=True, document_id=document.id, message=NO_SKILLS_MESSAGE)

        skills, stats = aggregate_candidates(
            candidates,
            document_id=document.id,
            source_type="cv",
            context=context,
        )
        if skills:
            store.save_skills(session.user_id, skills, source=document.id)
            _refresh_completeness(session.user_id)
        store.update_document_status(document.id, "completed", extracted_text=text)
    except SkillSenseError as exc:
        store.update_document_status(document.id, "failed", error_message=exc.message)
        logger.warning("skill_extraction_failed user=%s document=%s: %s", session.user_id, document.id, exc)
        raise
    except Exception as exc:
        store.update_document_status(document.id, "failed", error_message=str(exc) or type(exc).__name__)
        logger.exception("skill_extraction_crashed user=%s document=%s", session.user_id, document.id)
        raise

    logger.info(
        "skill_extraction_completed user=%s document=%s kept=%s hidden=%s",
        session.user_id,
        document.id,
        stats.kept,
        stats.hidden,
    )
    return DocumentAnalysis(
        success=True,
        document_id=document.id,
        skills_count=stats.kept,
        explicit_skills=stats.explicit,
        implicit_skills=stats.implicit,
        hidden_skills=stats.hidden,
        average_confidence=stats.average_confidence,
        message=f"Extracted {stats.kept} skills" if stats.kept else NO_SKILLS_MESSAGE,
    )


def _read_or_fail(document: Document) -> str:
    try:
        return read_document_text(document)
    except SkillSenseError as exc:
        store.update_document_status(document.id, "failed", error_message=exc.message)
        raise


async def analyze_document(session: Session, document_id: str, *, extractor: SkillExtractor) -> DocumentAnalysis:
    """Decode a stored document and extract skills from it."""
    document = _owned_document(session, document_id)
    text = _read_or_fail(document)
    return await analyze_text(session, document_id=document.id, text=text, extractor=extractor)


async def reanalyze_document(session: Session, document_id: str, *, extractor: SkillExtractor) -> DocumentAnalysis:
    document = _owned_document(session, document_id)
    logger.info("document_reanalysis user=%s document=%s previous=%s", session.user_id, document.id, document.processing_status)
    return await analyze_document(session, document.id, extractor=extractor)


async def process_cv(
    session: Session,
    *,
    file_path: str,
    file_name: str,
    extractor: SkillExtractor,
) -> DocumentAnalysis:
    """Extract skills from a file previously uploaded to the ``cvs`` bucket."""
    session.ensure_owner(files.owner_of(file_path))

    document = store.find_document_by_path("cvs", file_path)
    if document is None:
        if not files.exists("cvs", file_path):
            raise NotFoundError("File not found in storage.")
        document = store.create_document(
            user_id=session.user_id,
            file_name=file_name,
            bucket="cvs",
            storage_path=file_path,
            content_type=guess_content_type(file_name),
            document_type="cv",
        )
    text = _read_or_fail(document)

    return await analyze_text(
        session,
        document_id=document.id,
        text=text,
        extractor=extractor,
        include_explicit=False,
        tool_slug="process-cv",
        context="Extracted from CV",
    )


def delete_document(session: Session, document_id: str) -> None:
    document = _owned_document(session, document_id)
    files.delete(document.bucket, document.storage_path)
    store.delete_document(document.id)
    logger.info("document_deleted user=%s document=%s", session.user_id, document.id)
