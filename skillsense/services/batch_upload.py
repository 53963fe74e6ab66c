from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from skillsense.ai.types import SkillExtractor
from skillsense.core.config.scoring import get_scoring_value
from skillsense.core.errors import SkillSenseError, friendly_error_message
from skillsense.core.security import Session
from skillsense.schemas.documents import BatchUploadItem, BatchUploadResult

from . import extraction_service

logger = logging.getLogger(__name__)

StatusCallback = Callable[[int, BatchUploadItem], None]


@dataclass(frozen=True)
class UploadPayload:
    file_name: str
    content: bytes
    content_type: str | None = None


def _chunks(items: Sequence, size: int):
    for start in range(0, len(items), size):
        yield start, items[start : start + size]


async def _process_one(
    session: Session,
    index: int,
    payload: UploadPayload,
    item: BatchUploadItem,
    *,
    extractor: SkillExtractor,
    notify: StatusCallback,
) -> None:
    def advance(status: str) -> None:
        item.status = status
        notify(index, item.model_copy())

    try:
        advance("uploading")
        document = extraction_service.upload_document(
            session,
            file_name=payload.file_name,
            content=payload.content,
            content_type=payload.content_type,
        )
        item.document_id = document.id

        advance("extracting")
        text = extraction_service.read_document_text(document)

        advance("analyzing")
        analysis = await extraction_service.analyze_text(
            session,
            document_id=document.id,
            text=text,
            extractor=extractor,
        )
        item.skills_count = analysis.skills_count
        advance("success")
    except SkillSenseError as exc:
        item.error = exc.message
        advance("error")
        logger.warning("batch_upload_item_failed user=%s file=%s: %s", session.user_id, payload.file_name, exc)
    except Exception as exc:  # noqa: BLE001
        item.error = friendly_error_message(exc)
        advance("error")
        logger.exception("batch_upload_item_crashed user=%s file=%s", session.user_id, payload.file_name)


async def batch_upload(
    session: Session,
    uploads: Sequence[UploadPayload],
    *,
    extractor: SkillExtractor,
    concurrency: int | None = None,
    on_status: StatusCallback | None = None,
) -> BatchUploadResult:
    """Upload and analyze files in chunks; each chunk is awaited before the next starts."""
    size = max(1, int(concurrency or get_scoring_value("batch_upload.concurrency", 3)))
    notify: StatusCallback = on_status or (lambda index, item: None)
    items = [BatchUploadItem(file_name=payload.file_name) for payload in uploads]
    for index, item in enumerate(items):
        notify(index, item.model_copy())

    for start, chunk in _chunks(list(uploads), size):
        await asyncio.gather(
            *(
                _process_one(session, start + offset, payload, items[start + offset], extractor=extractor, notify=notify)
                for offset, payload in enumerate(chunk)
            )
        )

    succeeded = sum(1 for item in items if item.status == "success")
    logger.info("batch_upload_completed user=%s files=%s succeeded=%s", session.user_id, len(items), succeeded)
    return BatchUploadResult(items=items, succeeded=succeeded, failed=len(items) - succeeded)
