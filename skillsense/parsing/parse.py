from __future__ import annotations

from io import BytesIO

from docx import Document as DocxDocument
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from skillsense.core.config import settings
from skillsense.core.errors import PayloadTooLargeError, UnsupportedMediaTypeError, ValidationError

from .models import ParsedBlock, ParsedDoc

PDF_CONTENT_TYPE = "application/pdf"
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_CONTENT_TYPE = "text/plain"

_SOURCE_TYPES = {
    PDF_CONTENT_TYPE: "pdf",
    DOCX_CONTENT_TYPE: "docx",
    TEXT_CONTENT_TYPE: "txt",
}
_EXTENSIONS = {".pdf": PDF_CONTENT_TYPE, ".docx": DOCX_CONTENT_TYPE, ".txt": TEXT_CONTENT_TYPE}


def guess_content_type(file_name: str, declared: str | None = None) -> str:
    declared_type = (declared or "").split(";")[0].strip().lower()
    if declared_type in _SOURCE_TYPES:
        return declared_type
    lowered = file_name.lower()
    for extension, content_type in _EXTENSIONS.items():
        if lowered.endswith(extension):
            return content_type
    return declared_type or "application/octet-stream"


def validate_upload(
    *,
    file_name: str,
    content_type: str,
    size: int,
    max_bytes: int | None = None,
    allowed_types: tuple[str, ...] | None = None,
) -> None:
    """Reject uploads before any storage or model call is made."""
    limit = max_bytes if max_bytes is not None else settings.max_upload_bytes
    allowed = allowed_types if allowed_types is not None else settings.allowed_content_types
    if not file_name.strip():
        raise ValidationError("File name is required.")
    if content_type not in allowed:
        raise UnsupportedMediaTypeError(
            f"Unsupported file type '{content_type}'. Allowed: {', '.join(sorted(allowed))}."
        )
    if size <= 0:
        raise ValidationError("Uploaded file is empty.")
    if size > limit:
        raise PayloadTooLargeError(f"File too large. Maximum allowed size is {limit // (1024 * 1024)} MB.")


def _parse_txt(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    return content.decode("utf-8", errors="replace"), [], []


def _parse_pdf(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    blocks: list[ParsedBlock] = []
    try:
        reader = PdfReader(BytesIO(content))
        text_parts: list[str] = []
        for index, page in enumerate(reader.pages, start=1):
            page_text = (page.extract_text() or "").strip()
            if page_text:
                text_parts.append(page_text)
                blocks.append(ParsedBlock(page=index, text=page_text))
    except (PdfReadError, ValueError, OSError) as exc:
        raise ValidationError(f"PDF parsing failed: {exc}") from exc
    if not text_parts:
        warnings.append("No extractable text found in PDF.")
    return "\n".join(text_parts), blocks, warnings


def _parse_docx(content: bytes) -> tuple[str, list[ParsedBlock], list[str]]:
    warnings: list[str] = []
    try:
        document = DocxDocument(BytesIO(content))
    except Exception as exc:  # python-docx raises several unrelated types on bad archives
        raise ValidationError(f"DOCX parsing failed: {exc}") from exc
    paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
    blocks = [ParsedBlock(page=None, text=paragraph) for paragraph in paragraphs]
    if not paragraphs:
        warnings.append("No extractable text found in DOCX.")
    return "\n".join(paragraphs), blocks, warnings


def parse_bytes(*, file_name: str, content: bytes, content_type: str | None = None) -> ParsedDoc:
    resolved_type = guess_content_type(file_name, content_type)
    source_type = _SOURCE_TYPES.get(resolved_type)
    if source_type == "txt":
        text, blocks, warnings = _parse_txt(content)
    elif source_type == "pdf":
        text, blocks, warnings = _parse_pdf(content)
    elif source_type == "docx":
        text, blocks, warnings = _parse_docx(content)
    else:
        raise UnsupportedMediaTypeError(
            f"Unsupported file type '{resolved_type}'. Supported types: .txt, .pdf, .docx"
        )

    return ParsedDoc(
        file_name=file_name,
        source_type=source_type,
        text=text,
        blocks=blocks,
        parsing_warnings=warnings,
        metadata={"content_type": resolved_type, "bytes": len(content)},
    )
