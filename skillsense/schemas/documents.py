from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ProcessingStatus = Literal["pending", "processing", "completed", "failed"]
DocumentType = Literal["resume", "cv", "other"]
BatchItemStatus = Literal["queued", "uploading", "extracting", "analyzing", "success", "error"]


class Document(BaseModel):
    id: str
    user_id: str
    file_name: str
    bucket: str
    storage_path: str
    content_type: str
    document_type: DocumentType = "resume"
    processing_status: ProcessingStatus = "pending"
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


class DocumentAnalysis(BaseModel):
    success: bool
    document_id: str
    skills_count: int = 0
    explicit_skills: int = 0
    implicit_skills: int = 0
    hidden_skills: int = 0
    average_confidence: float = 0.0
    message: str = ""
    error: str | None = None


class BatchUploadItem(BaseModel):
    file_name: str
    status: BatchItemStatus = "queued"
    document_id: str | None = None
    skills_count: int = 0
    error: str | None = None


class BatchUploadResult(BaseModel):
    items: list[BatchUploadItem] = Field(default_factory=list)
    succeeded: int = 0
    failed: int = 0


class DocumentUploadResponse(BaseModel):
    document: Document
    analysis: DocumentAnalysis | None = None
