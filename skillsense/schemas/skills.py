from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

ProficiencyLevel = Literal["beginner", "intermediate", "advanced", "expert"]
SkillCategory = Literal["technical", "tools", "soft_skills", "domain"]
EvidenceType = Literal[
    "explicit_mention",
    "code_repository",
    "project",
    "certification",
    "endorsement",
    "achievement",
    "tool_usage",
    "inferred_from_context",
]
SourceType = Literal["cv", "linkedin", "github", "blog", "performance_review", "other"]
PrivacyLevel = Literal["public", "internal", "private"]

PROFICIENCY_LEVELS: tuple[str, ...] = ("beginner", "intermediate", "advanced", "expert")
SKILL_CATEGORIES: tuple[str, ...] = ("technical", "tools", "soft_skills", "domain")


class EvidenceEntry(BaseModel):
    snippet: str = ""
    reliability_score: float = Field(ge=0.0, le=1.0)
    document_id: str | None = None
    evidence_type: EvidenceType = "explicit_mention"
    source_type: SourceType = "cv"
    context: str | None = None


class SkillCandidate(BaseModel):
    """Raw skill as produced by an extractor, before filtering."""

    name: str
    confidence_score: float = Field(ge=0.0, le=1.0)
    category: SkillCategory | None = None
    proficiency_level: ProficiencyLevel = "beginner"
    is_explicit: bool | None = None
    evidence_text: str = ""
    years_experience: int | None = Field(default=None, ge=0)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("skill name must not be blank")
        return stripped

    @field_validator("years_experience", mode="before")
    @classmethod
    def _coerce_years(cls, value):
        # Extractors return fractional years; storage keeps whole years.
        if value is None or value == "":
            return None
        return int(float(value))


class AggregatedSkill(BaseModel):
    name: str
    category: SkillCategory
    confidence_score: float = Field(ge=0.0, le=1.0)
    proficiency_level: ProficiencyLevel
    is_explicit: bool
    years_experience: int | None = None
    evidence: list[EvidenceEntry] = Field(min_length=1)


class Skill(BaseModel):
    id: str
    user_id: str
    name: str
    category: SkillCategory
    confidence_score: float = Field(ge=0.0, le=1.0)
    proficiency_level: ProficiencyLevel
    years_experience: int | None = None
    is_explicit: bool
    source_documents: list[str] = Field(default_factory=list)
    evidence_trail: list[EvidenceEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class SkillCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    proficiency_level: ProficiencyLevel = "intermediate"
    category: SkillCategory | None = None
    years_experience: int | None = Field(default=None, ge=0, le=50)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Skill name is required")
        return stripped


class SkillUpdate(BaseModel):
    proficiency_level: ProficiencyLevel | None = None
    category: SkillCategory | None = None
    years_experience: int | None = Field(default=None, ge=0, le=50)


class ExtractionStats(BaseModel):
    kept: int = 0
    explicit: int = 0
    implicit: int = 0
    hidden: int = 0
    average_confidence: float = 0.0


class SkillSummary(BaseModel):
    total_skills: int
    explicit_skills: int
    implicit_skills: int
    average_confidence: float
    completeness_score: float = Field(ge=0.0, le=1.0)
    by_category: dict[str, int]
    by_proficiency: dict[str, int]
