from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, computed_field, field_validator

from .skills import ProficiencyLevel

Importance = Literal["required", "preferred", "nice-to-have"]
GapStatus = Literal["match", "partial", "missing"]


class UserSkillInput(BaseModel):
    name: str
    proficiency_level: ProficiencyLevel | None = None
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)


class RequiredSkill(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    required_level: ProficiencyLevel = "beginner"
    importance: Importance = "required"

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("required skill name must not be blank")
        return stripped

    @computed_field  # type: ignore[prop-decorator]
    @property
    def critical(self) -> bool:
        return self.importance == "required"

    @classmethod
    def from_critical(cls, name: str, required_level: str, critical: bool) -> "RequiredSkill":
        return cls(
            name=name,
            required_level=required_level,
            importance="required" if critical else "preferred",
        )


class JobRequirementCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=20000)
    skills: list[RequiredSkill] = Field(default_factory=list, max_length=100)


class JobRequirement(BaseModel):
    id: str
    user_id: str
    title: str
    description: str | None = None
    skills: list[RequiredSkill] = Field(default_factory=list)
    created_at: datetime


class SkillMatchRecord(BaseModel):
    skill_name: str
    required_level: ProficiencyLevel
    is_matched: bool
    is_critical: bool
    user_confidence: float | None = None
    user_proficiency: ProficiencyLevel | None = None


class JobMatchResult(BaseModel):
    match_score: int = Field(ge=0, le=100)
    matched_skills: list[SkillMatchRecord] = Field(default_factory=list)
    missing_skills: list[SkillMatchRecord] = Field(default_factory=list)
    total_skills: int = 0
    matched_count: int = 0
    missing_count: int = 0


class JobMatch(JobMatchResult):
    id: str
    user_id: str
    job_title: str | None = None
    job_description: str
    created_at: datetime


class LearningResource(BaseModel):
    time: str
    courses: list[str] = Field(default_factory=list)


class GapItem(BaseModel):
    skill: str
    required_level: ProficiencyLevel
    status: GapStatus
    importance: Importance
    current_level: ProficiencyLevel | None = None
    learning_resource: LearningResource | None = None


class GapAnalysis(BaseModel):
    role: str
    match_rate: int = Field(ge=0, le=100)
    items: list[GapItem] = Field(default_factory=list)
    matching: int = 0
    partial: int = 0
    missing: int = 0
