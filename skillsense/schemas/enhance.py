from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

EnhanceAction = Literal["analyze", "enhance"]


class LinkedInData(BaseModel):
    headline: str = Field(default="", max_length=500)
    summary: str = Field(default="", max_length=10000)
    experience: str = Field(default="", max_length=20000)
    skills: str = Field(default="", max_length=5000)
    education: str = Field(default="", max_length=5000)


class GitHubContext(BaseModel):
    public_repos: int = 0
    languages: list[str] = Field(default_factory=list)
    popular_repos: list[dict] = Field(default_factory=list)


class WeakPoint(BaseModel):
    section: str
    issue: str
    suggestion: str


class QuantificationHint(BaseModel):
    original: str
    suggestion: str


class ResumeAnalysis(BaseModel):
    missing_skills: list[str] = Field(default_factory=list)
    weak_points: list[WeakPoint] = Field(default_factory=list)
    quantification_needed: list[QuantificationHint] = Field(default_factory=list)
    skill_coverage: float = Field(default=0.0, ge=0.0, le=1.0)


class ResumeChange(BaseModel):
    original: str
    enhanced: str
    reason: str


class ResumeEnhancement(BaseModel):
    enhanced_text: str
    changes: list[ResumeChange] = Field(default_factory=list)
