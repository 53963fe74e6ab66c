from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

SignalSource = Literal["Programming Language", "Framework/Tool", "Soft Skill"]


class RepoSnapshot(BaseModel):
    name: str
    description: str | None = None
    topics: list[str] = Field(default_factory=list)
    stars: int = Field(default=0, ge=0)
    forks: int = Field(default=0, ge=0)
    is_fork: bool = False
    language: str | None = None
    languages: dict[str, int] = Field(default_factory=dict)
    readme: str | None = None
    url: str | None = None


class GitHubProfile(BaseModel):
    login: str
    name: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    location: str | None = None
    company: str | None = None
    blog: str | None = None
    public_repos: int = 0
    followers: int = 0
    following: int = 0
    created_at: str | None = None
    profile_url: str | None = None


class LanguageStat(BaseModel):
    language: str
    bytes: int
    percentage: float = Field(ge=0.0, le=1.0)


class DetectedSkill(BaseModel):
    name: str
    source: SignalSource
    confidence: float = Field(ge=0.0, le=1.0)
    evidence: list[str] = Field(default_factory=list)


class PopularRepo(BaseModel):
    name: str
    description: str | None = None
    stars: int = 0
    forks: int = 0
    language: str | None = None
    url: str | None = None


class GitHubSignals(BaseModel):
    repo_count: int = 0
    total_bytes: int = 0
    total_stars: int = 0
    average_forks: float = 0.0
    languages: list[LanguageStat] = Field(default_factory=list)
    top_languages: list[str] = Field(default_factory=list)
    popular_repos: list[PopularRepo] = Field(default_factory=list)
    skills: list[DetectedSkill] = Field(default_factory=list)


class GitHubAnalysis(GitHubSignals):
    profile: GitHubProfile
    merged_skills: int = 0
    analyzed_at: datetime
