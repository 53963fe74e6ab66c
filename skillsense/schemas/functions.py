from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from .enhance import EnhanceAction, GitHubContext, LinkedInData, ResumeAnalysis, ResumeEnhancement
from .github import GitHubAnalysis
from .jobs import SkillMatchRecord


class ProcessCVRequest(BaseModel):
    file_path: str = Field(min_length=1, max_length=500)
    file_name: str = Field(min_length=1, max_length=255)


class ProcessCVResponse(BaseModel):
    success: bool
    skills_count: int
    message: str


class ExtractSkillsRequest(BaseModel):
    extracted_text: str = Field(max_length=200000)
    document_id: str = Field(min_length=1, max_length=100)
    user_id: str = Field(min_length=1, max_length=100)


class EnhanceCVRequest(BaseModel):
    original_text: str = Field(min_length=1, max_length=50000)
    action: EnhanceAction = "analyze"
    job_description: str | None = Field(default=None, max_length=20000)
    github_data: GitHubContext | None = None
    linkedin_data: LinkedInData | None = None

    @field_validator("original_text")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("original_text must not be blank")
        return value


class EnhanceCVResponse(BaseModel):
    success: bool = True
    action: EnhanceAction
    analysis: ResumeAnalysis | None = None
    enhancement: ResumeEnhancement | None = None


class JobMatchRequest(BaseModel):
    job_description: str = Field(min_length=1, max_length=20000)
    user_id: str = Field(min_length=1, max_length=100)
    job_title: str | None = Field(default=None, max_length=200)

    @field_validator("job_description")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("job_description must not be blank")
        return value


class JobMatchResponse(BaseModel):
    success: bool = True
    match_id: str
    match_score: int
    matched_skills: list[SkillMatchRecord]
    missing_skills: list[SkillMatchRecord]
    total_skills: int
    matched_count: int
    missing_count: int


class AnalyzeGitHubRequest(BaseModel):
    username: str = Field(min_length=1, max_length=39, pattern=r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")
    merge_into_profile: bool = False


class AnalyzeGitHubResponse(GitHubAnalysis):
    success: bool = True


class SessionCreateRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100, pattern=r"^[A-Za-z0-9_.@-]+$")
    display_name: str | None = Field(default=None, max_length=120)
    email: str | None = Field(default=None, max_length=254)


class SessionCreateResponse(BaseModel):
    token: str
    user_id: str
    expires_at: str
