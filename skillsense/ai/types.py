from typing import Protocol, Sequence

from skillsense.schemas.enhance import GitHubContext, LinkedInData, ResumeAnalysis, ResumeEnhancement
from skillsense.schemas.jobs import RequiredSkill
from skillsense.schemas.skills import SkillCandidate


class SkillExtractor(Protocol):
    async def extract_skills(
        self, text: str, *, include_explicit: bool = True, tool_slug: str = "extract-skills"
    ) -> list[SkillCandidate]: ...


class JobSkillExtractor(Protocol):
    async def extract_required_skills(self, job_description: str) -> list[RequiredSkill]: ...


class ResumeAdvisor(Protocol):
    async def analyze_resume(
        self,
        resume_text: str,
        skills: Sequence[str],
        *,
        job_description: str | None = None,
        github: GitHubContext | None = None,
        linkedin: LinkedInData | None = None,
    ) -> ResumeAnalysis: ...

    async def enhance_resume(
        self,
        resume_text: str,
        skills: Sequence[str],
        *,
        job_description: str | None = None,
        github: GitHubContext | None = None,
        linkedin: LinkedInData | None = None,
    ) -> ResumeEnhancement: ...


class AIClient(SkillExtractor, JobSkillExtractor, ResumeAdvisor, Protocol):
    """Everything the HTTP layer needs from the hosted model."""
