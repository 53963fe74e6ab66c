from __future__ import annotations

from typing import Any, Iterable

from skillsense.schemas.enhance import GitHubContext, LinkedInData

_PROFICIENCY_ENUM = ["beginner", "intermediate", "advanced", "expert"]
_CATEGORY_ENUM = ["technical", "tools", "soft_skills", "domain"]

SKILL_EXTRACTION_SYSTEM_PROMPT = """You are an expert talent analyst. Extract every professional skill a resume
demonstrates, both the ones listed outright and the ones implied by titles, responsibilities,
projects and education.

Confidence (0.0-1.0) reflects evidence strength:
- listed in a skills section and repeated elsewhere: 0.90-0.95
- listed once in a skills section: 0.85-0.90
- clearly shown in a role description: 0.75-0.85
- implied by responsibilities: 0.65-0.75
- implied by a job title: 0.60-0.70
- weak contextual hint: 0.50-0.60
Do not return anything below 0.50.

Proficiency: expert for 7+ years or team leadership with the skill, advanced for 4-6 years or
significant projects, intermediate for 2-3 years or repeated use, beginner otherwise.

Categories: technical (languages, algorithms), tools (software, platforms), soft_skills
(leadership, communication, teamwork), domain (industry expertise).

Quote a short evidence excerpt (at most 100 characters) for every skill."""

JOB_SKILLS_SYSTEM_PROMPT = """You extract the skills a job description asks for. For each skill give a
normalized name (for example "JS" becomes "JavaScript", "React.js" becomes "React"), the proficiency
level the role needs, and whether it is critical (a must-have) rather than nice-to-have. Include
technical skills, tools, frameworks, languages and soft skills."""

ANALYZE_SYSTEM_PROMPT = """You are a professional resume consultant. Review the resume and return
actionable feedback: skills the person has that the resume never mentions, weak sections with a
concrete suggestion each, statements that need metrics, and the share (0.0-1.0) of the person's
known skills the resume actually mentions."""

ENHANCE_SYSTEM_PROMPT = """You are a professional resume writer. Rewrite the resume so it is more
impactful: keep its structure and sections, add measurable outcomes where the text supports them,
use strong action verbs, weave the person's skills in naturally and keep a professional tone.
List every change with the original text, the rewritten text and the reason."""


def _tool(name: str, description: str, properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
                "additionalProperties": False,
            },
        },
    }


def skill_extraction_tool(*, include_explicit: bool = True) -> dict[str, Any]:
    item_properties: dict[str, Any] = {
        "skill_name": {"type": "string", "description": "Standardized skill name"},
        "confidence_score": {"type": "number", "minimum": 0, "maximum": 1},
        "skill_category": {"type": "string", "enum": _CATEGORY_ENUM},
        "proficiency_level": {"type": "string", "enum": _PROFICIENCY_ENUM},
        "evidence_text": {"type": "string", "description": "Resume excerpt, max 100 characters"},
        "years_experience": {"type": ["number", "null"]},
    }
    required = ["skill_name", "confidence_score", "skill_category", "proficiency_level", "evidence_text"]
    if include_explicit:
        item_properties["is_explicit"] = {
            "type": "boolean",
            "description": "True when listed outright, false when inferred",
        }
        required.append("is_explicit")

    return _tool(
        "extract_skills",
        "Extract skills from resume text",
        {
            "skills": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": item_properties,
                    "required": required,
                    "additionalProperties": False,
                },
            }
        },
        ["skills"],
    )


def job_skills_tool() -> dict[str, Any]:
    return _tool(
        "extract_job_skills",
        "Extract required skills from a job description",
        {
            "skills": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "level": {"type": "string", "enum": _PROFICIENCY_ENUM},
                        "critical": {"type": "boolean"},
                    },
                    "required": ["name", "level", "critical"],
                    "additionalProperties": False,
                },
            }
        },
        ["skills"],
    )


def analyze_resume_tool() -> dict[str, Any]:
    return _tool(
        "analyze_resume",
        "Analyze a resume and suggest improvements",
        {
            "missing_skills": {"type": "array", "items": {"type": "string"}},
            "weak_points": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "section": {"type": "string"},
                        "issue": {"type": "string"},
                        "suggestion": {"type": "string"},
                    },
                    "required": ["section", "issue", "suggestion"],
                    "additionalProperties": False,
                },
            },
            "quantification_needed": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "original": {"type": "string"},
                        "suggestion": {"type": "string"},
                    },
                    "required": ["original", "suggestion"],
                    "additionalProperties": False,
                },
            },
            "skill_coverage": {"type": "number", "minimum": 0, "maximum": 1},
        },
        ["missing_skills", "weak_points", "quantification_needed", "skill_coverage"],
    )


def enhance_resume_tool() -> dict[str, Any]:
    return _tool(
        "enhance_resume",
        "Rewrite a resume to be more impactful",
        {
            "enhanced_text": {"type": "string"},
            "changes": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "original": {"type": "string"},
                        "enhanced": {"type": "string"},
                        "reason": {"type": "string"},
                    },
                    "required": ["original", "enhanced", "reason"],
                    "additionalProperties": False,
                },
            },
        },
        ["enhanced_text", "changes"],
    )


def build_skill_extraction_prompt(text: str, *, max_chars: int) -> str:
    return (
        "Extract all skills, explicit and implicit, from this resume.\n\n"
        f"{text[:max_chars]}\n\n"
        "Cover the skills section, technologies named in roles and projects, soft skills shown in "
        "work descriptions, certifications and domain expertise from education and industry."
    )


def build_job_skills_prompt(job_description: str, *, max_chars: int) -> str:
    return f"Extract all skills from this job description:\n\n{job_description[:max_chars]}"


def _context_block(
    *,
    job_description: str | None,
    github: GitHubContext | None,
    linkedin: LinkedInData | None,
    rewrite: bool,
) -> str:
    parts: list[str] = []
    if job_description:
        target = "Tailor the rewrite to this role." if rewrite else "Judge relevance against this role."
        parts.append(f"Target job description:\n{job_description}\n{target}")
    if github:
        repos = ", ".join(str(repo.get("name", "")) for repo in github.popular_repos[:3] if repo.get("name"))
        parts.append(
            "GitHub profile:\n"
            f"- Public repos: {github.public_repos}\n"
            f"- Top languages: {', '.join(github.languages[:5])}\n"
            f"- Notable projects: {repos}"
        )
    if linkedin:
        limit = 300 if rewrite else 200
        listed = ", ".join(item.strip() for item in linkedin.skills.split(",")[:10] if item.strip())
        parts.append(
            "LinkedIn profile:\n"
            f"- Headline: {linkedin.headline}\n"
            f"- Summary: {linkedin.summary[:limit]}\n"
            f"- Skills: {listed}\n"
            f"- Experience: {linkedin.experience[:limit]}\n"
            f"- Education: {linkedin.education[:limit]}"
        )
    return "\n\n".join(parts)


def build_analyze_prompt(
    resume_text: str,
    skills: Iterable[str],
    *,
    job_description: str | None = None,
    github: GitHubContext | None = None,
    linkedin: LinkedInData | None = None,
) -> str:
    context = _context_block(job_description=job_description, github=github, linkedin=linkedin, rewrite=False)
    prompt = (
        f"Known skills: {', '.join(skills)}\n\n"
        f"Resume text:\n{resume_text}\n\n"
        "Identify skills missing from the resume, weak sections, statements that need metrics, "
        "and the share of known skills the resume mentions."
    )
    return f"{prompt}\n\n{context}" if context else prompt


def build_enhance_prompt(
    resume_text: str,
    skills: Iterable[str],
    *,
    job_description: str | None = None,
    github: GitHubContext | None = None,
    linkedin: LinkedInData | None = None,
) -> str:
    context = _context_block(job_description=job_description, github=github, linkedin=linkedin, rewrite=True)
    prompt = (
        f"Skills to incorporate: {', '.join(skills)}\n\n"
        f"Original resume:\n{resume_text}\n\n"
        "Rewrite the resume with quantified achievements and the skills woven in."
    )
    return f"{prompt}\n\n{context}" if context else prompt
