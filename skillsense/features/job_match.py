from __future__ import annotations

from typing import Any, Protocol, Sequence

from skillsense.schemas.jobs import JobMatchResult, RequiredSkill, SkillMatchRecord

from .proficiency import meets_level, round_half_up


class UserSkillLike(Protocol):
    name: str
    proficiency_level: Any
    confidence_score: float


def dedupe_required(required: Sequence[RequiredSkill]) -> list[RequiredSkill]:
    seen: set[str] = set()
    unique: list[RequiredSkill] = []
    for skill in required:
        key = skill.name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(skill)
    return unique


def find_user_skill(required_name: str, user_skills: Sequence[UserSkillLike]) -> UserSkillLike | None:
    """First user skill whose name equals or contains the required name, or is contained in it.

    Plain substring containment: "Java" also matches "JavaScript" and "Go"
    matches "Google Cloud". Blank user skill names never match.
    """
    wanted = required_name.strip().lower()
    if not wanted:
        return None
    for skill in user_skills:
        have = (skill.name or "").strip().lower()
        if not have:
            continue
        if have == wanted or wanted in have or have in wanted:
            return skill
    return None


def score_job_match(
    user_skills: Sequence[UserSkillLike],
    required_skills: Sequence[RequiredSkill],
) -> JobMatchResult:
    required = dedupe_required(required_skills)
    matched: list[SkillMatchRecord] = []
    missing: list[SkillMatchRecord] = []

    for requirement in required:
        user_skill = find_user_skill(requirement.name, user_skills)
        if user_skill is None:
            missing.append(
                SkillMatchRecord(
                    skill_name=requirement.name,
                    required_level=requirement.required_level,
                    is_matched=False,
                    is_critical=requirement.critical,
                )
            )
            continue

        user_level = user_skill.proficiency_level or "beginner"
        matched.append(
            SkillMatchRecord(
                skill_name=requirement.name,
                required_level=requirement.required_level,
                is_matched=meets_level(user_level, requirement.required_level),
                is_critical=requirement.critical,
                user_confidence=user_skill.confidence_score,
                user_proficiency=user_level,
            )
        )

    total = len(required)
    fully_met = sum(1 for record in matched if record.is_matched)
    score = round_half_up(100 * fully_met / total) if total else 0

    # Display order: critical gaps first, then skills present below the required level.
    missing.sort(key=lambda record: not record.is_critical)
    matched.sort(key=lambda record: (record.is_matched, not record.is_critical))

    return JobMatchResult(
        match_score=max(0, min(100, score)),
        matched_skills=matched,
        missing_skills=missing,
        total_skills=total,
        matched_count=len(matched),
        missing_count=len(missing),
    )
