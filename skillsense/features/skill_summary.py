from __future__ import annotations

from typing import Sequence

from skillsense.core.config.scoring import get_scoring_value
from skillsense.schemas.skills import PROFICIENCY_LEVELS, SKILL_CATEGORIES, Skill, SkillSummary


def completeness_score(skill_count: int) -> float:
    target = int(get_scoring_value("profile.completeness_target_skills", 20)) or 20
    return min(skill_count / target, 1.0)


def summarize_skills(skills: Sequence[Skill]) -> SkillSummary:
    by_category = {category: 0 for category in SKILL_CATEGORIES}
    by_proficiency = {level: 0 for level in PROFICIENCY_LEVELS}
    for skill in skills:
        by_category[skill.category] += 1
        by_proficiency[skill.proficiency_level] += 1

    explicit = sum(1 for skill in skills if skill.is_explicit)
    average = sum(skill.confidence_score for skill in skills) / len(skills) if skills else 0.0
    return SkillSummary(
        total_skills=len(skills),
        explicit_skills=explicit,
        implicit_skills=len(skills) - explicit,
        average_confidence=round(average, 2),
        completeness_score=completeness_score(len(skills)),
        by_category=by_category,
        by_proficiency=by_proficiency,
    )


def group_by_category(skills: Sequence[Skill]) -> dict[str, list[Skill]]:
    """Skills per category, each list sorted by descending confidence."""
    grouped: dict[str, list[Skill]] = {}
    for skill in skills:
        grouped.setdefault(skill.category, []).append(skill)
    for items in grouped.values():
        items.sort(key=lambda skill: (-skill.confidence_score, skill.name.lower()))
    return grouped
