from __future__ import annotations

from typing import Sequence

from skillsense.core.config.scoring import get_roles_config
from skillsense.schemas.jobs import GapAnalysis, GapItem, LearningResource, RequiredSkill

from .job_match import UserSkillLike, dedupe_required, score_job_match


def available_roles() -> list[str]:
    roles = get_roles_config().get("roles") or {}
    return list(roles)


def role_requirements(role: str) -> list[RequiredSkill]:
    roles = get_roles_config().get("roles") or {}
    template = roles.get(role)
    if template is None:
        lowered = {name.lower(): name for name in roles}
        canonical = lowered.get(role.strip().lower())
        template = roles.get(canonical) if canonical else None
    if template is None:
        raise KeyError(role)
    return [
        RequiredSkill(
            name=str(entry["name"]),
            required_level=entry.get("level", "intermediate"),
            importance=entry.get("importance", "required"),
        )
        for entry in template
    ]


def learning_resource(skill_name: str) -> LearningResource:
    resources = get_roles_config().get("learning_resources") or {}
    entry = resources.get(skill_name)
    if entry is None:
        by_lower = {name.lower(): value for name, value in resources.items()}
        entry = by_lower.get(skill_name.lower()) or resources.get("default") or {"time": "unknown", "courses": []}
    return LearningResource(time=str(entry.get("time", "unknown")), courses=list(entry.get("courses") or []))


def analyze_gap(
    user_skills: Sequence[UserSkillLike],
    required: Sequence[RequiredSkill],
    *,
    role: str,
) -> GapAnalysis:
    result = score_job_match(user_skills, required)
    importance = {skill.name.lower(): skill.importance for skill in dedupe_required(required)}

    items: list[GapItem] = []
    for record in [*result.matched_skills, *result.missing_skills]:
        if record.is_matched:
            status = "match"
        elif record.user_proficiency is not None:
            status = "partial"
        else:
            status = "missing"
        items.append(
            GapItem(
                skill=record.skill_name,
                required_level=record.required_level,
                status=status,
                importance=importance.get(record.skill_name.lower(), "required"),
                current_level=record.user_proficiency,
                learning_resource=None if status == "match" else learning_resource(record.skill_name),
            )
        )

    order = {"missing": 0, "partial": 1, "match": 2}
    rank = {"required": 0, "preferred": 1, "nice-to-have": 2}
    items.sort(key=lambda item: (order[item.status], rank[item.importance]))

    return GapAnalysis(
        role=role,
        match_rate=result.match_score,
        items=items,
        matching=sum(1 for item in items if item.status == "match"),
        partial=sum(1 for item in items if item.status == "partial"),
        missing=sum(1 for item in items if item.status == "missing"),
    )
