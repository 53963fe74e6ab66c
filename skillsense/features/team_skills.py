from __future__ import annotations

from typing import Sequence

from skillsense.schemas.organizations import TeamSkill, TeamSkills
from skillsense.schemas.skills import PROFICIENCY_LEVELS, Skill


def aggregate_team_skills(organization_id: str, member_ids: Sequence[str], skills: Sequence[Skill]) -> TeamSkills:
    """Additive roll-up of members' skills keyed by case-insensitive name.

    Skills owned by users outside ``member_ids`` are ignored.
    """
    members = set(member_ids)
    grouped: dict[str, dict] = {}
    categories: dict[str, int] = {}

    for skill in skills:
        if skill.user_id not in members:
            continue
        key = skill.name.strip().lower()
        entry = grouped.setdefault(
            key,
            {
                "name": skill.name,
                "members": set(),
                "confidences": [],
                "levels": {level: 0 for level in PROFICIENCY_LEVELS},
            },
        )
        if skill.user_id in entry["members"]:
            continue
        entry["members"].add(skill.user_id)
        entry["confidences"].append(skill.confidence_score)
        entry["levels"][skill.proficiency_level] += 1
        categories[skill.category] = categories.get(skill.category, 0) + 1

    team_skills = [
        TeamSkill(
            name=entry["name"],
            member_count=len(entry["members"]),
            average_confidence=round(sum(entry["confidences"]) / len(entry["confidences"]), 2),
            proficiency_distribution=entry["levels"],
        )
        for entry in grouped.values()
    ]
    team_skills.sort(key=lambda item: (-item.member_count, -item.average_confidence, item.name.lower()))

    return TeamSkills(
        organization_id=organization_id,
        member_count=len(members),
        skills=team_skills,
        category_distribution=categories,
    )
