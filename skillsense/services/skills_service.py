from __future__ import annotations

import logging

from skillsense.core.config.scoring import get_scoring_value
from skillsense.core.errors import NotFoundError, ValidationError
from skillsense.core.security import Session
from skillsense.db import store
from skillsense.features.gap_analysis import analyze_gap, available_roles, role_requirements
from skillsense.features.skill_summary import completeness_score, summarize_skills
from skillsense.schemas.jobs import GapAnalysis
from skillsense.schemas.skills import AggregatedSkill, EvidenceEntry, Skill, SkillCreate, SkillSummary, SkillUpdate
from skillsense.taxonomy import get_default_categorizer

logger = logging.getLogger(__name__)

MANUAL_SOURCE = "manual"


def _owned_skill(session: Session, skill_id: str) -> Skill:
    skill = store.get_skill(skill_id)
    if skill is None:
        raise NotFoundError("Skill not found.")
    session.ensure_owner(skill.user_id)
    return skill


def _refresh_completeness(user_id: str) -> None:
    store.update_profile(user_id, completeness_score=completeness_score(store.count_skills(user_id)))


def list_skills(session: Session) -> list[Skill]:
    return store.list_skills(session.user_id)


def add_manual_skill(session: Session, payload: SkillCreate) -> Skill:
    if store.find_skill_by_name(session.user_id, payload.name) is not None:
        raise ValidationError(f"Skill '{payload.name}' is already in your profile.")

    confidence = float(get_scoring_value("extraction.manual_confidence", 1.0))
    skill = AggregatedSkill(
        name=payload.name,
        category=payload.category or get_default_categorizer().categorize(payload.name),
        confidence_score=confidence,
        proficiency_level=payload.proficiency_level,
        is_explicit=True,
        years_experience=payload.years_experience,
        evidence=[
            EvidenceEntry(
                snippet="Manually added by user",
                reliability_score=confidence,
                evidence_type="explicit_mention",
                source_type="other",
            )
        ],
    )
    (skill_id,) = store.save_skills(session.user_id, [skill], source=MANUAL_SOURCE)
    _refresh_completeness(session.user_id)
    logger.info("skill_added_manually user=%s skill=%s", session.user_id, skill_id)
    created = store.get_skill(skill_id)
    if created is None:
        raise NotFoundError("Skill not found.")
    return created


def update_skill(session: Session, skill_id: str, payload: SkillUpdate) -> Skill:
    skill = _owned_skill(session, skill_id)
    store.update_skill(skill.id, payload.model_dump(exclude_unset=True))
    updated = store.get_skill(skill.id)
    if updated is None:
        raise NotFoundError("Skill not found.")
    return updated


def delete_skill(session: Session, skill_id: str) -> None:
    skill = _owned_skill(session, skill_id)
    store.delete_skill(skill.id)
    _refresh_completeness(session.user_id)
    logger.info("skill_deleted user=%s skill=%s", session.user_id, skill.id)


def skill_summary(session: Session) -> SkillSummary:
    return summarize_skills(store.list_skills(session.user_id))


def gap_analysis(session: Session, *, role: str | None = None, job_requirement_id: str | None = None) -> GapAnalysis:
    if job_requirement_id:
        requirement = store.get_job_requirement(job_requirement_id)
        if requirement is None:
            raise NotFoundError("Job requirement not found.")
        session.ensure_owner(requirement.user_id)
        required, label = requirement.skills, requirement.title
    elif role:
        try:
            required, label = role_requirements(role), role
        except KeyError as exc:
            raise NotFoundError(f"Unknown role '{role}'. Available roles: {', '.join(available_roles())}.") from exc
    else:
        raise ValidationError("Provide either a role or a job_requirement_id.")

    return analyze_gap(store.list_skills(session.user_id), required, role=label)
