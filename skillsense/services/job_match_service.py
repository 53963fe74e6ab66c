from __future__ import annotations

import logging

from skillsense.ai.types import JobSkillExtractor
from skillsense.core.errors import NotFoundError
from skillsense.core.security import Session
from skillsense.db import store
from skillsense.features.job_match import score_job_match
from skillsense.schemas.jobs import JobMatch, JobRequirement, JobRequirementCreate

logger = logging.getLogger(__name__)


async def analyze_job_match(
    session: Session,
    *,
    user_id: str,
    job_description: str,
    extractor: JobSkillExtractor,
    job_title: str | None = None,
) -> JobMatch:
    session.ensure_owner(user_id)
    required = await extractor.extract_required_skills(job_description)
    result = score_job_match(store.list_skills(session.user_id), required)
    match = store.save_job_match(
        user_id=session.user_id,
        job_title=job_title,
        job_description=job_description,
        result=result,
    )
    logger.info(
        "job_match_completed user=%s match=%s score=%s required=%s",
        session.user_id,
        match.id,
        match.match_score,
        match.total_skills,
    )
    return match


def match_requirement(session: Session, requirement_id: str) -> JobMatch:
    """Score the user against a stored requirement without calling the model."""
    requirement = get_requirement(session, requirement_id)
    result = score_job_match(store.list_skills(session.user_id), requirement.skills)
    return store.save_job_match(
        user_id=session.user_id,
        job_title=requirement.title,
        job_description=requirement.description or requirement.title,
        result=result,
    )


def create_requirement(session: Session, payload: JobRequirementCreate) -> JobRequirement:
    return store.create_job_requirement(
        user_id=session.user_id,
        title=payload.title,
        description=payload.description,
        skills=payload.skills,
    )


def get_requirement(session: Session, requirement_id: str) -> JobRequirement:
    requirement = store.get_job_requirement(requirement_id)
    if requirement is None:
        raise NotFoundError("Job requirement not found.")
    session.ensure_owner(requirement.user_id)
    return requirement


def delete_requirement(session: Session, requirement_id: str) -> None:
    requirement = get_requirement(session, requirement_id)
    store.delete_job_requirement(requirement.id)


def get_match(session: Session, match_id: str) -> JobMatch:
    match = store.get_job_match(match_id)
    if match is None:
        raise NotFoundError("Job match not found.")
    session.ensure_owner(match.user_id)
    return match
