from __future__ import annotations

import logging

from skillsense.ai.types import ResumeAdvisor
from skillsense.core.security import Session
from skillsense.db import store
from skillsense.schemas.functions import EnhanceCVRequest, EnhanceCVResponse

logger = logging.getLogger(__name__)


async def enhance_cv(session: Session, payload: EnhanceCVRequest, *, advisor: ResumeAdvisor) -> EnhanceCVResponse:
    skills = store.list_skills(session.user_id)
    context = {
        "job_description": payload.job_description,
        "github": payload.github_data,
        "linkedin": payload.linkedin_data,
    }
    logger.info(
        "enhance_cv_requested user=%s action=%s job=%s github=%s linkedin=%s",
        session.user_id,
        payload.action,
        bool(payload.job_description),
        bool(payload.github_data),
        bool(payload.linkedin_data),
    )

    if payload.action == "analyze":
        analysis = await advisor.analyze_resume(
            payload.original_text,
            [skill.name for skill in skills],
            **context,
        )
        return EnhanceCVResponse(action="analyze", analysis=analysis)

    enhancement = await advisor.enhance_resume(
        payload.original_text,
        [f"{skill.name} ({skill.proficiency_level})" for skill in skills],
        **context,
    )
    return EnhanceCVResponse(action="enhance", enhancement=enhancement)
