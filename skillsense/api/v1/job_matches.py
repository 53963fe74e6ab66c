from fastapi import APIRouter, Depends, Query

from skillsense.core.security import Session, require_session
from skillsense.db import store
from skillsense.schemas.jobs import JobMatch
from skillsense.services import job_match_service

router = APIRouter(prefix="/job-matches")


@router.get("", response_model=list[JobMatch])
async def list_matches(
    limit: int = Query(default=20, ge=1, le=100),
    session: Session = Depends(require_session),
):
    return store.list_job_matches(session.user_id, limit=limit)


@router.get("/{match_id}", response_model=JobMatch)
async def get_match(match_id: str, session: Session = Depends(require_session)):
    return job_match_service.get_match(session, match_id)
