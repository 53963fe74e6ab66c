from fastapi import APIRouter, Depends, status

from skillsense.core.security import Session, require_session
from skillsense.db import store
from skillsense.schemas.jobs import JobMatch, JobRequirement, JobRequirementCreate
from skillsense.services import job_match_service

router = APIRouter(prefix="/job-requirements")


@router.post("", response_model=JobRequirement, status_code=status.HTTP_201_CREATED)
async def create_requirement(payload: JobRequirementCreate, session: Session = Depends(require_session)):
    return job_match_service.create_requirement(session, payload)


@router.get("", response_model=list[JobRequirement])
async def list_requirements(session: Session = Depends(require_session)):
    return store.list_job_requirements(session.user_id)


@router.get("/{requirement_id}", response_model=JobRequirement)
async def get_requirement(requirement_id: str, session: Session = Depends(require_session)):
    return job_match_service.get_requirement(session, requirement_id)


@router.delete("/{requirement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_requirement(requirement_id: str, session: Session = Depends(require_session)):
    job_match_service.delete_requirement(session, requirement_id)


@router.post("/{requirement_id}/match", response_model=JobMatch)
async def match_requirement(requirement_id: str, session: Session = Depends(require_session)):
    return job_match_service.match_requirement(session, requirement_id)
