from fastapi import APIRouter, Depends, status

from skillsense.core.security import Session, require_session
from skillsense.schemas.organizations import Member, MemberAdd, Organization, OrganizationCreate, TeamSkills
from skillsense.services import team_service

router = APIRouter(prefix="/organizations")


@router.post("", response_model=Organization, status_code=status.HTTP_201_CREATED)
async def create_organization(payload: OrganizationCreate, session: Session = Depends(require_session)):
    return team_service.create_organization(session, payload)


@router.get("", response_model=list[Organization])
async def list_organizations(session: Session = Depends(require_session)):
    return team_service.list_organizations(session)


@router.get("/{organization_id}", response_model=Organization)
async def get_organization(organization_id: str, session: Session = Depends(require_session)):
    return team_service.get_organization(session, organization_id)


@router.post("/{organization_id}/members", response_model=Member, status_code=status.HTTP_201_CREATED)
async def add_member(organization_id: str, payload: MemberAdd, session: Session = Depends(require_session)):
    return team_service.add_member(session, organization_id, payload)


@router.get("/{organization_id}/members", response_model=list[Member])
async def list_members(organization_id: str, session: Session = Depends(require_session)):
    return team_service.list_members(session, organization_id)


@router.get("/{organization_id}/skills", response_model=TeamSkills)
async def team_skills(organization_id: str, session: Session = Depends(require_session)):
    return team_service.team_skills(session, organization_id)
