from __future__ import annotations

import logging

from skillsense.core.errors import NotFoundError, PermissionDeniedError
from skillsense.core.security import Session
from skillsense.db import store
from skillsense.features.team_skills import aggregate_team_skills
from skillsense.schemas.organizations import Member, MemberAdd, Organization, OrganizationCreate, TeamSkills

logger = logging.getLogger(__name__)

_MANAGER_ROLES = {"owner", "admin"}


def _member_organization(session: Session, organization_id: str) -> tuple[Organization, str]:
    organization = store.get_organization(organization_id)
    if organization is None:
        raise NotFoundError("Organization not found.")
    role = store.get_member_role(organization.id, session.user_id)
    if role is None:
        raise PermissionDeniedError("You are not a member of this organization.")
    return organization, role


def create_organization(session: Session, payload: OrganizationCreate) -> Organization:
    organization = store.create_organization(
        name=payload.name.strip(),
        description=payload.description,
        created_by=session.user_id,
    )
    logger.info("organization_created user=%s organization=%s", session.user_id, organization.id)
    return organization


def list_organizations(session: Session) -> list[Organization]:
    return store.list_organizations_for_user(session.user_id)


def get_organization(session: Session, organization_id: str) -> Organization:
    organization, _ = _member_organization(session, organization_id)
    return organization


def add_member(session: Session, organization_id: str, payload: MemberAdd) -> Member:
    organization, role = _member_organization(session, organization_id)
    if role not in _MANAGER_ROLES:
        raise PermissionDeniedError("Only owners and admins can add members.")
    if payload.role == "owner" and role != "owner":
        raise PermissionDeniedError("Only owners can add another owner.")
    store.upsert_profile(payload.user_id)
    return store.add_member(organization.id, payload.user_id, payload.role)


def list_members(session: Session, organization_id: str) -> list[Member]:
    organization, _ = _member_organization(session, organization_id)
    return store.list_members(organization.id)


def team_skills(session: Session, organization_id: str) -> TeamSkills:
    organization, _ = _member_organization(session, organization_id)
    member_ids = [member.user_id for member in store.list_members(organization.id)]
    return aggregate_team_skills(organization.id, member_ids, store.list_skills_for_users(member_ids))
