from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

MemberRole = Literal["owner", "admin", "member"]


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=2000)


class Organization(BaseModel):
    id: str
    name: str
    description: str | None = None
    created_by: str
    created_at: datetime


class MemberAdd(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)
    role: MemberRole = "member"


class Member(BaseModel):
    organization_id: str
    user_id: str
    role: MemberRole
    display_name: str | None = None
    joined_at: datetime


class TeamSkill(BaseModel):
    name: str
    member_count: int
    average_confidence: float
    proficiency_distribution: dict[str, int]


class TeamSkills(BaseModel):
    organization_id: str
    member_count: int
    skills: list[TeamSkill] = Field(default_factory=list)
    category_distribution: dict[str, int] = Field(default_factory=dict)
