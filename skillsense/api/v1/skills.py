from fastapi import APIRouter, Depends, Query, Response, status

from skillsense.core.security import Session, require_session
from skillsense.db import store
from skillsense.features.gap_analysis import available_roles
from skillsense.schemas.jobs import GapAnalysis
from skillsense.schemas.skills import Skill, SkillCreate, SkillSummary, SkillUpdate
from skillsense.services import skills_service
from skillsense.services.report_service import build_skills_report, report_filename

router = APIRouter(prefix="/skills")


@router.get("", response_model=list[Skill])
async def list_skills(session: Session = Depends(require_session)):
    return skills_service.list_skills(session)


@router.post("", response_model=Skill, status_code=status.HTTP_201_CREATED)
async def add_skill(payload: SkillCreate, session: Session = Depends(require_session)):
    return skills_service.add_manual_skill(session, payload)


@router.get("/summary", response_model=SkillSummary)
async def skill_summary(session: Session = Depends(require_session)):
    return skills_service.skill_summary(session)


@router.get("/roles")
async def list_roles():
    return {"roles": available_roles()}


@router.get("/gap-analysis", response_model=GapAnalysis)
async def gap_analysis(
    role: str | None = Query(default=None),
    job_requirement_id: str | None = Query(default=None),
    session: Session = Depends(require_session),
):
    return skills_service.gap_analysis(session, role=role, job_requirement_id=job_requirement_id)


@router.get("/report.pdf")
async def skills_report(session: Session = Depends(require_session)):
    profile = store.get_profile(session.user_id) or {}
    pdf = build_skills_report(
        skills_service.list_skills(session),
        owner_label=profile.get("display_name") or session.user_id,
    )
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report_filename()}"'},
    )


@router.patch("/{skill_id}", response_model=Skill)
async def update_skill(skill_id: str, payload: SkillUpdate, session: Session = Depends(require_session)):
    return skills_service.update_skill(session, skill_id, payload)


@router.delete("/{skill_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_skill(skill_id: str, session: Session = Depends(require_session)):
    skills_service.delete_skill(session, skill_id)
