from fastapi import APIRouter, Depends, Request

from skillsense.ai.factory import get_ai_client
from skillsense.ai.types import AIClient
from skillsense.core.rate_limit import ai_rate_limit
from skillsense.core.security import Session, require_session
from skillsense.schemas.documents import DocumentAnalysis
from skillsense.schemas.functions import (
    AnalyzeGitHubRequest,
    AnalyzeGitHubResponse,
    EnhanceCVRequest,
    EnhanceCVResponse,
    ExtractSkillsRequest,
    JobMatchRequest,
    JobMatchResponse,
    ProcessCVRequest,
    ProcessCVResponse,
)
from skillsense.services import enhance_service, extraction_service, github_service, job_match_service
from skillsense.services.github_service import GitHubClient, get_github_client

router = APIRouter(prefix="/functions")


@router.post("/process-cv", response_model=ProcessCVResponse)
@ai_rate_limit()
async def process_cv(
    request: Request,
    payload: ProcessCVRequest,
    session: Session = Depends(require_session),
    ai: AIClient = Depends(get_ai_client),
):
    analysis = await extraction_service.process_cv(
        session,
        file_path=payload.file_path,
        file_name=payload.file_name,
        extractor=ai,
    )
    return ProcessCVResponse(success=True, skills_count=analysis.skills_count, message=analysis.message)


@router.post("/extract-skills", response_model=DocumentAnalysis)
@ai_rate_limit()
async def extract_skills(
    request: Request,
    payload: ExtractSkillsRequest,
    session: Session = Depends(require_session),
    ai: AIClient = Depends(get_ai_client),
):
    session.ensure_owner(payload.user_id)
    return await extraction_service.analyze_text(
        session,
        document_id=payload.document_id,
        text=payload.extracted_text,
        extractor=ai,
    )


@router.post("/enhance-cv", response_model=EnhanceCVResponse, response_model_exclude_none=True)
@ai_rate_limit()
async def enhance_cv(
    request: Request,
    payload: EnhanceCVRequest,
    session: Session = Depends(require_session),
    ai: AIClient = Depends(get_ai_client),
):
    return await enhance_service.enhance_cv(session, payload, advisor=ai)


@router.post("/analyze-job-match", response_model=JobMatchResponse)
@ai_rate_limit()
async def analyze_job_match(
    request: Request,
    payload: JobMatchRequest,
    session: Session = Depends(require_session),
    ai: AIClient = Depends(get_ai_client),
):
    match = await job_match_service.analyze_job_match(
        session,
        user_id=payload.user_id,
        job_description=payload.job_description,
        job_title=payload.job_title,
        extractor=ai,
    )
    return JobMatchResponse(
        match_id=match.id,
        match_score=match.match_score,
        matched_skills=match.matched_skills,
        missing_skills=match.missing_skills,
        total_skills=match.total_skills,
        matched_count=match.matched_count,
        missing_count=match.missing_count,
    )


@router.post("/analyze-github", response_model=AnalyzeGitHubResponse)
async def analyze_github(
    payload: AnalyzeGitHubRequest,
    session: Session = Depends(require_session),
    client: GitHubClient = Depends(get_github_client),
):
    analysis = await github_service.analyze_github(
        session,
        username=payload.username,
        merge_into_profile=payload.merge_into_profile,
        client=client,
    )
    return AnalyzeGitHubResponse(**analysis.model_dump())
