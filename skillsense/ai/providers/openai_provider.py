from __future__ import annotations

import json
import logging
import os
import time
import uuid
from typing import Any, Optional, Sequence

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError as PydanticValidationError

from skillsense.ai import prompts
from skillsense.core.errors import AIPaymentRequiredError, AIRateLimitedError, ExternalServiceError
from skillsense.db.store import log_ai_analysis_run
from skillsense.schemas.enhance import GitHubContext, LinkedInData, ResumeAnalysis, ResumeEnhancement
from skillsense.schemas.jobs import RequiredSkill
from skillsense.schemas.skills import SKILL_CATEGORIES, SkillCandidate

logger = logging.getLogger(__name__)


def _clamp_unit(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(1.0, number))


def parse_skill_candidates(items: Any) -> list[SkillCandidate]:
    """Turn the model's ``skills`` array into candidates, dropping malformed entries."""
    if not isinstance(items, list):
        return []
    candidates: list[SkillCandidate] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        category = item.get("skill_category")
        try:
            candidates.append(
                SkillCandidate(
                    name=str(item.get("skill_name") or ""),
                    confidence_score=_clamp_unit(item.get("confidence_score")),
                    category=category if category in SKILL_CATEGORIES else None,
                    proficiency_level=item.get("proficiency_level") or "beginner",
                    is_explicit=item.get("is_explicit") if isinstance(item.get("is_explicit"), bool) else None,
                    evidence_text=str(item.get("evidence_text") or item.get("evidence") or ""),
                    years_experience=item.get("years_experience"),
                )
            )
        except (PydanticValidationError, ValueError, TypeError) as exc:
            logger.debug("skill_candidate_dropped item=%s: %s", item, exc)
    return candidates


def parse_required_skills(items: Any) -> list[RequiredSkill]:
    if not isinstance(items, list):
        return []
    required: list[RequiredSkill] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            required.append(
                RequiredSkill.from_critical(
                    name=str(item.get("name") or ""),
                    required_level=item.get("level") or "beginner",
                    critical=bool(item.get("critical", True)),
                )
            )
        except PydanticValidationError as exc:
            logger.debug("required_skill_dropped item=%s: %s", item, exc)
    return required


class OpenAIProvider:
    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        max_retries: int = 0,
        temperature: float = 0.2,
        max_input_chars: int = 20000,
    ):
        self._model = model
        self._temperature = temperature
        self._max_input_chars = max_input_chars
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        self._client = AsyncOpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=float(os.getenv("OPENAI_TIMEOUT_S", str(timeout_s))),
            max_retries=int(os.getenv("OPENAI_MAX_RETRIES", str(max_retries))),
        )

    def _log_run(self, *, run_id: str, tool_slug: str, schema_valid: bool, status: str, started: float, error_code: str | None = None) -> None:
        try:
            log_ai_analysis_run(
                run_id=run_id,
                tool_slug=tool_slug,
                model=self._model,
                schema_valid=schema_valid,
                status=status,
                error_code=error_code,
                latency_ms=int((time.perf_counter() - started) * 1000),
            )
        except Exception:  # pragma: no cover
            logger.debug("ai_run_logging_failed", exc_info=True)

    async def _call_tool(
        self,
        *,
        tool_slug: str,
        system_prompt: str,
        user_prompt: str,
        tool: dict[str, Any],
    ) -> dict[str, Any]:
        run_id = uuid.uuid4().hex
        started = time.perf_counter()
        tool_name = tool["function"]["name"]
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self._temperature,
                tools=[tool],
                tool_choice={"type": "function", "function": {"name": tool_name}},
            )
        except openai.RateLimitError as exc:
            self._log_run(run_id=run_id, tool_slug=tool_slug, schema_valid=False, status="error", started=started, error_code="rate_limited")
            raise AIRateLimitedError("Rate limit exceeded. Please try again later.") from exc
        except openai.APIStatusError as exc:
            if exc.status_code == 402:
                self._log_run(run_id=run_id, tool_slug=tool_slug, schema_valid=False, status="error", started=started, error_code="payment_required")
                raise AIPaymentRequiredError("Payment required. Please add AI credits.") from exc
            logger.warning("ai_tool_call_failed model=%s tool=%s status=%s: %s", self._model, tool_name, exc.status_code, exc)
            self._log_run(run_id=run_id, tool_slug=tool_slug, schema_valid=False, status="error", started=started, error_code=f"http_{exc.status_code}")
            raise ExternalServiceError(f"AI service error: {exc.status_code}") from exc
        except (openai.APIConnectionError, openai.APITimeoutError) as exc:
            logger.warning("ai_tool_call_unreachable model=%s tool=%s: %s", self._model, tool_name, exc)
            self._log_run(run_id=run_id, tool_slug=tool_slug, schema_valid=False, status="error", started=started, error_code="connection_error")
            raise ExternalServiceError("AI service is unreachable. Network error.") from exc

        message = response.choices[0].message if response.choices else None
        tool_calls = getattr(message, "tool_calls", None) or []
        if not tool_calls:
            self._log_run(run_id=run_id, tool_slug=tool_slug, schema_valid=False, status="empty", started=started, error_code="no_tool_call")
            raise ExternalServiceError("No tool call in AI response.")

        try:
            arguments = json.loads(tool_calls[0].function.arguments or "{}")
        except json.JSONDecodeError as exc:
            self._log_run(run_id=run_id, tool_slug=tool_slug, schema_valid=False, status="invalid_schema", started=started, error_code="invalid_json")
            raise ExternalServiceError("AI returned malformed tool arguments.") from exc

        schema_valid = isinstance(arguments, dict)
        self._log_run(
            run_id=run_id,
            tool_slug=tool_slug,
            schema_valid=schema_valid,
            status="success" if schema_valid else "invalid_schema",
            started=started,
            error_code=None if schema_valid else "invalid_schema",
        )
        if not schema_valid:
            raise ExternalServiceError("AI returned malformed tool arguments.")
        return arguments

    async def extract_skills(
        self, text: str, *, include_explicit: bool = True, tool_slug: str = "extract-skills"
    ) -> list[SkillCandidate]:
        arguments = await self._call_tool(
            tool_slug=tool_slug,
            system_prompt=prompts.SKILL_EXTRACTION_SYSTEM_PROMPT,
            user_prompt=prompts.build_skill_extraction_prompt(text, max_chars=self._max_input_chars),
            tool=prompts.skill_extraction_tool(include_explicit=include_explicit),
        )
        return parse_skill_candidates(arguments.get("skills"))

    async def extract_required_skills(self, job_description: str) -> list[RequiredSkill]:
        arguments = await self._call_tool(
            tool_slug="analyze-job-match",
            system_prompt=prompts.JOB_SKILLS_SYSTEM_PROMPT,
            user_prompt=prompts.build_job_skills_prompt(job_description, max_chars=self._max_input_chars),
            tool=prompts.job_skills_tool(),
        )
        return parse_required_skills(arguments.get("skills"))

    async def analyze_resume(
        self,
        resume_text: str,
        skills: Sequence[str],
        *,
        job_description: str | None = None,
        github: GitHubContext | None = None,
        linkedin: LinkedInData | None = None,
    ) -> ResumeAnalysis:
        arguments = await self._call_tool(
            tool_slug="enhance-cv:analyze",
            system_prompt=prompts.ANALYZE_SYSTEM_PROMPT,
            user_prompt=prompts.build_analyze_prompt(
                resume_text, skills, job_description=job_description, github=github, linkedin=linkedin
            ),
            tool=prompts.analyze_resume_tool(),
        )
        arguments["skill_coverage"] = _clamp_unit(arguments.get("skill_coverage"))
        try:
            return ResumeAnalysis.model_validate(arguments)
        except PydanticValidationError as exc:
            raise ExternalServiceError("AI returned an invalid resume analysis.") from exc

    async def enhance_resume(
        self,
        resume_text: str,
        skills: Sequence[str],
        *,
        job_description: str | None = None,
        github: GitHubContext | None = None,
        linkedin: LinkedInData | None = None,
    ) -> ResumeEnhancement:
        arguments = await self._call_tool(
            tool_slug="enhance-cv:enhance",
            system_prompt=prompts.ENHANCE_SYSTEM_PROMPT,
            user_prompt=prompts.build_enhance_prompt(
                resume_text, skills, job_description=job_description, github=github, linkedin=linkedin
            ),
            tool=prompts.enhance_resume_tool(),
        )
        try:
            return ResumeEnhancement.model_validate(arguments)
        except PydanticValidationError as exc:
            raise ExternalServiceError("AI returned an invalid resume rewrite.") from exc
