from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from skillsense.core.config import settings
from skillsense.core.config.scoring import get_scoring_value
from skillsense.core.errors import ExternalServiceError, GitHubRateLimitError, NotFoundError
from skillsense.core.security import Session
from skillsense.db import store
from skillsense.features.github_signals import aggregate_github_signals
from skillsense.features.proficiency import level_from_confidence
from skillsense.features.skill_summary import completeness_score
from skillsense.schemas.github import DetectedSkill, GitHubAnalysis, GitHubProfile, RepoSnapshot
from skillsense.schemas.skills import AggregatedSkill, EvidenceEntry
from skillsense.taxonomy import get_default_categorizer

logger = logging.getLogger(__name__)

USER_AGENT = "SkillSense-GitHub-Analyzer"


def _reset_time(response: httpx.Response) -> datetime | None:
    raw = response.headers.get("X-RateLimit-Reset")
    if not raw:
        return None
    try:
        return datetime.fromtimestamp(int(raw), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def _raise_for_status(response: httpx.Response, *, what: str) -> None:
    if response.is_success:
        return
    if response.status_code in {403, 429}:
        reset_at = _reset_time(response)
        when = reset_at.isoformat() if reset_at else "unknown time"
        raise GitHubRateLimitError(f"GitHub API rate limit exceeded. Resets at {when}", reset_at=reset_at)
    if response.status_code == 404:
        raise NotFoundError(f"GitHub {what} not found.")
    raise ExternalServiceError(f"Failed to fetch GitHub {what}: HTTP {response.status_code}")


class GitHubClient:
    """Thin async wrapper over the public GitHub REST API."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        token: str | None = None,
        timeout_s: float | None = None,
        repo_limit: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/vnd.github.v3+json", "User-Agent": USER_AGENT}
        auth_token = token if token is not None else settings.github_token
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        self._base_url = (base_url or settings.github_api_url).rstrip("/")
        self._headers = headers
        self._timeout = timeout_s if timeout_s is not None else settings.github_timeout_s
        self._repo_limit = repo_limit if repo_limit is not None else settings.github_repo_limit
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _get(self, client: httpx.AsyncClient, url: str, *, what: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await client.get(url, **kwargs)
        except httpx.TimeoutException as exc:
            raise ExternalServiceError(f"GitHub request timed out while fetching {what}.") from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"Network error while fetching GitHub {what}.") from exc
        _raise_for_status(response, what=what)
        return response

    async def _readme(self, client: httpx.AsyncClient, owner: str, repo: str) -> str | None:
        try:
            response = await client.get(
                f"/repos/{owner}/{repo}/readme",
                headers={"Accept": "application/vnd.github.v3.raw"},
            )
        except httpx.HTTPError as exc:
            logger.debug("github_readme_failed repo=%s/%s: %s", owner, repo, exc)
            return None
        if not response.is_success:
            return None
        return response.text

    async def _snapshot(self, client: httpx.AsyncClient, owner: str, raw: dict[str, Any]) -> RepoSnapshot:
        name = str(raw.get("name") or "")
        languages_url = raw.get("languages_url") or f"/repos/{owner}/{name}/languages"
        languages_response = await self._get(client, languages_url, what="repository languages")
        languages = {
            str(language): int(size)
            for language, size in (languages_response.json() or {}).items()
            if isinstance(size, (int, float))
        }
        return RepoSnapshot(
            name=name,
            description=raw.get("description"),
            topics=list(raw.get("topics") or []),
            stars=int(raw.get("stargazers_count") or 0),
            forks=int(raw.get("forks_count") or 0),
            is_fork=bool(raw.get("fork")),
            language=raw.get("language"),
            languages=languages,
            readme=await self._readme(client, owner, name),
            url=raw.get("html_url"),
        )

    async def fetch(self, username: str) -> tuple[GitHubProfile, list[RepoSnapshot]]:
        async with self._client() as client:
            user_response = await self._get(client, f"/users/{username}", what="user")
            data = user_response.json()
            profile = GitHubProfile(
                login=data.get("login") or username,
                name=data.get("name"),
                avatar_url=data.get("avatar_url"),
                bio=data.get("bio"),
                location=data.get("location"),
                company=data.get("company"),
                blog=data.get("blog"),
                public_repos=int(data.get("public_repos") or 0),
                followers=int(data.get("followers") or 0),
                following=int(data.get("following") or 0),
                created_at=data.get("created_at"),
                profile_url=data.get("html_url"),
            )

            repos_response = await self._get(
                client,
                f"/users/{username}/repos",
                what="repositories",
                params={"sort": "updated", "per_page": self._repo_limit},
            )
            raw_repos = [item for item in repos_response.json() or [] if isinstance(item, dict)]
            repos = await asyncio.gather(*(self._snapshot(client, profile.login, raw) for raw in raw_repos))

        remaining = user_response.headers.get("X-RateLimit-Remaining")
        logger.info("github_fetch_completed user=%s repos=%s rate_remaining=%s", profile.login, len(repos), remaining)
        return profile, list(repos)


def get_github_client() -> GitHubClient:
    return GitHubClient()


def _as_profile_skill(detected: DetectedSkill, login: str) -> AggregatedSkill:
    if detected.source == "Soft Skill":
        category = "soft_skills"
    elif detected.source == "Programming Language":
        category = "technical"
    else:
        category = get_default_categorizer().categorize(detected.name)

    level = level_from_confidence(
        detected.confidence,
        advanced=float(get_scoring_value("github.proficiency_thresholds.advanced", 0.7)),
        intermediate=float(get_scoring_value("github.proficiency_thresholds.intermediate", 0.4)),
    )
    return AggregatedSkill(
        name=detected.name,
        category=category,
        confidence_score=detected.confidence,
        proficiency_level=level,
        is_explicit=False,
        evidence=[
            EvidenceEntry(
                snippet=item,
                reliability_score=detected.confidence,
                evidence_type="code_repository",
                source_type="github",
                context=f"GitHub: {login}",
            )
            for item in detected.evidence
        ],
    )


async def analyze_github(
    session: Session,
    *,
    username: str,
    merge_into_profile: bool = False,
    client: GitHubClient | None = None,
) -> GitHubAnalysis:
    profile, repos = await (client or get_github_client()).fetch(username)
    signals = aggregate_github_signals(repos)

    merged = 0
    if merge_into_profile and signals.skills:
        source = f"GitHub: {profile.login}"
        written = store.save_skills(
            session.user_id,
            [_as_profile_skill(skill, profile.login) for skill in signals.skills if skill.evidence],
            source=source,
            on_conflict="skip",
        )
        merged = len(written)
        store.update_profile(
            session.user_id,
            github_username=profile.login,
            completeness_score=completeness_score(store.count_skills(session.user_id)),
        )
        logger.info("github_skills_merged user=%s login=%s added=%s", session.user_id, profile.login, merged)

    return GitHubAnalysis(
        **signals.model_dump(),
        profile=profile,
        merged_skills=merged,
        analyzed_at=datetime.now(timezone.utc),
    )
