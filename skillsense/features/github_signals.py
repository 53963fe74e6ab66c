from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from skillsense.core.config.scoring import get_scoring_value
from skillsense.schemas.github import DetectedSkill, GitHubSignals, LanguageStat, PopularRepo, RepoSnapshot
from skillsense.taxonomy import FrameworkProvider, get_default_framework_keywords

from .proficiency import round_half_up


@dataclass(frozen=True)
class SignalWeights:
    language_share_weight: float = 0.7
    language_repo_weight: float = 0.3
    language_repo_normalizer: float = 30
    framework_repo_normalizer: float = 5
    top_languages: int = 7
    popular_repos: int = 5
    min_total_stars: int = 50
    star_normalizer: float = 100
    min_average_forks: float = 5
    fork_normalizer: float = 10
    min_description_chars: int = 50
    min_documented_repos: int = 5
    documented_repo_normalizer: float = 10

    @classmethod
    def from_config(cls) -> "SignalWeights":
        def value(path: str, default):
            return type(default)(get_scoring_value(f"github.{path}", default))

        return cls(
            language_share_weight=value("language_share_weight", cls.language_share_weight),
            language_repo_weight=value("language_repo_weight", cls.language_repo_weight),
            language_repo_normalizer=value("language_repo_normalizer", float(cls.language_repo_normalizer)),
            framework_repo_normalizer=value("framework_repo_normalizer", float(cls.framework_repo_normalizer)),
            top_languages=value("top_languages", cls.top_languages),
            popular_repos=value("popular_repos", cls.popular_repos),
            min_total_stars=value("popular_projects.min_total_stars", cls.min_total_stars),
            star_normalizer=value("popular_projects.star_normalizer", float(cls.star_normalizer)),
            min_average_forks=value("collaboration.min_average_forks", float(cls.min_average_forks)),
            fork_normalizer=value("collaboration.fork_normalizer", float(cls.fork_normalizer)),
            min_description_chars=value("technical_writing.min_description_chars", cls.min_description_chars),
            min_documented_repos=value("technical_writing.min_documented_repos", cls.min_documented_repos),
            documented_repo_normalizer=value("technical_writing.repo_normalizer", float(cls.documented_repo_normalizer)),
        )


def _language_signals(
    repos: Sequence[RepoSnapshot], weights: SignalWeights
) -> tuple[list[LanguageStat], list[DetectedSkill], int]:
    totals: dict[str, int] = {}
    evidence: dict[str, list[str]] = {}
    for repo in repos:
        for language, size in repo.languages.items():
            totals[language] = totals.get(language, 0) + max(0, int(size))
            evidence.setdefault(language, []).append(f"{repo.name} ({round_half_up(size / 1024)}KB)")

    total_bytes = sum(totals.values())
    stats: list[LanguageStat] = []
    skills: list[DetectedSkill] = []
    for language, size in sorted(totals.items(), key=lambda item: (-item[1], item[0])):
        share = size / total_bytes if total_bytes else 0.0
        stats.append(LanguageStat(language=language, bytes=size, percentage=share))
        repo_count = len(evidence[language])
        confidence = min(
            weights.language_share_weight * share
            + weights.language_repo_weight * (repo_count / weights.language_repo_normalizer),
            1.0,
        )
        skills.append(
            DetectedSkill(
                name=language,
                source="Programming Language",
                confidence=confidence,
                evidence=evidence[language],
            )
        )
    return stats, skills, total_bytes


def _framework_signals(
    repos: Sequence[RepoSnapshot], frameworks: FrameworkProvider, weights: SignalWeights
) -> list[DetectedSkill]:
    evidence: dict[str, list[str]] = {}
    for repo in repos:
        summary = f"{repo.description or ''} {' '.join(repo.topics)}"
        from_summary = frameworks.detect(summary)
        from_readme = frameworks.detect(repo.readme or "") - from_summary
        for name in sorted(from_summary):
            evidence.setdefault(name, []).append(repo.name)
        for name in sorted(from_readme):
            evidence.setdefault(name, []).append(f"{repo.name} (README)")

    return [
        DetectedSkill(
            name=name,
            source="Framework/Tool",
            confidence=min(len(items) / weights.framework_repo_normalizer, 1.0),
            evidence=items,
        )
        for name, items in evidence.items()
    ]


def _soft_signals(repos: Sequence[RepoSnapshot], weights: SignalWeights) -> tuple[list[DetectedSkill], int, float]:
    skills: list[DetectedSkill] = []
    total_stars = sum(repo.stars for repo in repos)
    average_forks = sum(repo.forks for repo in repos) / len(repos) if repos else 0.0

    if total_stars > weights.min_total_stars:
        skills.append(
            DetectedSkill(
                name="Popular Projects",
                source="Soft Skill",
                confidence=min(total_stars / weights.star_normalizer, 1.0),
                evidence=[f"{total_stars} total stars across repositories"],
            )
        )
    if average_forks > weights.min_average_forks:
        skills.append(
            DetectedSkill(
                name="Collaboration",
                source="Soft Skill",
                confidence=min(average_forks / weights.fork_normalizer, 1.0),
                evidence=[f"Average {average_forks:.1f} forks per repository"],
            )
        )
    documented = [
        repo for repo in repos if repo.description and len(repo.description) > weights.min_description_chars
    ]
    if len(documented) > weights.min_documented_repos:
        skills.append(
            DetectedSkill(
                name="Technical Writing",
                source="Soft Skill",
                confidence=min(len(documented) / weights.documented_repo_normalizer, 1.0),
                evidence=[f"{len(documented)} well-documented repositories"],
            )
        )
    return skills, total_stars, average_forks


def aggregate_github_signals(
    repos: Sequence[RepoSnapshot],
    *,
    frameworks: FrameworkProvider | None = None,
    weights: SignalWeights | None = None,
) -> GitHubSignals:
    """Derive language, framework and soft-skill signals from repository snapshots."""
    weights = weights or SignalWeights.from_config()
    frameworks = frameworks or get_default_framework_keywords()

    languages, language_skills, total_bytes = _language_signals(repos, weights)
    framework_skills = _framework_signals(repos, frameworks, weights)
    soft_skills, total_stars, average_forks = _soft_signals(repos, weights)

    popular = sorted((repo for repo in repos if not repo.is_fork), key=lambda repo: -repo.stars)
    skills = sorted([*language_skills, *framework_skills, *soft_skills], key=lambda skill: -skill.confidence)

    return GitHubSignals(
        repo_count=len(repos),
        total_bytes=total_bytes,
        total_stars=total_stars,
        average_forks=average_forks,
        languages=languages,
        top_languages=[stat.language for stat in languages[: weights.top_languages]],
        popular_repos=[
            PopularRepo(
                name=repo.name,
                description=repo.description,
                stars=repo.stars,
                forks=repo.forks,
                language=repo.language,
                url=repo.url,
            )
            for repo in popular[: weights.popular_repos]
        ],
        skills=skills,
    )
