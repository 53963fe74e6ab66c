from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from skillsense.core.config.scoring import get_scoring_value
from skillsense.schemas.skills import AggregatedSkill, EvidenceEntry, ExtractionStats, SkillCandidate
from skillsense.taxonomy import CategoryProvider, get_default_categorizer

from .proficiency import highest_level

logger = logging.getLogger(__name__)

EXPLICITNESS_RULES = ("threshold", "extractor")


@dataclass(frozen=True)
class AggregationPolicy:
    min_confidence: float = 0.5
    explicit_threshold: float = 0.7
    explicitness_rule: str = "threshold"
    max_evidence_chars: int = 500

    @classmethod
    def from_config(cls) -> "AggregationPolicy":
        rule = str(get_scoring_value("extraction.explicitness_rule", "threshold")).strip().lower()
        if rule not in EXPLICITNESS_RULES:
            raise RuntimeError(f"extraction.explicitness_rule must be one of {EXPLICITNESS_RULES}, got '{rule}'")
        return cls(
            min_confidence=float(get_scoring_value("extraction.min_confidence", 0.5)),
            explicit_threshold=float(get_scoring_value("extraction.explicit_threshold", 0.7)),
            explicitness_rule=rule,
            max_evidence_chars=int(get_scoring_value("extraction.max_evidence_chars", 500)),
        )


def is_explicit(candidate: SkillCandidate, policy: AggregationPolicy) -> bool:
    if policy.explicitness_rule == "extractor" and candidate.is_explicit is not None:
        return candidate.is_explicit
    return candidate.confidence_score >= policy.explicit_threshold


def _to_aggregated(
    candidate: SkillCandidate,
    *,
    policy: AggregationPolicy,
    categorizer: CategoryProvider,
    document_id: str | None,
    source_type: str,
    context: str | None,
) -> AggregatedSkill:
    explicit = is_explicit(candidate, policy)
    evidence = EvidenceEntry(
        snippet=candidate.evidence_text[: policy.max_evidence_chars],
        reliability_score=candidate.confidence_score,
        document_id=document_id,
        evidence_type="explicit_mention" if explicit else "inferred_from_context",
        source_type=source_type,
        context=context,
    )
    return AggregatedSkill(
        name=candidate.name,
        category=candidate.category or categorizer.categorize(candidate.name),
        confidence_score=candidate.confidence_score,
        proficiency_level=candidate.proficiency_level,
        is_explicit=explicit,
        years_experience=candidate.years_experience,
        evidence=[evidence],
    )


def _merge(existing: AggregatedSkill, incoming: AggregatedSkill) -> AggregatedSkill:
    years = [value for value in (existing.years_experience, incoming.years_experience) if value is not None]
    return existing.model_copy(
        update={
            "confidence_score": max(existing.confidence_score, incoming.confidence_score),
            "proficiency_level": highest_level([existing.proficiency_level, incoming.proficiency_level]),
            "is_explicit": existing.is_explicit or incoming.is_explicit,
            "years_experience": max(years) if years else None,
            "evidence": [*existing.evidence, *incoming.evidence],
        }
    )


def aggregate_candidates(
    candidates: Sequence[SkillCandidate],
    *,
    document_id: str | None = None,
    source_type: str = "cv",
    context: str | None = "Extracted from resume",
    policy: AggregationPolicy | None = None,
    categorizer: CategoryProvider | None = None,
) -> tuple[list[AggregatedSkill], ExtractionStats]:
    """Filter, classify and de-duplicate raw extractor output.

    Candidates under ``min_confidence`` are dropped and reported as hidden.
    Survivors sharing a case-insensitive name collapse into one skill whose
    evidence list holds every contributing snippet.
    """
    policy = policy or AggregationPolicy.from_config()
    categorizer = categorizer or get_default_categorizer()

    hidden = 0
    merged: dict[str, AggregatedSkill] = {}
    for candidate in candidates:
        if candidate.confidence_score < policy.min_confidence:
            hidden += 1
            continue
        skill = _to_aggregated(
            candidate,
            policy=policy,
            categorizer=categorizer,
            document_id=document_id,
            source_type=source_type,
            context=context,
        )
        key = skill.name.lower()
        merged[key] = _merge(merged[key], skill) if key in merged else skill

    skills = list(merged.values())
    explicit = sum(1 for skill in skills if skill.is_explicit)
    average = sum(skill.confidence_score for skill in skills) / len(skills) if skills else 0.0
    stats = ExtractionStats(
        kept=len(skills),
        explicit=explicit,
        implicit=len(skills) - explicit,
        hidden=hidden,
        average_confidence=round(average, 2),
    )
    logger.debug(
        "skill_aggregation candidates=%s kept=%s hidden=%s rule=%s",
        len(candidates),
        stats.kept,
        stats.hidden,
        policy.explicitness_rule,
    )
    return skills, stats
