from .gap_analysis import analyze_gap, available_roles, learning_resource, role_requirements
from .github_signals import SignalWeights, aggregate_github_signals
from .job_match import dedupe_required, find_user_skill, score_job_match
from .proficiency import level_from_confidence, meets_level, ordinal, round_half_up
from .skill_aggregation import AggregationPolicy, aggregate_candidates, is_explicit
from .skill_summary import completeness_score, group_by_category, summarize_skills
from .team_skills import aggregate_team_skills

__all__ = [
    "AggregationPolicy",
    "SignalWeights",
    "aggregate_candidates",
    "aggregate_github_signals",
    "aggregate_team_skills",
    "analyze_gap",
    "available_roles",
    "completeness_score",
    "dedupe_required",
    "find_user_skill",
    "group_by_category",
    "is_explicit",
    "learning_resource",
    "level_from_confidence",
    "meets_level",
    "ordinal",
    "role_requirements",
    "round_half_up",
    "score_job_match",
    "summarize_skills",
]
