from .documents import BatchUploadItem, BatchUploadResult, Document, DocumentAnalysis
from .jobs import (
    GapAnalysis,
    GapItem,
    JobMatch,
    JobMatchResult,
    JobRequirement,
    JobRequirementCreate,
    LearningResource,
    RequiredSkill,
    SkillMatchRecord,
    UserSkillInput,
)
from .skills import (
    PROFICIENCY_LEVELS,
    SKILL_CATEGORIES,
    AggregatedSkill,
    EvidenceEntry,
    ExtractionStats,
    Skill,
    SkillCandidate,
    SkillCreate,
    SkillSummary,
    SkillUpdate,
)

__all__ = [
    "PROFICIENCY_LEVELS",
    "SKILL_CATEGORIES",
    "AggregatedSkill",
    "BatchUploadItem",
    "BatchUploadResult",
    "Document",
    "DocumentAnalysis",
    "EvidenceEntry",
    "ExtractionStats",
    "GapAnalysis",
    "GapItem",
    "JobMatch",
    "JobMatchResult",
    "JobRequirement",
    "JobRequirementCreate",
    "LearningResource",
    "RequiredSkill",
    "Skill",
    "SkillCandidate",
    "SkillCreate",
    "SkillMatchRecord",
    "SkillSummary",
    "SkillUpdate",
    "UserSkillInput",
]
