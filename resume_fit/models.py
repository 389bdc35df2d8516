from __future__ import annotations

import math
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import DEFAULT_IMPORTANCE, DimensionWeights, OptimizationConfig


def clamp01(x: float) -> float:
    return 0.0 if x < 0.0 else (1.0 if x > 1.0 else x)


def normalize_key(text: str) -> str:
    """Identity used for deduplication and match lookup."""
    return (text or "").strip().lower()


def _as_tuple(v):
    # Sets have no order; sort them so equal inputs produce equal elements
    if isinstance(v, (set, frozenset)):
        return tuple(sorted(v))
    if isinstance(v, list):
        return tuple(v)
    return v


class ElementCategory(str, Enum):
    KEYWORD = "keyword"
    SKILL = "skill"
    ATTRIBUTE = "attribute"
    EXPERIENCE = "experience"
    CONCEPT = "concept"


class MatchType(str, Enum):
    EXACT = "exact"
    SYNONYM = "synonym"
    RELATED = "related"
    SEMANTIC = "semantic"


class Dimension(str, Enum):
    KEYWORDS = "keywords"
    SKILLS = "skills"
    ATTRIBUTES = "attributes"
    EXPERIENCE = "experience"
    LEVEL = "level"


class OptimizationStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class TerminationReason(str, Enum):
    TARGET_REACHED = "target_reached"
    MAX_ITERATIONS = "max_iterations"
    EARLY_STOPPING = "early_stopping"


class RecommendationType(str, Enum):
    ADD_SKILL = "add_skill"
    ADD_EXPERIENCE = "add_experience"
    REWORD = "reword"
    REFRAME = "reframe"
    EMPHASIZE = "emphasize"
    DEEMPHASIZE = "deemphasize"
    QUANTIFY = "quantify"


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_order(self) -> "Position":
        if self.end < self.start:
            raise ValueError(f"position end ({self.end}) precedes start ({self.start})")
        return self


class Element(BaseModel):
    """A normalized unit of meaning extracted from a job posting or resume."""

    model_config = ConfigDict(frozen=True)

    text: str
    normalized_text: str = ""
    tags: Tuple[str, ...] = ()
    context: str = ""
    position: Position = Field(default_factory=Position)

    @model_validator(mode="before")
    @classmethod
    def fill_normalized_text(cls, data):
        if isinstance(data, dict) and not (data.get("normalized_text") or "").strip():
            data = dict(data)
            data["normalized_text"] = normalize_key(data.get("text", ""))
        return data

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        return _as_tuple(v)

    @property
    def key(self) -> str:
        return normalize_key(self.normalized_text)


class TaggedElement(Element):
    """Element carrying importance, category and semantic tags."""

    importance: float = DEFAULT_IMPORTANCE
    category: ElementCategory = ElementCategory.KEYWORD
    semantic_tags: Tuple[str, ...] = ()

    @field_validator("importance", mode="before")
    @classmethod
    def clamp_importance(cls, v):
        if v is None:
            return DEFAULT_IMPORTANCE
        v = float(v)
        if math.isnan(v):
            return DEFAULT_IMPORTANCE
        return clamp01(v)

    @field_validator("semantic_tags", mode="before")
    @classmethod
    def coerce_semantic_tags(cls, v):
        return _as_tuple(v)


def importance_of(element: Element) -> float:
    """Importance of any element; plain elements default to the neutral baseline."""
    return getattr(element, "importance", DEFAULT_IMPORTANCE)


def category_of(element: Element) -> ElementCategory:
    return getattr(element, "category", ElementCategory.KEYWORD)


class Match(BaseModel):
    model_config = ConfigDict(frozen=True)

    resume_element: Element
    job_element: Element
    match_type: MatchType
    confidence: float

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        v = float(v)
        if math.isnan(v):
            return 0.0
        return clamp01(v)


class Gap(BaseModel):
    """A job requirement that is missing or only weakly met by the resume."""

    model_config = ConfigDict(frozen=True)

    element: Element
    importance: float
    category: ElementCategory
    impact: float


class Strength(BaseModel):
    """A resume element matching a job requirement."""

    model_config = ConfigDict(frozen=True)

    element: Element
    job_element: Element
    match_type: MatchType
    contribution: float


class ElementContribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    element: Element
    importance: float
    match_quality: float
    contribution: float
    category: ElementCategory
    match_type: Optional[MatchType] = None


class DimensionBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0.0, le=1.0)
    weight: float
    weighted_score: float
    contributions: Tuple[ElementContribution, ...] = ()


class ScoreBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    weights: DimensionWeights
    dimensions: Dict[Dimension, DimensionBreakdown] = Field(default_factory=dict)

    def score(self, dimension: Dimension) -> Optional[float]:
        entry = self.dimensions.get(Dimension(dimension))
        return entry.score if entry is not None else None

    @property
    def keyword_score(self) -> Optional[float]:
        return self.score(Dimension.KEYWORDS)

    @property
    def skills_score(self) -> Optional[float]:
        return self.score(Dimension.SKILLS)

    @property
    def attributes_score(self) -> Optional[float]:
        return self.score(Dimension.ATTRIBUTES)

    @property
    def experience_score(self) -> Optional[float]:
        return self.score(Dimension.EXPERIENCE)

    @property
    def level_score(self) -> Optional[float]:
        return self.score(Dimension.LEVEL)


class MatchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_score: float = Field(ge=0.0, le=1.0)
    breakdown: ScoreBreakdown
    gaps: Tuple[Gap, ...] = ()
    strengths: Tuple[Strength, ...] = ()


class Recommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: RecommendationType
    element: str
    importance: float
    suggestion: str
    example: Optional[str] = None
    job_requirement_reference: str = ""
    explanation: str = ""


class RecommendationMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    iteration_round: int
    current_score: float
    target_score: float


class Recommendations(BaseModel):
    model_config = ConfigDict(frozen=True)

    summary: str
    priority: Tuple[Recommendation, ...] = ()
    optional: Tuple[Recommendation, ...] = ()
    rewording: Tuple[Recommendation, ...] = ()
    metadata: RecommendationMetadata

    def all(self) -> List[Recommendation]:
        return [*self.priority, *self.optional, *self.rewording]


class JobPosting(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = ""
    description: str = ""
    requirements: str = ""
    qualifications: str = ""

    @property
    def full_text(self) -> str:
        parts = [self.title, self.description, self.requirements, self.qualifications]
        return "\n\n".join(p.strip() for p in parts if p and p.strip())


class Resume(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    content: str
    format: str = "text"  # "text" | "markdown"

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Resume content is empty")
        return v


class IterationHistory(BaseModel):
    model_config = ConfigDict(frozen=True)

    round: int = Field(ge=1)
    score: float = Field(ge=0.0, le=1.0)
    recommendations: Optional[Recommendations] = None
    resume_version: str = ""


class IterationDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    should_continue: bool
    reason: str


def check_rounds(history: Tuple[IterationHistory, ...]) -> None:
    for index, entry in enumerate(history, 1):
        if entry.round != index:
            raise ValueError(f"history round {entry.round} found at position {index}")


class OptimizationState(BaseModel):
    """
    Snapshot of one optimization run.

    Every transition returns a new snapshot; earlier snapshots stay valid.
    """

    model_config = ConfigDict(frozen=True)

    job_posting: JobPosting
    job_elements: Tuple[TaggedElement, ...] = ()
    current_resume: Resume
    history: Tuple[IterationHistory, ...] = ()
    config: OptimizationConfig
    status: OptimizationStatus = OptimizationStatus.RUNNING
    failure_reason: Optional[str] = None

    @model_validator(mode="after")
    def check_history(self) -> "OptimizationState":
        check_rounds(self.history)
        return self


class OptimizationMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    initial_score: float
    final_score: float
    improvement: float
    iteration_count: int


class OptimizationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    final_resume: Resume
    final_score: float
    iterations: Tuple[IterationHistory, ...]
    termination_reason: TerminationReason
    metrics: OptimizationMetrics
