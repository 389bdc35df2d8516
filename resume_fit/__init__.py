"""
Resume Fit Scoring and Optimization

This package scores how well a resume fits a job posting and drives an
iterative revision loop:
1. Element extraction and semantic matching (PhiData + GPT-4 collaborators)
2. Deterministic weighted scoring, gaps and strengths
3. Recommendations and termination control across revision rounds

Usage:
    from resume_fit import LLMExtractor, LLMMatcher, analyze_match

    result = analyze_match(job_description, resume_text, LLMExtractor(), LLMMatcher())
    print(f"Match: {result.overall_score:.0%}")
"""

from .config import WEIGHTS, DimensionWeights, OptimizationConfig, load_settings
from .deduplicator import dedupe
from .errors import (
    CollaboratorError,
    ConfigurationError,
    InvalidStateTransition,
    OptimizationError,
    ResumeFitError,
)
from .importance import assign_importance_scores, score_importance
from .iteration_controller import IterationController, evaluate_termination_criteria
from .llm_extractor import LLMExtractor
from .llm_matcher import LLMMatcher
from .models import Element, JobPosting, Match, MatchResult, Resume, TaggedElement
from .optimizer import OptimizationOutcome, analyze_match, run_optimization
from .recommendations import generate_recommendations
from .result_builder import create_optimization_result
from .scoring_engine import MatchScorer, calculate_match_score

__all__ = [
    "WEIGHTS",
    "DimensionWeights",
    "OptimizationConfig",
    "load_settings",
    "dedupe",
    "score_importance",
    "assign_importance_scores",
    "MatchScorer",
    "calculate_match_score",
    "IterationController",
    "evaluate_termination_criteria",
    "create_optimization_result",
    "generate_recommendations",
    "LLMExtractor",
    "LLMMatcher",
    "analyze_match",
    "run_optimization",
    "OptimizationOutcome",
    "Element",
    "TaggedElement",
    "Match",
    "MatchResult",
    "JobPosting",
    "Resume",
    "ResumeFitError",
    "ConfigurationError",
    "CollaboratorError",
    "InvalidStateTransition",
    "OptimizationError",
]
__version__ = "1.0.0"
