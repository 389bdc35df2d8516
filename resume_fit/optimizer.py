"""
Main Optimizer Module

Orchestrates the complete optimization loop:
1. Extract and weight job elements (once)
2. Per round: extract resume elements, match, score, recommend
3. Ask the reviser for the next draft until a termination criterion holds
4. Return the result with the final state and last match
"""

import logging
from typing import Callable, List, Mapping, NamedTuple, Optional, Sequence, TypeVar, Union

from .collaborators import Extractor, Matcher, Reviser, validate_elements
from .config import DimensionWeights, OptimizationConfig
from .deduplicator import dedupe
from .errors import CollaboratorError
from .importance import assign_importance_scores
from .iteration_controller import IterationController, fail_optimization_state, complete_optimization_state
from .models import (
    Element,
    ElementCategory,
    JobPosting,
    Match,
    MatchResult,
    OptimizationResult,
    OptimizationState,
    Resume,
    TaggedElement,
)
from .recommendations import generate_recommendations, top_recommendation
from .result_builder import create_optimization_result
from .scoring_engine import MatchScorer, accept_matches

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OptimizationOutcome(NamedTuple):
    result: OptimizationResult
    state: OptimizationState
    last_match: MatchResult


def _call(collaborator: str, fn: Callable[..., T], *args) -> T:
    try:
        return fn(*args)
    except CollaboratorError:
        raise
    except Exception as e:
        raise CollaboratorError(collaborator, str(e)) from e


def _require_items(collaborator: str, items, item_type: type, noun: str) -> list:
    if items is None:
        return []
    if not isinstance(items, (list, tuple)):
        raise CollaboratorError(collaborator, f"expected a list of {noun}, got {type(items).__name__}")
    for item in items:
        if not isinstance(item, item_type):
            raise CollaboratorError(collaborator, f"expected {noun}, got {type(item).__name__}")
    return list(items)


def prepare_elements(
    extractor: Extractor,
    text: str,
    document_kind: str,
    default_category: ElementCategory = ElementCategory.KEYWORD,
) -> List[TaggedElement]:
    """Extract -> validate -> dedupe -> assign importance."""
    raw = _call("extractor", extractor.extract, text, document_kind)
    raw = _require_items("extractor", raw, Element, "Element items")
    elements = dedupe(validate_elements(raw, source=f"{document_kind} extractor"))
    return assign_importance_scores(elements, default_category)


def _score_resume(
    resume: Resume,
    job_elements: Sequence[TaggedElement],
    extractor: Extractor,
    matcher: Matcher,
    scorer: MatchScorer,
):
    resume_elements = prepare_elements(extractor, resume.content, "resume")
    matches = _call("matcher", matcher.match, resume_elements, job_elements)
    matches = _require_items("matcher", matches, Match, "Match items")
    accepted = accept_matches(matches, job_elements)
    return scorer.calculate_match_score(resume_elements, job_elements, accepted), accepted


def analyze_match(
    job_posting: Union[JobPosting, str],
    resume: Union[Resume, str],
    extractor: Extractor,
    matcher: Matcher,
    weights: Union[DimensionWeights, Mapping[str, float], None] = None,
) -> MatchResult:
    """
    Score a resume against a job posting once, without any revision.

    Plain strings are accepted for either document.

    Example:
        >>> result = analyze_match(job_text, resume_text, LLMExtractor(), LLMMatcher())
        >>> print(f"Match: {result.overall_score:.0%}")
    """
    if isinstance(job_posting, str):
        job_posting = JobPosting(id="job", description=job_posting)
    if isinstance(resume, str):
        resume = Resume(id="resume", content=resume)

    scorer = MatchScorer(weights)
    job_elements = prepare_elements(extractor, job_posting.full_text, "job")
    match_result, _ = _score_resume(resume, job_elements, extractor, matcher, scorer)
    return match_result


def run_optimization(
    job_posting: JobPosting,
    resume: Resume,
    extractor: Extractor,
    matcher: Matcher,
    reviser: Optional[Reviser] = None,
    config: Union[OptimizationConfig, Mapping, None] = None,
    weights: Union[DimensionWeights, Mapping[str, float], None] = None,
) -> OptimizationOutcome:
    """
    Run the resume optimization loop.

    Without a reviser the loop scores the given resume once and stops.

    Args:
        job_posting: Target job
        resume: Initial resume draft
        extractor: Element extractor collaborator
        matcher: Semantic matcher collaborator
        reviser: Produces the next draft from the recommendations
        config: Termination thresholds (defaults when None)
        weights: Dimension weights (defaults when None)

    Returns:
        OptimizationOutcome(result, state, last_match)

    Raises:
        ConfigurationError: If weights or thresholds are invalid
        CollaboratorError: If a collaborator fails; ``error.state`` is the
            failed state with the history recorded so far
    """
    controller = IterationController(config)
    scorer = MatchScorer(weights)

    logger.info("=" * 80)
    logger.info(f"STARTING RESUME OPTIMIZATION - job {job_posting.id}")
    logger.info("=" * 80)

    state = controller.start(job_posting, resume)
    try:
        logger.info("Step 1: Extracting job elements...")
        job_elements = prepare_elements(extractor, job_posting.full_text, "job")
        state = state.model_copy(update={"job_elements": tuple(job_elements)})
        logger.info(f"✓ {len(job_elements)} job elements")

        current = resume
        while True:
            round_number = len(state.history) + 1
            logger.info(f"Step 2: Scoring round {round_number}...")
            match_result, accepted = _score_resume(current, state.job_elements, extractor, matcher, scorer)

            recommendations = generate_recommendations(
                match_result,
                accepted,
                iteration_round=round_number,
                target_score=controller.config.target_score,
            )
            state, decision = controller.record_round(
                state, current, match_result.overall_score, recommendations
            )

            if not decision.should_continue:
                break
            if reviser is None:
                logger.info("No reviser supplied, stopping after a single round")
                break

            top = top_recommendation(recommendations)
            if top is not None:
                logger.info(f"Top recommendation: {top.type.value} {top.element!r}")
            revised = _call("reviser", reviser.revise, current, recommendations, round_number)
            if not isinstance(revised, Resume):
                raise CollaboratorError("reviser", f"expected a Resume, got {type(revised).__name__}")
            current = revised

    except CollaboratorError as e:
        logger.error(f"Optimization failed: {e}", exc_info=True)
        failed = fail_optimization_state(state, str(e))
        raise CollaboratorError(e.collaborator, e.message, state=failed) from e

    state = complete_optimization_state(state)
    result = create_optimization_result(state.current_resume, state.history, controller.config)

    logger.info("=" * 80)
    logger.info(
        f"OPTIMIZATION COMPLETE - Score: {result.final_score:.3f} "
        f"after {result.metrics.iteration_count} rounds ({result.termination_reason.value})"
    )
    logger.info("=" * 80)

    return OptimizationOutcome(result=result, state=state, last_match=match_result)
