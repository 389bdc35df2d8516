"""
Deterministic Scoring Engine

All scoring functions are deterministic - same inputs produce same outputs.
No AI/LLM is used in this module; matches come from the Matcher collaborator.
"""

import logging
from typing import Dict, List, Mapping, Sequence, Tuple, Union

from .config import DimensionWeights, MIN_MATCH_CONFIDENCE, build_weights
from .importance import dimension_for
from .models import (
    Dimension,
    DimensionBreakdown,
    Element,
    ElementContribution,
    Gap,
    Match,
    MatchResult,
    MatchType,
    ScoreBreakdown,
    Strength,
    category_of,
    clamp01,
    importance_of,
    normalize_key,
)

logger = logging.getLogger(__name__)


def accept_matches(
    matches: Sequence[Match],
    job_elements: Sequence[Element],
    min_confidence: float = MIN_MATCH_CONFIDENCE,
) -> List[Match]:
    """
    Validate collaborator matches before scoring.

    - confidence below ``min_confidence`` -> dropped
    - job element not present in ``job_elements`` -> dropped
    - "exact" match between different normalized texts -> downgraded to "semantic"
    """
    job_keys = {normalize_key(e.normalized_text) for e in job_elements}
    accepted: List[Match] = []

    for match in matches:
        if match.confidence < min_confidence:
            logger.debug(
                f"Dropping match {match.job_element.text!r} <= {match.resume_element.text!r}: "
                f"confidence {match.confidence:.2f} < {min_confidence}"
            )
            continue
        if normalize_key(match.job_element.normalized_text) not in job_keys:
            logger.warning(f"Dropping match for unknown job element {match.job_element.text!r}")
            continue
        if match.match_type == MatchType.EXACT and (
            normalize_key(match.job_element.normalized_text) != normalize_key(match.resume_element.normalized_text)
        ):
            logger.warning(
                f"Match {match.job_element.text!r} <= {match.resume_element.text!r} is not exact, "
                f"treating as semantic"
            )
            match = match.model_copy(update={"match_type": MatchType.SEMANTIC})
        accepted.append(match)

    return accepted


def best_matches(matches: Sequence[Match]) -> Dict[str, Match]:
    """Highest-confidence match per job element key (first one wins ties)."""
    lookup: Dict[str, Match] = {}
    for match in matches:
        key = normalize_key(match.job_element.normalized_text)
        existing = lookup.get(key)
        if existing is None or match.confidence > existing.confidence:
            lookup[key] = match
    return lookup


def calculate_contributions(
    job_elements: Sequence[Element],
    lookup: Mapping[str, Match],
) -> List[ElementContribution]:
    """
    Contribution of every job element.

    Formula:
    - match_quality = best confidence among matches covering the element (0 if none)
    - contribution = importance * match_quality
    """
    contributions: List[ElementContribution] = []
    for element in job_elements:
        match = lookup.get(normalize_key(element.normalized_text))
        importance = importance_of(element)
        quality = match.confidence if match else 0.0
        contributions.append(
            ElementContribution(
                element=element,
                importance=importance,
                match_quality=quality,
                contribution=importance * quality,
                category=category_of(element),
                match_type=match.match_type if match else None,
            )
        )
    return contributions


def calculate_dimension_score(contributions: Sequence[ElementContribution]) -> float:
    """
    Score (0-1) of one dimension.

    Formula: sum(contribution) / sum(importance).
    A dimension with no job elements scores 1.0 (nothing asked, nothing missed).
    """
    total_importance = sum(c.importance for c in contributions)
    if not contributions or total_importance <= 0:
        return 1.0
    return clamp01(sum(c.contribution for c in contributions) / total_importance)


def identify_gaps(
    job_elements: Sequence[Element],
    lookup: Mapping[str, Match],
) -> List[Gap]:
    """
    Gaps for unmatched or partially matched job elements, highest impact first.

    impact = importance * (1 - match_quality); a perfect match (quality 1.0)
    is not a gap. Ties keep job element order.
    """
    gaps: List[Gap] = []
    for element in job_elements:
        match = lookup.get(normalize_key(element.normalized_text))
        quality = match.confidence if match else 0.0
        if quality >= 1.0:
            continue
        importance = importance_of(element)
        gaps.append(
            Gap(
                element=element,
                importance=importance,
                category=category_of(element),
                impact=importance * (1.0 - quality),
            )
        )
    gaps.sort(key=lambda g: g.impact, reverse=True)
    return gaps


def identify_strengths(
    resume_elements: Sequence[Element],
    job_elements: Sequence[Element],
    matches: Sequence[Match],
) -> List[Strength]:
    """
    One strength per accepted match, highest contribution first.

    contribution = importance(job element) * confidence. Ties are broken by
    resume element order, then job element order.
    """
    resume_order = {}
    for index, element in enumerate(resume_elements):
        resume_order.setdefault(normalize_key(element.normalized_text), index)
    job_order = {}
    for index, element in enumerate(job_elements):
        job_order.setdefault(normalize_key(element.normalized_text), index)
    job_by_key = {normalize_key(e.normalized_text): e for e in job_elements}

    ranked: List[Tuple[float, int, int, Strength]] = []
    for match in matches:
        job_key = normalize_key(match.job_element.normalized_text)
        # Importance is read from the weighted job list, not the match payload
        job_element = job_by_key.get(job_key, match.job_element)
        contribution = importance_of(job_element) * match.confidence
        strength = Strength(
            element=match.resume_element,
            job_element=job_element,
            match_type=match.match_type,
            contribution=contribution,
        )
        ranked.append((
            -contribution,
            resume_order.get(normalize_key(match.resume_element.normalized_text), len(resume_elements)),
            job_order.get(job_key, len(job_elements)),
            strength,
        ))

    ranked.sort(key=lambda item: item[:3])
    return [item[3] for item in ranked]


class MatchScorer:
    """
    Weighted multi-dimensional scorer.

    Weights are validated when the scorer is built; a set of weights that
    does not sum to 1.0 raises ConfigurationError before any scoring call.
    """

    def __init__(self, weights: Union[DimensionWeights, Mapping[str, float], None] = None):
        self.weights = build_weights(weights)

    def calculate_match_score(
        self,
        resume_elements: Sequence[Element],
        job_elements: Sequence[Element],
        matches: Sequence[Match],
    ) -> MatchResult:
        """
        Calculate the fit score of a resume against a job posting.

        Args:
            resume_elements: Deduplicated resume elements
            job_elements: Deduplicated, importance-weighted job elements
            matches: Matches from the Matcher collaborator

        Returns:
            MatchResult with overall score (0-1), per-dimension breakdown,
            gaps and strengths
        """
        if not job_elements:
            logger.warning("Job posting has no elements, returning score 0")
            return MatchResult(overall_score=0.0, breakdown=ScoreBreakdown(weights=self.weights))

        accepted = accept_matches(matches, job_elements)
        lookup = best_matches(accepted)
        contributions = calculate_contributions(job_elements, lookup)

        by_dimension: Dict[Dimension, List[ElementContribution]] = {d: [] for d in Dimension}
        for contribution in contributions:
            by_dimension[dimension_for(contribution.element)].append(contribution)

        weights = self.weights.as_dict()
        dimensions: Dict[Dimension, DimensionBreakdown] = {}
        for dimension, items in by_dimension.items():
            score = calculate_dimension_score(items)
            weight = weights[dimension.value]
            dimensions[dimension] = DimensionBreakdown(
                score=score,
                weight=weight,
                weighted_score=score * weight,
                contributions=tuple(items),
            )
            logger.debug(
                f"{dimension.value}: {len(items)} elements, score = {score:.3f}, "
                f"weighted = {score * weight:.3f}"
            )

        overall = clamp01(sum(d.weighted_score for d in dimensions.values()))
        gaps = identify_gaps(job_elements, lookup)
        strengths = identify_strengths(resume_elements, job_elements, accepted)

        logger.info(
            f"Match score: {overall:.3f} ({len(accepted)} matches, "
            f"{len(gaps)} gaps, {len(strengths)} strengths)"
        )

        return MatchResult(
            overall_score=overall,
            breakdown=ScoreBreakdown(weights=self.weights, dimensions=dimensions),
            gaps=tuple(gaps),
            strengths=tuple(strengths),
        )


def calculate_match_score(
    resume_elements: Sequence[Element],
    job_elements: Sequence[Element],
    matches: Sequence[Match],
    weights: Union[DimensionWeights, Mapping[str, float], None] = None,
) -> MatchResult:
    """Score with a one-off MatchScorer (default weights unless given)."""
    return MatchScorer(weights).calculate_match_score(resume_elements, job_elements, matches)
