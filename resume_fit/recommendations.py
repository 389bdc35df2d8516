"""
Recommendation Generator

Turns a MatchResult into prioritized, actionable feedback for the next
resume revision. Deterministic: same match result, same recommendations.
"""

import logging
import math
import re
from typing import Dict, List, Optional, Sequence

from .config import GAP_PRIORITY
from .models import (
    Gap,
    Match,
    MatchResult,
    Recommendation,
    RecommendationMetadata,
    RecommendationType,
    Recommendations,
    importance_of,
    normalize_key,
)

logger = logging.getLogger(__name__)

PARTIAL_MATCH_MAX = 0.7
EMPHASIS_MIN_IMPORTANCE = 0.6
CRITICAL_IMPORTANCE = 0.8

_SUGGESTIONS = {
    "skill": 'Highlight or reframe existing experience to make "{0}" explicit; if missing, add it to skills or demonstrate it in projects',
    "experience": 'Surface experience that aligns with "{0}" in your work history or projects; if missing, add a relevant example',
    "attribute": 'Emphasize "{0}" in your summary or through specific accomplishments if you already demonstrate it',
    "keyword": 'Use "{0}" or closely aligned wording where it already fits your experience',
    "concept": 'Demonstrate familiarity with "{0}" using existing projects, publications, or certifications',
}

_EXAMPLES = {
    "skill": 'Example: "Proficient in {0}" or "Developed solutions using {0}"',
    "experience": 'Example: "Led {0} initiatives that resulted in [specific outcome]"',
    "attribute": 'Example: "Demonstrated {0} by [specific achievement]"',
    "keyword": 'Example: Naturally mention "{0}" in context of relevant projects',
    "concept": 'Example: "Applied {0} principles to [specific project or outcome]"',
}


def prioritize_gaps(gaps: Sequence[Gap]) -> Dict[str, List[Gap]]:
    """
    Split gaps into high (>= 0.8), medium (>= 0.5) and low importance,
    each sorted by impact (descending). Gaps with an importance outside
    [0, 1] are skipped.
    """
    prioritized: Dict[str, List[Gap]] = {"high": [], "medium": [], "low": []}
    for gap in gaps:
        if math.isnan(gap.importance) or not 0.0 <= gap.importance <= 1.0:
            logger.warning(f"Skipping gap {gap.element.text!r} with importance {gap.importance}")
            continue
        if gap.importance >= GAP_PRIORITY["high"]:
            prioritized["high"].append(gap)
        elif gap.importance >= GAP_PRIORITY["medium"]:
            prioritized["medium"].append(gap)
        else:
            prioritized["low"].append(gap)

    for bucket in prioritized.values():
        bucket.sort(key=lambda g: g.impact, reverse=True)
    return prioritized


def _reference(text: str, category: str, importance: float) -> str:
    return f'Job requirement: "{text}" ({category}, importance: {importance:.2f})'


def _missing_explanation(text: str, category: str, importance: float) -> str:
    if importance >= 0.9:
        level = "critical"
    elif importance >= 0.8:
        level = "high-priority"
    else:
        level = "important"

    explanation = f'The job posting lists "{text}" as a {level} {category} requirement'
    if importance >= 0.9:
        explanation += ". This is likely a must-have qualification for the role"
    elif importance >= 0.8:
        explanation += ". This is a key qualification that will significantly impact your candidacy"
    elif importance >= 0.6:
        explanation += ". Including this will strengthen your application"
    else:
        explanation += ". Adding this would improve your match score"
    return explanation + ". If you already have related experience, make it explicit using the job's terminology."


def missing_element_recommendations(gaps: Sequence[Gap]) -> List[Recommendation]:
    """'add_skill' for skill gaps, 'add_experience' for everything else."""
    recommendations = []
    for gap in gaps:
        text = gap.element.text
        category = gap.category.value
        recommendations.append(
            Recommendation(
                type=RecommendationType.ADD_SKILL if category == "skill" else RecommendationType.ADD_EXPERIENCE,
                element=text,
                importance=gap.importance,
                suggestion=_SUGGESTIONS.get(category, 'Add "{0}" to strengthen your resume').format(text),
                example=_EXAMPLES.get(category, 'Example: Include "{0}" in relevant sections').format(text),
                job_requirement_reference=_reference(text, category, gap.importance),
                explanation=_missing_explanation(text, category, gap.importance),
            )
        )
    return recommendations


def _gap_info(match: Match, gaps_by_key: Dict[str, Gap]):
    gap = gaps_by_key.get(normalize_key(match.job_element.normalized_text))
    if gap is not None:
        return gap.importance, gap.category.value
    category = getattr(match.job_element, "category", None)
    return importance_of(match.job_element), category.value if category else "skill"


def rewording_recommendations(matches: Sequence[Match], gaps: Sequence[Gap]) -> List[Recommendation]:
    """'reframe' suggestions for partial matches (confidence <= 0.7)."""
    gaps_by_key = {normalize_key(g.element.normalized_text): g for g in gaps}
    recommendations = []
    for match in matches:
        if match.confidence > PARTIAL_MATCH_MAX:
            continue
        job_text = match.job_element.text
        resume_text = match.resume_element.text
        importance, category = _gap_info(match, gaps_by_key)
        recommendations.append(
            Recommendation(
                type=RecommendationType.REFRAME,
                element=job_text,
                importance=importance,
                suggestion=f'Strengthen match for "{job_text}" by using more specific or direct language',
                example=f'Before: "{resume_text}"\nAfter: "{job_text}" or similar phrasing that directly addresses the requirement',
                job_requirement_reference=_reference(job_text, category, importance),
                explanation=(
                    f'Your resume mentions "{resume_text}" which partially matches the job requirement '
                    f'"{job_text}" ({match.confidence * 100:.0f}% match). Using more direct language will '
                    f"make it clearer to ATS systems that you meet this requirement."
                ),
            )
        )
    return recommendations


def emphasis_recommendations(matches: Sequence[Match], gaps: Sequence[Gap]) -> List[Recommendation]:
    """
    'quantify' or 'emphasize' suggestions for strong matches (confidence > 0.7)
    on important job elements (importance >= 0.6).
    """
    gaps_by_key = {normalize_key(g.element.normalized_text): g for g in gaps}
    recommendations = []
    for match in matches:
        if match.confidence <= PARTIAL_MATCH_MAX:
            continue
        importance, category = _gap_info(match, gaps_by_key)
        if importance < EMPHASIS_MIN_IMPORTANCE:
            continue

        job_text = match.job_element.text
        resume_text = match.resume_element.text
        reference = _reference(job_text, category, importance)

        if not re.search(r"\d", resume_text):
            recommendations.append(
                Recommendation(
                    type=RecommendationType.QUANTIFY,
                    element=job_text,
                    importance=importance,
                    suggestion=f'Add specific metrics or quantifiable results to strengthen "{job_text}"',
                    example=f'Before: "{resume_text}"\nAfter: Add metrics like "Led team of 5" or "Increased efficiency by 30%"',
                    job_requirement_reference=reference,
                    explanation=(
                        f'Your resume mentions "{resume_text}" which matches "{job_text}". Quantifiable '
                        f"metrics make this important qualification (importance: {importance:.2f}) more concrete."
                    ),
                )
            )
        else:
            recommendations.append(
                Recommendation(
                    type=RecommendationType.EMPHASIZE,
                    element=job_text,
                    importance=importance,
                    suggestion=f'Emphasize "{job_text}" more prominently in your resume',
                    example="Consider moving this to a more prominent position or expanding on the impact",
                    job_requirement_reference=reference,
                    explanation=(
                        f'Your resume demonstrates "{job_text}" (importance: {importance:.2f}). '
                        f"Emphasize it so both ATS systems and reviewers notice it."
                    ),
                )
            )
    return recommendations


def generate_summary(
    match_result: MatchResult,
    iteration_round: int,
    target_score: float,
    top_recommendations: Sequence[Recommendation],
) -> str:
    current = match_result.overall_score
    summary = (
        f"Iteration {iteration_round}: Current match score is {current * 100:.1f}% "
        f"(target: {target_score * 100:.1f}%). "
    )
    if current >= target_score:
        summary += "Target achieved! "
    else:
        summary += f"Gap to target: {(target_score - current) * 100:.1f}%. "

    critical = sum(1 for g in match_result.gaps if g.importance > CRITICAL_IMPORTANCE)
    if critical:
        summary += f"{critical} critical requirement{'s' if critical > 1 else ''} missing. "

    if top_recommendations:
        top = list(top_recommendations)[:3]
        summary += f"Top {len(top)} recommendation{'s' if len(top) > 1 else ''}: "
        summary += "; ".join(
            f"{i}) {'Add' if r.type in (RecommendationType.ADD_SKILL, RecommendationType.ADD_EXPERIENCE) else 'Improve'} \"{r.element}\""
            for i, r in enumerate(top, 1)
        )
    return summary.strip()


def generate_recommendations(
    match_result: MatchResult,
    matches: Sequence[Match],
    iteration_round: int = 1,
    target_score: float = 0.8,
) -> Recommendations:
    """
    Build the recommendations for one round.

    - priority: high-importance gaps
    - optional: medium-importance gaps
    - rewording: reframe / quantify / emphasize suggestions on existing matches

    Args:
        match_result: Scored result for the current resume
        matches: Accepted matches used for the score
        iteration_round: Round these recommendations belong to
        target_score: Optimization target

    Returns:
        Recommendations with a summary line and metadata
    """
    prioritized = prioritize_gaps(match_result.gaps)
    priority = missing_element_recommendations(prioritized["high"])
    optional = missing_element_recommendations(prioritized["medium"])
    rewording = rewording_recommendations(matches, match_result.gaps)
    rewording += emphasis_recommendations(matches, match_result.gaps)

    # Stable sorts keep impact order among equal importance
    for bucket in (priority, optional, rewording):
        bucket.sort(key=lambda r: r.importance, reverse=True)

    logger.info(
        f"Round {iteration_round}: {len(priority)} priority, {len(optional)} optional, "
        f"{len(rewording)} rewording recommendations"
    )

    return Recommendations(
        summary=generate_summary(match_result, iteration_round, target_score, priority),
        priority=tuple(priority),
        optional=tuple(optional),
        rewording=tuple(rewording),
        metadata=RecommendationMetadata(
            iteration_round=iteration_round,
            current_score=match_result.overall_score,
            target_score=target_score,
        ),
    )


def top_recommendation(recommendations: Optional[Recommendations]) -> Optional[Recommendation]:
    if recommendations is None:
        return None
    items = recommendations.all()
    return items[0] if items else None
