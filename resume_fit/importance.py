"""
Importance Assignment

Deterministic mapping from explicit linguistic cues ("required", "nice to
have", ...) in an element's context to an importance in [0, 1], plus the rule
that routes each job element to one of the five scoring dimensions.
No AI/LLM is used in this module.
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULT_IMPORTANCE, IMPORTANCE_CUES, SENIORITY_TERMS
from .models import Dimension, Element, ElementCategory, TaggedElement, clamp01

logger = logging.getLogger(__name__)


def _cue_pattern(cue: str) -> "re.Pattern[str]":
    words = [re.escape(w) for w in cue.split()]
    return re.compile(r"\b" + r"[\s-]+".join(words) + r"\b", re.IGNORECASE)


# Longest cue first so "strongly preferred" claims its span before "preferred"
_CUE_TABLE: List[Tuple[str, float, "re.Pattern[str]"]] = sorted(
    (
        (cue, score, _cue_pattern(cue))
        for score, cues in IMPORTANCE_CUES.items()
        for cue in cues
    ),
    key=lambda item: len(item[0]),
    reverse=True,
)

_SENIORITY_PATTERN = re.compile(
    r"\b(?:" + "|".join(
        r"[\s-]+".join(re.escape(w) for w in term.replace("-", " ").split())
        for term in sorted(SENIORITY_TERMS, key=len, reverse=True)
    ) + r")\b",
    re.IGNORECASE,
)

_DURATION_PATTERN = re.compile(r"\b\d+(?:\.\d+)?\s*\+?\s*(?:years?|yrs?)\b", re.IGNORECASE)

_CATEGORY_DIMENSIONS = {
    ElementCategory.KEYWORD: Dimension.KEYWORDS,
    ElementCategory.CONCEPT: Dimension.KEYWORDS,
    ElementCategory.SKILL: Dimension.SKILLS,
    ElementCategory.ATTRIBUTE: Dimension.ATTRIBUTES,
    ElementCategory.EXPERIENCE: Dimension.EXPERIENCE,
}


def find_importance_cues(context: str) -> List[Tuple[str, float]]:
    """
    Find importance cues in a context, longest match first.

    A span consumed by a longer cue is not matched again by a shorter one.

    Returns:
        List of (cue, score) pairs in the order they were claimed
    """
    if not context:
        return []

    claimed: List[Tuple[int, int]] = []
    found: List[Tuple[str, float]] = []
    for cue, score, pattern in _CUE_TABLE:
        for m in pattern.finditer(context):
            start, end = m.span()
            if any(start < c_end and c_start < end for c_start, c_end in claimed):
                continue
            claimed.append((start, end))
            found.append((cue, score))
    return found


def score_importance(element: Element, context: Optional[str] = None) -> float:
    """
    Importance score (0-1) from explicit cues in the element's context.

    - required / must have / essential / mandatory / critical / necessary: 0.95
    - strongly preferred / highly desired / important / strongly recommended: 0.75
    - preferred / nice to have / bonus / plus / optional / a plus: 0.40
    - no cue: 0.50

    When several cue classes are present the highest one wins.

    Args:
        element: The element to score
        context: Text to inspect; defaults to the element's own context

    Returns:
        Importance clamped to [0, 1]
    """
    text = element.context if context is None else context
    cues = find_importance_cues(text or "")

    if not cues:
        logger.debug(f"No importance cue for '{element.text}', using {DEFAULT_IMPORTANCE}")
        return DEFAULT_IMPORTANCE

    score = max(s for _, s in cues)
    logger.debug(f"Importance for '{element.text}': {score} (cues: {[c for c, _ in cues]})")
    return clamp01(score)


def is_seniority_cue(text: str) -> bool:
    return bool(_SENIORITY_PATTERN.search(text or ""))


def is_duration_cue(text: str) -> bool:
    return bool(_DURATION_PATTERN.search(text or ""))


def dimension_for(element: Element) -> Dimension:
    """
    Scoring dimension for a job element.

    Skills always score under "skills". Any other element whose text names a
    seniority ("senior", "lead", "entry level", ...) without a duration
    ("5 years", "3+ yrs") scores under "level"; the rest follow their category.
    """
    category = getattr(element, "category", ElementCategory.KEYWORD)
    if category != ElementCategory.SKILL:
        text = f"{element.text} {element.normalized_text}"
        if is_seniority_cue(text) and not is_duration_cue(text):
            return Dimension.LEVEL
    return _CATEGORY_DIMENSIONS.get(category, Dimension.KEYWORDS)


def assign_importance_scores(
    elements: Sequence[Element],
    default_category: ElementCategory = ElementCategory.KEYWORD,
) -> List[TaggedElement]:
    """
    Turn extracted elements into TaggedElements.

    Importance an extractor already supplied is kept (clamped); elements
    without one are scored from their context.
    """
    tagged: List[TaggedElement] = []
    for element in elements:
        if isinstance(element, TaggedElement):
            tagged.append(element)
            continue
        tagged.append(
            TaggedElement(
                text=element.text,
                normalized_text=element.normalized_text,
                tags=element.tags,
                context=element.context,
                position=element.position,
                importance=score_importance(element),
                category=default_category,
            )
        )
    logger.info(f"Assigned importance to {len(tagged)} elements")
    return tagged
