"""
Element Deduplication

Consolidates duplicate elements from a single extraction pass while
preserving context from every occurrence and keeping the maximum importance.
"""

import logging
from typing import Dict, List, Sequence, TypeVar

from .config import CONTEXT_SEPARATOR, DEFAULT_IMPORTANCE
from .models import Element, TaggedElement, normalize_key

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Element)


def group_by_key(elements: Sequence[E]) -> Dict[str, List[E]]:
    """Group elements by normalized text, in first-occurrence order."""
    groups: Dict[str, List[E]] = {}
    for element in elements:
        groups.setdefault(normalize_key(element.normalized_text), []).append(element)
    return groups


def _distinct_contexts(group: Sequence[Element]) -> List[str]:
    seen = set()
    contexts: List[str] = []
    for element in group:
        # Split previously merged contexts so a re-merge never repeats a part
        for part in (element.context or "").split(CONTEXT_SEPARATOR):
            part = part.strip()
            if part and part not in seen:
                seen.add(part)
                contexts.append(part)
    return contexts


def _ordered_union(values_per_element: Sequence[Sequence[str]]) -> tuple:
    seen = set()
    merged = []
    for values in values_per_element:
        for value in values:
            if value not in seen:
                seen.add(value)
                merged.append(value)
    return tuple(merged)


def consolidate_group(group: Sequence[E]) -> E:
    """
    Merge a group of duplicates into one element.

    Text and position come from the first occurrence, tags are unioned,
    distinct contexts are joined with " | ". If any member is a TaggedElement
    the result is a TaggedElement carrying the maximum importance (members
    without importance count as 0.5).
    """
    if not group:
        raise ValueError("Cannot consolidate empty group")
    if len(group) == 1:
        return group[0]

    base = group[0]
    merged = {
        "text": base.text,
        "normalized_text": base.normalized_text,
        "tags": _ordered_union([e.tags for e in group]),
        "context": CONTEXT_SEPARATOR.join(_distinct_contexts(group)),
        "position": base.position,
    }

    tagged = [e for e in group if isinstance(e, TaggedElement)]
    if not tagged:
        return type(base)(**merged)

    merged["importance"] = max(
        e.importance if isinstance(e, TaggedElement) else DEFAULT_IMPORTANCE for e in group
    )
    merged["category"] = tagged[0].category
    merged["semantic_tags"] = _ordered_union([e.semantic_tags for e in tagged])
    cls = type(base) if isinstance(base, TaggedElement) else type(tagged[0])
    return cls(**merged)


def dedupe(elements: Sequence[E]) -> List[E]:
    """
    Deduplicate elements on normalized text (trimmed, case-insensitive).

    Idempotent: dedupe(dedupe(x)) == dedupe(x).

    Args:
        elements: Elements from one extraction pass

    Returns:
        One element per distinct normalized text, in first-occurrence order
    """
    if not elements:
        return []

    deduplicated: List[E] = []
    for key, group in group_by_key(elements).items():
        if len(group) > 1:
            logger.debug(f"Merging {len(group)} occurrences of '{key}'")
        deduplicated.append(consolidate_group(group))

    removed = len(elements) - len(deduplicated)
    if removed:
        logger.info(f"Deduplicated {len(elements)} elements into {len(deduplicated)} ({removed} merged)")
    return deduplicated


def count_duplicates(elements: Sequence[Element]) -> int:
    """Number of elements that repeat an earlier normalized text."""
    return sum(len(group) - 1 for group in group_by_key(elements).values())


def find_duplicate_groups(elements: Sequence[E]) -> List[List[E]]:
    return [group for group in group_by_key(elements).values() if len(group) > 1]


def has_duplicates(elements: Sequence[Element]) -> bool:
    seen = set()
    for element in elements:
        key = normalize_key(element.normalized_text)
        if key in seen:
            return True
        seen.add(key)
    return False


def deduplication_stats(original: Sequence[Element], deduplicated: Sequence[Element]) -> Dict[str, float]:
    original_count = len(original)
    deduplicated_count = len(deduplicated)
    removed = original_count - deduplicated_count
    return {
        "original_count": original_count,
        "deduplicated_count": deduplicated_count,
        "duplicates_removed": removed,
        "reduction_percentage": (removed / original_count) * 100 if original_count else 0.0,
    }
