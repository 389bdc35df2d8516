"""
Unit tests for element deduplication.
"""

import unittest
import logging

from resume_fit.deduplicator import (
    consolidate_group,
    count_duplicates,
    dedupe,
    deduplication_stats,
    find_duplicate_groups,
    has_duplicates,
)
from resume_fit.models import Element, ElementCategory, Position, TaggedElement

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


def tagged(text, importance=0.5, context=None, category=ElementCategory.SKILL, **kwargs):
    return TaggedElement(
        text=text,
        context=context if context is not None else f"Uses {text}",
        importance=importance,
        category=category,
        **kwargs,
    )


class TestDedupe(unittest.TestCase):
    """Test dedupe on plain and tagged elements."""

    def test_empty_input(self):
        """Empty input gives empty output."""
        self.assertEqual(dedupe([]), [])

    def test_case_and_whitespace_insensitive(self):
        """'Python', ' python ' and 'PYTHON' are one element."""
        elements = [
            Element(text="Python", context="Python required"),
            Element(text=" python ", context="python scripting"),
            Element(text="PYTHON", context="Python required"),
        ]
        result = dedupe(elements)
        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].text, "Python")
        self.assertEqual(result[0].context, "Python required | python scripting")

    def test_first_occurrence_order(self):
        """Output keeps the order in which keys first appear."""
        elements = [Element(text=t) for t in ["Go", "Rust", "go", "Java", "rust"]]
        self.assertEqual([e.text for e in dedupe(elements)], ["Go", "Rust", "Java"])

    def test_max_importance_kept(self):
        """Importances {0.5, 0.6, 0.45} consolidate to 0.6."""
        elements = [
            tagged("Docker", 0.5, "Docker basics"),
            tagged("docker", 0.6, "Docker preferred"),
            tagged("DOCKER", 0.45, "Docker is a plus"),
        ]
        result = dedupe(elements)
        self.assertEqual(len(result), 1)
        self.assertIsInstance(result[0], TaggedElement)
        self.assertAlmostEqual(result[0].importance, 0.6)
        self.assertEqual(result[0].context, "Docker basics | Docker preferred | Docker is a plus")

    def test_idempotent(self):
        """dedupe(dedupe(x)) == dedupe(x)."""
        elements = [
            tagged("React", 0.95, "React required"),
            tagged("react", 0.4, "React nice to have"),
            tagged("SQL", 0.5, "SQL"),
            tagged("sql", 0.75, "SQL important"),
        ]
        once = dedupe(elements)
        twice = dedupe(once)
        self.assertEqual(once, twice)

    def test_remerge_does_not_repeat_context(self):
        """Merging an already merged element with a known context adds nothing."""
        merged = dedupe([tagged("AWS", context="AWS a"), tagged("aws", context="AWS b")])[0]
        again = dedupe([merged, tagged("aws", context="AWS b")])[0]
        self.assertEqual(again.context, "AWS a | AWS b")

    def test_tags_unioned_in_order(self):
        """Tags from every occurrence survive, first-seen order."""
        elements = [
            Element(text="Kubernetes", tags=["devops", "cloud"]),
            Element(text="kubernetes", tags=["cloud", "containers"]),
        ]
        self.assertEqual(dedupe(elements)[0].tags, ("devops", "cloud", "containers"))

    def test_mixed_plain_and_tagged(self):
        """An untagged duplicate counts as 0.5 and the result is tagged."""
        elements = [
            Element(text="Leadership", context="Shows leadership", position=Position(start=3, end=13)),
            tagged("leadership", 0.4, "Leadership a plus", category=ElementCategory.ATTRIBUTE),
        ]
        result = consolidate_group(elements)
        self.assertIsInstance(result, TaggedElement)
        self.assertAlmostEqual(result.importance, 0.5)
        self.assertEqual(result.category, ElementCategory.ATTRIBUTE)
        self.assertEqual(result.position, Position(start=3, end=13))

    def test_empty_group_raises(self):
        """Consolidating nothing is an error."""
        with self.assertRaises(ValueError):
            consolidate_group([])


class TestDuplicateHelpers(unittest.TestCase):
    """Test duplicate inspection helpers."""

    def setUp(self):
        self.elements = [Element(text=t) for t in ["A", "b", "a", "B", "c", "A"]]

    def test_count_duplicates(self):
        self.assertEqual(count_duplicates(self.elements), 3)

    def test_find_duplicate_groups(self):
        groups = find_duplicate_groups(self.elements)
        self.assertEqual([len(g) for g in groups], [3, 2])

    def test_has_duplicates(self):
        self.assertTrue(has_duplicates(self.elements))
        self.assertFalse(has_duplicates(dedupe(self.elements)))

    def test_stats(self):
        stats = deduplication_stats(self.elements, dedupe(self.elements))
        self.assertEqual(stats["original_count"], 6)
        self.assertEqual(stats["deduplicated_count"], 3)
        self.assertEqual(stats["duplicates_removed"], 3)
        self.assertAlmostEqual(stats["reduction_percentage"], 50.0)

    def test_stats_empty(self):
        self.assertEqual(deduplication_stats([], [])["reduction_percentage"], 0.0)


if __name__ == "__main__":
    unittest.main()
