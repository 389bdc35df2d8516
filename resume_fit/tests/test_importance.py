"""
Unit tests for cue-based importance assignment and dimension routing.
"""

import unittest
import logging

from resume_fit.importance import (
    assign_importance_scores,
    dimension_for,
    find_importance_cues,
    score_importance,
)
from resume_fit.models import Dimension, Element, ElementCategory, TaggedElement

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


def element(text, context):
    return Element(text=text, context=context)


class TestScoreImportance(unittest.TestCase):
    """Test importance scores for each cue class."""

    def test_required_class(self):
        for context in ["Python required", "Must have SQL", "Essential: Git", "Docker is mandatory"]:
            with self.subTest(context=context):
                self.assertEqual(score_importance(element("x", context)), 0.95)

    def test_strongly_preferred_class(self):
        """'strongly preferred' is not read as plain 'preferred'."""
        self.assertEqual(score_importance(element("AWS", "AWS strongly preferred")), 0.75)
        self.assertEqual(score_importance(element("Go", "Go is important")), 0.75)

    def test_preferred_class(self):
        for context in ["Kafka preferred", "Airflow nice to have", "GraphQL is a plus", "Bonus: Rust"]:
            with self.subTest(context=context):
                self.assertEqual(score_importance(element("x", context)), 0.40)

    def test_no_cue_defaults(self):
        self.assertEqual(score_importance(element("Java", "We use Java daily")), 0.5)

    def test_highest_class_wins(self):
        """'React required but nice to have for v2' scores 0.95."""
        e = element("React", "React required but nice to have for v2")
        self.assertEqual(score_importance(e), 0.95)

    def test_case_insensitive(self):
        self.assertEqual(score_importance(element("x", "PYTHON REQUIRED")), 0.95)
        self.assertEqual(score_importance(element("x", "Nice To Have: Scala")), 0.40)

    def test_whole_words_only(self):
        """'plus' inside 'surplus' is not a cue."""
        self.assertEqual(score_importance(element("x", "Managed surplus inventory")), 0.5)

    def test_explicit_context_overrides(self):
        e = element("Terraform", "Terraform")
        self.assertEqual(score_importance(e, context="Terraform is required"), 0.95)

    def test_result_in_range(self):
        for context in ["", "required", "optional", "a plus", "critical and preferred"]:
            score = score_importance(element("x", context))
            self.assertGreaterEqual(score, 0.0)
            self.assertLessEqual(score, 1.0)


class TestFindImportanceCues(unittest.TestCase):
    """Test cue detection."""

    def test_longer_cue_claims_span(self):
        cues = find_importance_cues("Kubernetes strongly preferred")
        self.assertEqual(cues, [("strongly preferred", 0.75)])

    def test_a_plus_not_double_counted(self):
        cues = find_importance_cues("Scala is a plus")
        self.assertEqual(cues, [("a plus", 0.40)])

    def test_empty_context(self):
        self.assertEqual(find_importance_cues(""), [])


class TestAssignImportanceScores(unittest.TestCase):
    """Test conversion of extracted elements into tagged elements."""

    def test_plain_elements_are_scored(self):
        tagged = assign_importance_scores([
            element("Python", "Python required"),
            element("Airflow", "Airflow nice to have"),
        ])
        self.assertTrue(all(isinstance(t, TaggedElement) for t in tagged))
        self.assertEqual([t.importance for t in tagged], [0.95, 0.40])
        self.assertEqual(tagged[0].category, ElementCategory.KEYWORD)

    def test_existing_importance_kept(self):
        pre = TaggedElement(text="SQL", context="SQL required", importance=0.3, category=ElementCategory.SKILL)
        self.assertEqual(assign_importance_scores([pre])[0].importance, 0.3)

    def test_out_of_range_importance_clamped(self):
        self.assertEqual(TaggedElement(text="a", importance=1.7).importance, 1.0)
        self.assertEqual(TaggedElement(text="a", importance=-0.2).importance, 0.0)
        self.assertEqual(TaggedElement(text="a", importance=float("nan")).importance, 0.5)


class TestDimensionFor(unittest.TestCase):
    """Test routing of job elements to scoring dimensions."""

    def test_categories(self):
        cases = {
            ElementCategory.SKILL: Dimension.SKILLS,
            ElementCategory.ATTRIBUTE: Dimension.ATTRIBUTES,
            ElementCategory.KEYWORD: Dimension.KEYWORDS,
            ElementCategory.CONCEPT: Dimension.KEYWORDS,
            ElementCategory.EXPERIENCE: Dimension.EXPERIENCE,
        }
        for category, dimension in cases.items():
            with self.subTest(category=category):
                self.assertEqual(dimension_for(TaggedElement(text="teamwork", category=category)), dimension)

    def test_seniority_routes_to_level(self):
        e = TaggedElement(text="Senior engineer", category=ElementCategory.EXPERIENCE)
        self.assertEqual(dimension_for(e), Dimension.LEVEL)

    def test_duration_stays_experience(self):
        e = TaggedElement(text="5+ years as senior engineer", category=ElementCategory.EXPERIENCE)
        self.assertEqual(dimension_for(e), Dimension.EXPERIENCE)

    def test_skill_never_level(self):
        e = TaggedElement(text="Lead generation", category=ElementCategory.SKILL)
        self.assertEqual(dimension_for(e), Dimension.SKILLS)

    def test_plain_element_is_keyword(self):
        self.assertEqual(dimension_for(Element(text="agile")), Dimension.KEYWORDS)


if __name__ == "__main__":
    unittest.main()
