"""
Unit tests for the deterministic scoring engine.
"""

import unittest
import logging

from resume_fit.errors import ConfigurationError
from resume_fit.models import (
    Dimension,
    Element,
    ElementCategory,
    Match,
    MatchType,
    TaggedElement,
)
from resume_fit.scoring_engine import (
    MatchScorer,
    accept_matches,
    best_matches,
    calculate_match_score,
    identify_gaps,
    identify_strengths,
)

# Configure logging for tests
logging.basicConfig(level=logging.INFO)


def job(text, importance=0.5, category=ElementCategory.SKILL):
    return TaggedElement(text=text, context=text, importance=importance, category=category)


def resume(text):
    return TaggedElement(text=text, context=text, category=ElementCategory.SKILL)


def match(resume_element, job_element, confidence=1.0, match_type=None):
    if match_type is None:
        match_type = MatchType.EXACT if confidence == 1.0 else MatchType.SEMANTIC
    return Match(
        resume_element=resume_element,
        job_element=job_element,
        match_type=match_type,
        confidence=confidence,
    )


class TestMatchScore(unittest.TestCase):
    """Test overall and per-dimension scores."""

    def setUp(self):
        self.python = job("Python", 0.95)
        self.docker = job("Docker", 0.75)
        self.aws = job("AWS", 0.40)
        self.leadership = job("Leadership", 0.75, ElementCategory.ATTRIBUTE)
        self.jobs = [self.python, self.docker, self.aws, self.leadership]

        self.r_python = resume("Python")
        self.r_containers = resume("Containers")
        self.resumes = [self.r_python, self.r_containers]

        self.matches = [
            match(self.r_python, self.python),
            match(self.r_containers, self.docker, 0.8),
        ]

    def test_perfect_match(self):
        """Every job element matched exactly scores 1.0."""
        resumes = [resume(e.text) for e in self.jobs]
        matches = [match(r, j) for r, j in zip(resumes, self.jobs)]
        result = calculate_match_score(resumes, self.jobs, matches)
        self.assertAlmostEqual(result.overall_score, 1.0)
        self.assertEqual(result.gaps, ())
        self.assertEqual(len(result.strengths), 4)

    def test_partial_match(self):
        """Skills: (0.95*1 + 0.75*0.8) / (0.95+0.75+0.40); attributes 0."""
        result = calculate_match_score(self.resumes, self.jobs, self.matches)
        skills = (0.95 + 0.75 * 0.8) / (0.95 + 0.75 + 0.40)
        self.assertAlmostEqual(result.breakdown.skills_score, skills)
        self.assertAlmostEqual(result.breakdown.attributes_score, 0.0)
        # keywords, experience and level have no job elements
        self.assertEqual(result.breakdown.keyword_score, 1.0)
        self.assertEqual(result.breakdown.experience_score, 1.0)
        self.assertEqual(result.breakdown.level_score, 1.0)

        expected = 0.35 * skills + 0.20 * 0.0 + 0.20 + 0.15 + 0.10
        self.assertAlmostEqual(result.overall_score, expected)

    def test_scores_in_range(self):
        result = calculate_match_score(self.resumes, self.jobs, self.matches)
        self.assertGreaterEqual(result.overall_score, 0.0)
        self.assertLessEqual(result.overall_score, 1.0)
        for dimension in Dimension:
            score = result.breakdown.score(dimension)
            self.assertGreaterEqual(score, 0.0)
            self.assertLessEqual(score, 1.0)

    def test_gap_strength_partition(self):
        """Each job element is either a gap or perfectly matched, never both."""
        result = calculate_match_score(self.resumes, self.jobs, self.matches)
        gap_keys = {g.element.key for g in result.gaps}
        perfect = {s.job_element.key for s in result.strengths if s.contribution == s.job_element.importance}
        self.assertEqual(gap_keys & perfect, set())
        self.assertEqual(gap_keys | perfect, {e.key for e in self.jobs})

    def test_gaps_sorted_by_impact(self):
        result = calculate_match_score(self.resumes, self.jobs, self.matches)
        self.assertEqual(
            [g.element.text for g in result.gaps],
            ["Leadership", "AWS", "Docker"],
        )
        self.assertAlmostEqual(result.gaps[2].impact, 0.75 * 0.2)

    def test_strengths_sorted_by_contribution(self):
        result = calculate_match_score(self.resumes, self.jobs, self.matches)
        self.assertEqual([s.element.text for s in result.strengths], ["Python", "Containers"])
        self.assertAlmostEqual(result.strengths[1].contribution, 0.75 * 0.8)

    def test_empty_job_elements(self):
        """No job elements: score 0, empty breakdown, no gaps or strengths."""
        result = calculate_match_score(self.resumes, [], [])
        self.assertEqual(result.overall_score, 0.0)
        self.assertEqual(result.breakdown.dimensions, {})
        self.assertEqual(result.gaps, ())
        self.assertEqual(result.strengths, ())

    def test_empty_resume(self):
        """An empty resume leaves every job element a gap."""
        result = calculate_match_score([], self.jobs, [])
        self.assertEqual(len(result.gaps), len(self.jobs))
        self.assertAlmostEqual(result.overall_score, 0.15 + 0.10 + 0.20)

    def test_zero_importance_dimension_is_vacuous(self):
        jobs = [job("Perl", 0.0)]
        result = calculate_match_score([], jobs, [])
        self.assertEqual(result.breakdown.skills_score, 1.0)

    def test_deterministic(self):
        first = calculate_match_score(self.resumes, self.jobs, self.matches)
        second = calculate_match_score(self.resumes, self.jobs, self.matches)
        self.assertEqual(first, second)


class TestWeights(unittest.TestCase):
    """Test weight validation."""

    def test_weights_must_sum_to_one(self):
        """Weights summing to 1.2 are rejected at construction."""
        with self.assertRaises(ConfigurationError):
            MatchScorer({"keywords": 0.4, "skills": 0.35, "attributes": 0.2, "experience": 0.15, "level": 0.1})

    def test_negative_weight(self):
        with self.assertRaises(ConfigurationError):
            MatchScorer({"keywords": -0.1, "skills": 0.65, "attributes": 0.2, "experience": 0.15, "level": 0.1})

    def test_custom_weights(self):
        weights = {"keywords": 0.0, "skills": 1.0, "attributes": 0.0, "experience": 0.0, "level": 0.0}
        python = job("Python", 0.8)
        go = job("Go", 0.8)
        r = resume("Python")
        result = MatchScorer(weights).calculate_match_score([r], [python, go], [match(r, python)])
        self.assertAlmostEqual(result.overall_score, 0.5)

    def test_configuration_error_is_value_error(self):
        with self.assertRaises(ValueError):
            MatchScorer({"skills": 2.0})


class TestAcceptMatches(unittest.TestCase):
    """Test boundary validation of collaborator matches."""

    def setUp(self):
        self.python = job("Python", 0.95)
        self.r_python = resume("Python")
        self.r_scripting = resume("Scripting")

    def test_low_confidence_dropped(self):
        accepted = accept_matches([match(self.r_scripting, self.python, 0.49)], [self.python])
        self.assertEqual(accepted, [])

    def test_threshold_inclusive(self):
        accepted = accept_matches([match(self.r_scripting, self.python, 0.5)], [self.python])
        self.assertEqual(len(accepted), 1)

    def test_unknown_job_element_dropped(self):
        other = job("Rust")
        self.assertEqual(accept_matches([match(self.r_python, other)], [self.python]), [])

    def test_false_exact_downgraded(self):
        accepted = accept_matches(
            [match(self.r_scripting, self.python, 0.9, MatchType.EXACT)], [self.python]
        )
        self.assertEqual(accepted[0].match_type, MatchType.SEMANTIC)

    def test_confidence_clamped(self):
        m = match(self.r_python, self.python, 1.4, MatchType.EXACT)
        self.assertEqual(m.confidence, 1.0)

    def test_dropped_match_becomes_gap(self):
        result = calculate_match_score(
            [self.r_scripting], [self.python], [match(self.r_scripting, self.python, 0.3)]
        )
        self.assertEqual(result.strengths, ())
        self.assertAlmostEqual(result.gaps[0].impact, 0.95)


class TestTieBreaking(unittest.TestCase):
    """Test deterministic ordering on equal values."""

    def test_best_match_first_wins_ties(self):
        python = job("Python")
        a, b = resume("Py"), resume("Python3")
        lookup = best_matches([match(a, python, 0.8), match(b, python, 0.8)])
        self.assertIs(lookup["python"].resume_element, a)

    def test_strength_ties_follow_resume_then_job_order(self):
        sql, java = job("SQL", 0.5), job("Java", 0.5)
        r_first, r_second = resume("Databases"), resume("JVM")
        matches = [
            match(r_second, java, 0.8),
            match(r_first, java, 0.8),
            match(r_first, sql, 0.8),
        ]
        strengths = identify_strengths([r_first, r_second], [sql, java], matches)
        self.assertEqual(
            [(s.element.text, s.job_element.text) for s in strengths],
            [("Databases", "SQL"), ("Databases", "Java"), ("JVM", "Java")],
        )

    def test_gap_ties_follow_job_order(self):
        """Equal impact keeps job order, whether the gap is unmatched or partial."""
        terraform = job("Terraform", 0.5)
        kafka = job("Kafka", 1.0)
        ansible = job("Ansible", 0.5, ElementCategory.ATTRIBUTE)
        spark = job("Spark", 0.9)
        jobs = [terraform, kafka, ansible, spark]
        matches = [match(resume("Event streaming"), kafka, 0.5)]

        expected = ["Spark", "Terraform", "Kafka", "Ansible"]
        result = calculate_match_score([resume("Event streaming")], jobs, matches)
        self.assertEqual([g.element.text for g in result.gaps], expected)
        self.assertAlmostEqual(result.gaps[2].impact, 0.5)

        gaps = identify_gaps(jobs, best_matches(accept_matches(matches, jobs)))
        self.assertEqual([g.element.text for g in gaps], expected)
        self.assertEqual(gaps[3].category, ElementCategory.ATTRIBUTE)
        self.assertEqual(gaps[0].category, ElementCategory.SKILL)

    def test_plain_job_elements_default_importance(self):
        plain = Element(text="Scrum", context="Scrum")
        result = calculate_match_score([], [plain], [])
        self.assertAlmostEqual(result.gaps[0].importance, 0.5)


if __name__ == "__main__":
    unittest.main()
