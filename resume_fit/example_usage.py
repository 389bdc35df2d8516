"""
Example usage of the resume fit scoring and optimization system.

Run this file to see the system in action:
    python -m resume_fit.example_usage
"""

import logging

from resume_fit import LLMExtractor, LLMMatcher, analyze_match, load_settings, run_optimization
from resume_fit.models import JobPosting, Recommendations, Resume

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

JOB = JobPosting(
    id="ml-engineer-001",
    title="Machine Learning Engineer",
    description="""
We are hiring a Machine Learning Engineer to build and ship models for our
recommendation platform.
""",
    requirements="""
- Python and PyTorch are required
- 3+ years of experience training production models
- Must have experience with Docker and Kubernetes
- Strong communication and leadership skills
""",
    qualifications="""
- Experience with AWS is preferred
- Familiarity with Airflow is nice to have
- Senior level ownership of ML pipelines
""",
)

RESUME = Resume(
    id="resume-v1",
    content="""
Jordan Lee
ML Practitioner

SKILLS
Python, TensorFlow, Keras, Docker, SQL

EXPERIENCE (2 years)
Data Scientist | Acme Analytics | 2022-2024
- Trained image classification models with TensorFlow
- Deployed models as Docker containers
- Presented results to stakeholders
""",
)


class AppendSkillsReviser:
    """Toy reviser: appends the elements the recommendations ask to add."""

    def revise(self, resume: Resume, recommendations: Recommendations, round: int) -> Resume:
        additions = [r.element for r in recommendations.priority + recommendations.optional]
        if not additions:
            return resume
        content = resume.content.rstrip() + "\n\nADDITIONAL SKILLS\n" + ", ".join(additions) + "\n"
        return Resume(id=f"resume-v{round + 1}", content=content, format=resume.format)


def example_single_analysis(extractor, matcher, weights):
    """Example 1: Score a resume once."""
    print("\n" + "="*80)
    print("EXAMPLE 1: Single Analysis")
    print("="*80)

    result = analyze_match(JOB, RESUME, extractor, matcher, weights)

    print(f"\n📊 MATCH RESULT")
    print(f"{'='*80}")
    print(f"Overall Match: {result.overall_score * 100:.1f}%")
    print(f"\nDimension Breakdown:")
    for dimension, breakdown in result.breakdown.dimensions.items():
        bar = "█" * int(breakdown.score * 20)
        print(f"  {dimension.value.capitalize():15} {breakdown.score * 100:5.1f}% {bar}")

    print(f"\nTop gaps:")
    for gap in result.gaps[:5]:
        print(f"  - {gap.element.text} (importance {gap.importance:.2f}, impact {gap.impact:.2f})")
    print(f"\nTop strengths:")
    for strength in result.strengths[:5]:
        print(f"  + {strength.element.text} <= {strength.job_element.text} ({strength.match_type.value})")


def example_optimization(extractor, matcher, settings):
    """Example 2: Iterate until a termination criterion holds."""
    print("\n" + "="*80)
    print("EXAMPLE 2: Optimization Loop")
    print("="*80)

    outcome = run_optimization(
        JOB,
        RESUME,
        extractor,
        matcher,
        reviser=AppendSkillsReviser(),
        config=settings.optimization,
        weights=settings.weights,
    )
    result = outcome.result

    for entry in result.iterations:
        print(f"  Round {entry.round}: {entry.score * 100:.1f}% ({entry.resume_version})")
    print(f"\nStopped: {result.termination_reason.value}")
    print(f"Improvement: {result.metrics.improvement * 100:+.1f} points")
    if result.iterations[-1].recommendations:
        print(f"\n{result.iterations[-1].recommendations.summary}")


def main():
    """Run all examples."""
    settings = load_settings()

    # Check for API key
    if not settings.openai_api_key:
        print("❌ ERROR: OPENAI_API_KEY environment variable not set")
        print("   Please set it: export OPENAI_API_KEY='sk-...'")
        return

    extractor = LLMExtractor(settings.model_name)
    matcher = LLMMatcher(settings.model_name)

    print("\n" + "="*80)
    print("RESUME FIT SCORING SYSTEM - EXAMPLES")
    print("="*80)

    example_single_analysis(extractor, matcher, settings.weights)
    example_optimization(extractor, matcher, settings)

    print("\n" + "="*80)
    print("✅ ALL EXAMPLES COMPLETED SUCCESSFULLY")
    print("="*80)


if __name__ == "__main__":
    main()
