"""
Result Builder

Aggregates a finished optimization run into an OptimizationResult.
"""

import logging
from typing import Sequence

from .config import OptimizationConfig
from .errors import OptimizationError
from .iteration_controller import is_stagnant
from .models import (
    IterationHistory,
    OptimizationMetrics,
    OptimizationResult,
    Resume,
    TerminationReason,
    check_rounds,
)

logger = logging.getLogger(__name__)


def determine_termination_reason(
    final_score: float,
    history: Sequence[IterationHistory],
    config: OptimizationConfig,
) -> TerminationReason:
    """
    Re-derive why the run stopped, using the same precedence as the live
    loop: target_reached > max_iterations > early_stopping.

    A history that meets none of the three was stopped from outside the loop;
    it is reported as early_stopping.
    """
    if final_score >= config.target_score:
        return TerminationReason.TARGET_REACHED
    if len(history) >= config.max_iterations:
        return TerminationReason.MAX_ITERATIONS
    if not is_stagnant([h.score for h in history], config):
        logger.debug("History shows no stagnation; run was stopped externally")
    return TerminationReason.EARLY_STOPPING


def create_optimization_result(
    final_resume: Resume,
    history: Sequence[IterationHistory],
    config: OptimizationConfig,
) -> OptimizationResult:
    """
    Build the final result of an optimization run.

    Metrics:
    - initial_score: score of round 1
    - final_score: score of the last round
    - improvement: final_score - initial_score (negative on regression)
    - iteration_count: number of recorded rounds

    Raises:
        OptimizationError: If the history is empty
    """
    if not history:
        raise OptimizationError("Cannot create optimization result: no iterations in history")

    history = tuple(history)
    check_rounds(history)

    initial_score = history[0].score
    final_score = history[-1].score
    reason = determine_termination_reason(final_score, history, config)

    logger.info(
        f"Optimization finished after {len(history)} rounds: {initial_score:.3f} -> {final_score:.3f} "
        f"({reason.value})"
    )

    return OptimizationResult(
        final_resume=final_resume,
        final_score=final_score,
        iterations=history,
        termination_reason=reason,
        metrics=OptimizationMetrics(
            initial_score=initial_score,
            final_score=final_score,
            improvement=final_score - initial_score,
            iteration_count=len(history),
        ),
    )
