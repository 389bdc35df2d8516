"""
Iteration Controller

Owns the optimization state machine: evaluates termination criteria after
each scored round and produces new, immutable state snapshots.

    running -> completed   (target reached, iterations exhausted, or stalled)
    running -> failed      (collaborator error, cancellation)

completed and failed are terminal.
"""

import logging
from typing import List, Mapping, Optional, Sequence, Tuple, Union

from .config import OptimizationConfig, build_optimization_config
from .errors import InvalidStateTransition
from .models import (
    IterationDecision,
    IterationHistory,
    JobPosting,
    OptimizationState,
    OptimizationStatus,
    Recommendations,
    Resume,
    TaggedElement,
)

logger = logging.getLogger(__name__)


def is_stagnant(scores: Sequence[float], config: OptimizationConfig) -> bool:
    """
    True when the last ``early_stopping_rounds + 1`` scores show every
    consecutive improvement below ``min_improvement``.

    Needs at least ``early_stopping_rounds + 1`` scores; fewer never stagnate.
    """
    window = config.early_stopping_rounds + 1
    if len(scores) < window:
        return False
    recent = list(scores)[-window:]
    return all(curr - prev < config.min_improvement for prev, curr in zip(recent, recent[1:]))


def evaluate_termination_criteria(
    current_score: float,
    history: Sequence[IterationHistory],
    config: OptimizationConfig,
) -> IterationDecision:
    """
    Decide whether the optimization loop should request another revision.

    Checked in order, first hit wins:
    1. Target reached: current_score >= target_score
    2. Max iterations: len(history) >= max_iterations
    3. Early stopping: no improvement >= min_improvement over the last
       early_stopping_rounds rounds
    4. Otherwise continue

    Args:
        current_score: Score of the round just recorded
        history: Recorded rounds, the last one being the round scored
            ``current_score``
        config: Optimization thresholds

    Returns:
        IterationDecision with should_continue flag and reason
    """
    iteration = len(history)

    if current_score >= config.target_score:
        return IterationDecision(
            should_continue=False,
            reason=f"Target score of {config.target_score} reached with score {current_score:.3f}",
        )

    if iteration >= config.max_iterations:
        return IterationDecision(
            should_continue=False,
            reason=f"Maximum iterations ({config.max_iterations}) reached",
        )

    if is_stagnant([h.score for h in history], config):
        return IterationDecision(
            should_continue=False,
            reason=(
                f"Early stopping: no improvement of at least {config.min_improvement} "
                f"for {config.early_stopping_rounds} consecutive rounds"
            ),
        )

    return IterationDecision(
        should_continue=True,
        reason=(
            f"Continuing optimization (iteration {iteration + 1}/{config.max_iterations}, "
            f"score: {current_score:.3f})"
        ),
    )


def create_iteration_history_entry(
    round: int,
    score: float,
    recommendations: Optional[Recommendations] = None,
    resume_version: str = "",
) -> IterationHistory:
    return IterationHistory(
        round=round,
        score=score,
        recommendations=recommendations,
        resume_version=resume_version,
    )


def initialize_optimization_state(
    job_posting: JobPosting,
    initial_resume: Resume,
    config: OptimizationConfig,
    job_elements: Sequence[TaggedElement] = (),
) -> OptimizationState:
    """Fresh running state with an empty history."""
    return OptimizationState(
        job_posting=job_posting,
        job_elements=tuple(job_elements),
        current_resume=initial_resume,
        history=(),
        config=config,
        status=OptimizationStatus.RUNNING,
    )


def _require_running(state: OptimizationState, action: str) -> None:
    if state.status != OptimizationStatus.RUNNING:
        raise InvalidStateTransition(f"Cannot {action}: optimization is already {state.status.value}")


def update_optimization_state(
    state: OptimizationState,
    new_resume: Resume,
    entry: IterationHistory,
) -> OptimizationState:
    """
    Append a round and make ``new_resume`` current.

    The given state is left untouched.

    Raises:
        InvalidStateTransition: If the state is terminal
        ValueError: If the entry's round is not the next round number
    """
    _require_running(state, "record a round")
    expected = len(state.history) + 1
    if entry.round != expected:
        raise ValueError(f"Expected round {expected}, got {entry.round}")
    return state.model_copy(update={
        "current_resume": new_resume,
        "history": state.history + (entry,),
    })


def complete_optimization_state(state: OptimizationState) -> OptimizationState:
    _require_running(state, "complete")
    return state.model_copy(update={"status": OptimizationStatus.COMPLETED})


def fail_optimization_state(state: OptimizationState, reason: Optional[str] = None) -> OptimizationState:
    """Mark the run failed. History recorded so far is preserved."""
    _require_running(state, "fail")
    return state.model_copy(update={"status": OptimizationStatus.FAILED, "failure_reason": reason})


def get_current_iteration(state: OptimizationState) -> int:
    """Round number the next recorded round will get (1-based)."""
    return len(state.history) + 1


def get_latest_score(state: OptimizationState) -> float:
    if not state.history:
        return 0.0
    return state.history[-1].score


def get_score_history(state: OptimizationState) -> List[float]:
    return [entry.score for entry in state.history]


def is_optimization_running(state: OptimizationState) -> bool:
    return state.status == OptimizationStatus.RUNNING


class IterationController:
    """
    Applies termination criteria round by round.

    The configuration is validated on construction (ConfigurationError).
    """

    def __init__(self, config: Union[OptimizationConfig, Mapping, None] = None):
        self.config = build_optimization_config(config)

    def start(
        self,
        job_posting: JobPosting,
        initial_resume: Resume,
        job_elements: Sequence[TaggedElement] = (),
    ) -> OptimizationState:
        return initialize_optimization_state(job_posting, initial_resume, self.config, job_elements)

    def evaluate(self, current_score: float, history: Sequence[IterationHistory]) -> IterationDecision:
        return evaluate_termination_criteria(current_score, history, self.config)

    def record_round(
        self,
        state: OptimizationState,
        resume: Resume,
        score: float,
        recommendations: Optional[Recommendations] = None,
        resume_version: Optional[str] = None,
    ) -> Tuple[OptimizationState, IterationDecision]:
        """
        Record a scored revision and decide whether to keep going.

        The round is appended to history whatever the decision, so the
        stopping round's score stays auditable; the state remains running and
        the caller completes it when the decision says stop.

        Returns:
            (new state, decision)
        """
        entry = create_iteration_history_entry(
            round=get_current_iteration(state),
            score=score,
            recommendations=recommendations,
            resume_version=resume_version if resume_version is not None else resume.id,
        )
        new_state = update_optimization_state(state, resume, entry)
        decision = self.evaluate(score, new_state.history)

        logger.info(f"Round {entry.round}: score {score:.3f} - {decision.reason}")
        return new_state, decision
