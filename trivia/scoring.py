"""Scoring model: maximum points per question and per-type outcome resolution.

This is the single place where points are computed. Interaction state
(timers, strikes, locks) lives in ``trivia.plays``; plays hand their answer
state to ``resolve_outcome`` when they finalize.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from trivia.answers import is_acceptable_against_any
from trivia.errors import InvalidAnswerPayload
from trivia.questions import (
    AnyQuestion,
    Difficulty,
    FindListQuestion,
    GroupingQuestion,
    MediaQuestion,
    QuestionType,
    RankingQuestion,
    SingleSelectQuestion,
    ThisOrThatQuestion,
)

BASE_POINTS: Dict[Difficulty, int] = {
    Difficulty.VERY_EASY: 1,
    Difficulty.EASY: 2,
    Difficulty.MEDIUM: 3,
    Difficulty.HARD: 4,
    Difficulty.VERY_HARD: 5,
}

TYPE_MULTIPLIERS: Dict[QuestionType, float] = {
    QuestionType.SINGLE_SELECT: 1.0,
    QuestionType.FREE_TEXT: 1.2,
    QuestionType.FIND_N_OF_M: 1.4,
    QuestionType.CLASSIFY_INTO_GROUP: 1.5,
    QuestionType.THIS_OR_THAT: 1.3,
    QuestionType.RANKING: 1.5,
    QuestionType.MEDIA: 1.4,
    QuestionType.HINT_PROMPT: 1.2,
}


class ListScoring(Enum):
    TARGET = "target"
    AS_MANY = "as_many"


class GroupingMode(Enum):
    ELIMINATION = "elimination"
    CONTINUOUS = "continuous"


class ThisOrThatMode(Enum):
    STANDARD = "standard"
    ELIMINATION = "elimination"


class RankingMode(Enum):
    ONE_SHOT = "one_shot"
    ANCHOR_ADJUST = "anchor_adjust"


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5 + 1e-9))


def possible_points(question: AnyQuestion) -> int:
    """Maximum points for a question: difficulty base scaled by type, at least 1."""
    base = BASE_POINTS.get(question.difficulty, 3)
    multiplier = TYPE_MULTIPLIERS.get(question.question_type, 1.0)
    return max(1, round_half_up(base * multiplier))


def ratio_points(possible: int, numerator: int, denominator: int) -> int:
    """``round(possible * numerator / denominator)`` clamped to 0..possible."""
    if denominator <= 0:
        return 0
    ratio = min(1.0, max(0.0, numerator / denominator))
    return round_half_up(possible * ratio)


@dataclass(frozen=True)
class ScoreResult:
    points_earned: int
    points_possible: int
    correct: bool


# ---------------------------------------------------------------------------
# Answer states handed over by plays
# ---------------------------------------------------------------------------

@dataclass
class ChoiceState:
    chosen: Optional[str] = None


@dataclass
class TextState:
    submitted: Optional[str] = None
    revealed_first: bool = False


@dataclass
class ListState:
    found: List[str] = field(default_factory=list)
    scoring: ListScoring = ListScoring.TARGET


@dataclass
class GroupingState:
    correct_picked: int = 0
    wrong_picked: int = 0
    correct_available: int = 0


@dataclass
class ThisOrThatState:
    correct_count: int = 0
    sampled_count: int = 0


@dataclass
class RankingState:
    mode: RankingMode = RankingMode.ONE_SHOT
    submitted: Optional[List[str]] = None
    attempts: int = 0
    all_locked: bool = False


# ---------------------------------------------------------------------------
# Per-type resolvers
# ---------------------------------------------------------------------------

def score_choice(possible: int, correct_option: Optional[str], state: ChoiceState) -> ScoreResult:
    correct = state.chosen is not None and state.chosen == correct_option
    return ScoreResult(possible if correct else 0, possible, correct)


def score_text(possible: int, answers: List[str], state: TextState) -> ScoreResult:
    if state.revealed_first or state.submitted is None:
        return ScoreResult(0, possible, False)
    correct = is_acceptable_against_any(state.submitted, answers)
    return ScoreResult(possible if correct else 0, possible, correct)


def score_list(possible: int, min_required: int, self_score: bool, state: ListState) -> ScoreResult:
    found = len(state.found)
    correct = found >= min_required
    if self_score:
        return ScoreResult(0, possible, correct)
    if state.scoring is ListScoring.AS_MANY:
        earned = min(possible, found)
    else:
        earned = ratio_points(possible, found, max(1, min_required))
    return ScoreResult(earned, possible, correct)


def score_grouping(possible: int, state: GroupingState) -> ScoreResult:
    earned = ratio_points(possible, state.correct_picked, state.correct_available)
    correct = state.wrong_picked == 0 and state.correct_picked == state.correct_available
    return ScoreResult(earned, possible, correct)


def score_this_or_that(possible: int, state: ThisOrThatState) -> ScoreResult:
    earned = ratio_points(possible, state.correct_count, state.sampled_count)
    correct = state.sampled_count > 0 and state.correct_count >= math.ceil(state.sampled_count / 2)
    return ScoreResult(earned, possible, correct)


def count_exact_positions(canonical: List[str], submitted: List[str]) -> int:
    """Per-index exact matches between two orders."""
    return sum(1 for expected, actual in zip(canonical, submitted) if expected == actual)


def score_ranking(possible: int, canonical: List[str], state: RankingState) -> ScoreResult:
    if state.mode is RankingMode.ANCHOR_ADJUST:
        if not state.all_locked:
            return ScoreResult(0, possible, False)
        earned = max(0, possible - (state.attempts - 1))
        return ScoreResult(earned, possible, True)

    if not state.submitted:
        return ScoreResult(0, possible, False)
    exact = count_exact_positions(canonical, state.submitted)
    earned = ratio_points(possible, exact, len(canonical))
    return ScoreResult(earned, possible, exact == len(canonical))


def _expect(state: object, expected: type, question: AnyQuestion):
    if not isinstance(state, expected):
        raise InvalidAnswerPayload(
            f"{question.question_type.value} question expects {expected.__name__}, "
            f"got {type(state).__name__}"
        )
    return state


def _resolve_single_select(question: SingleSelectQuestion, state) -> ScoreResult:
    state = _expect(state, ChoiceState, question)
    return score_choice(possible_points(question), question.correct_option, state)


def _resolve_free_text(question, state) -> ScoreResult:
    state = _expect(state, TextState, question)
    return score_text(possible_points(question), question.all_answers, state)


def _resolve_list(question: FindListQuestion, state) -> ScoreResult:
    state = _expect(state, ListState, question)
    return score_list(possible_points(question), question.min_required, question.is_self_score, state)


def _resolve_grouping(question: GroupingQuestion, state) -> ScoreResult:
    state = _expect(state, GroupingState, question)
    return score_grouping(possible_points(question), state)


def _resolve_this_or_that(question: ThisOrThatQuestion, state) -> ScoreResult:
    state = _expect(state, ThisOrThatState, question)
    return score_this_or_that(possible_points(question), state)


def _resolve_ranking(question: RankingQuestion, state) -> ScoreResult:
    state = _expect(state, RankingState, question)
    return score_ranking(possible_points(question), question.canonical_order, state)


def _resolve_media(question: MediaQuestion, state) -> ScoreResult:
    if question.is_multiple_choice:
        state = _expect(state, ChoiceState, question)
        return score_choice(possible_points(question), question.correct_option, state)
    return _resolve_free_text(question, state)


_RESOLVERS: Dict[QuestionType, Callable[..., ScoreResult]] = {
    QuestionType.SINGLE_SELECT: _resolve_single_select,
    QuestionType.FREE_TEXT: _resolve_free_text,
    QuestionType.FIND_N_OF_M: _resolve_list,
    QuestionType.CLASSIFY_INTO_GROUP: _resolve_grouping,
    QuestionType.THIS_OR_THAT: _resolve_this_or_that,
    QuestionType.RANKING: _resolve_ranking,
    QuestionType.MEDIA: _resolve_media,
    QuestionType.HINT_PROMPT: _resolve_free_text,
}


def resolve_outcome(question: AnyQuestion, answer_state: object) -> ScoreResult:
    """Translate a play's answer state into points for ``question``."""
    resolver = _RESOLVERS[question.question_type]
    return resolver(question, answer_state)
