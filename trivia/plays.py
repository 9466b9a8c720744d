"""Per-question-type interaction state.

A play wraps one immutable question with the session-local state needed to
answer it: shuffled options, sampled grids, timers, strikes and locked
positions. Every play resolves at most once; actions after finalization come
back flagged as duplicates and never change the stored result.
"""

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

from trivia.answers import match_canonical, normalize_answer
from trivia.config import GameSettings
from trivia.errors import InvalidAnswerPayload, InvalidTransition
from trivia.questions import (
    AnyQuestion,
    FindListQuestion,
    FreeTextQuestion,
    GroupingQuestion,
    HintPromptQuestion,
    MediaQuestion,
    QuestionType,
    RankingQuestion,
    SingleSelectQuestion,
    ThisOrThatQuestion,
)
from trivia.scoring import (
    ChoiceState,
    GroupingMode,
    GroupingState,
    ListScoring,
    ListState,
    RankingMode,
    RankingState,
    ScoreResult,
    TextState,
    ThisOrThatMode,
    ThisOrThatState,
    possible_points,
    resolve_outcome,
)

logger = logging.getLogger(__name__)


class AttemptMode(Enum):
    TIMED = "timed"
    STRIKES = "strikes"
    UNLIMITED = "unlimited"


@dataclass
class PlayUpdate:
    """What a single play action did."""
    finalized: bool
    duplicate: bool = False
    detail: Dict[str, Any] = field(default_factory=dict)
    result: Optional[ScoreResult] = None


class QuestionPlay:
    """Base class: single-resolution lock, reveal, skip and snapshots."""

    def __init__(self, question: AnyQuestion, rng: random.Random, settings: GameSettings):
        question.validate()
        self.question = question
        self.rng = rng
        self.settings = settings
        self.points_possible = possible_points(question)
        self.result: Optional[ScoreResult] = None
        self.skipped = False
        self.answer_shown = False

    @property
    def finalized(self) -> bool:
        return self.result is not None

    # -- public actions ----------------------------------------------------

    def submit(self, payload: Any) -> PlayUpdate:
        if self.finalized:
            return self._duplicate()
        detail = self._submit(payload)
        return self._update(detail)

    def reveal(self) -> PlayUpdate:
        """Show the answer. Unanswered plays finalize with zero credit."""
        if self.finalized:
            self.answer_shown = True
            return PlayUpdate(finalized=True, duplicate=True, result=self.result)
        self.answer_shown = True
        self._on_reveal()
        self._finalize()
        return self._update({"revealed": True})

    def finish(self) -> PlayUpdate:
        """Manual finalize with whatever has accrued."""
        if self.finalized:
            return self._duplicate()
        self._finalize()
        return self._update({"finished": True})

    def skip(self) -> PlayUpdate:
        if self.finalized:
            return self._duplicate()
        self.skipped = True
        self.result = ScoreResult(0, self.points_possible, False)
        return self._update({"skipped": True})

    def tick(self, seconds: float) -> PlayUpdate:
        """Advance timers. Only timed plays react."""
        if self.finalized:
            return self._duplicate()
        return self._update({})

    def snapshot(self) -> Dict[str, Any]:
        state = {
            "question_id": self.question.question_id,
            "type": self.question.question_type.value,
            "prompt": self.question.prompt,
            "category": self.question.category,
            "difficulty": self.question.difficulty.value,
            "points_possible": self.points_possible,
            "finalized": self.finalized,
            "skipped": self.skipped,
        }
        if self.result is not None:
            state["result"] = {
                "points_earned": self.result.points_earned,
                "correct": self.result.correct,
            }
        state.update(self._presentation())
        if self.finalized or self.answer_shown:
            state["answer"] = self._answer_text()
        return state

    # -- hooks -------------------------------------------------------------

    def _submit(self, payload: Any) -> Dict[str, Any]:
        raise NotImplementedError

    def answer_state(self) -> object:
        raise NotImplementedError

    def _on_reveal(self) -> None:
        pass

    def _presentation(self) -> Dict[str, Any]:
        return {}

    def _answer_text(self) -> Any:
        return None

    # -- helpers -----------------------------------------------------------

    def _finalize(self) -> ScoreResult:
        self.result = resolve_outcome(self.question, self.answer_state())
        logger.debug(
            f"Play {self.question.question_id} finalized: "
            f"{self.result.points_earned}/{self.result.points_possible}"
        )
        return self.result

    def _duplicate(self) -> PlayUpdate:
        return PlayUpdate(finalized=True, duplicate=True, result=self.result)

    def _update(self, detail: Dict[str, Any]) -> PlayUpdate:
        return PlayUpdate(finalized=self.finalized, detail=detail, result=self.result)


class ChoicePlay(QuestionPlay):
    """Single-select, and media questions authored as multiple choice."""

    def __init__(self, question: Union[SingleSelectQuestion, MediaQuestion], rng, settings):
        super().__init__(question, rng, settings)
        self.options: List[str] = list(question.options)
        self.rng.shuffle(self.options)
        self.state = ChoiceState()

    def _submit(self, payload: Any) -> Dict[str, Any]:
        if isinstance(payload, int) and not isinstance(payload, bool):
            if not 0 <= payload < len(self.options):
                raise InvalidAnswerPayload(f"Option index {payload} out of range")
            chosen = self.options[payload]
        else:
            chosen = str(payload).strip()
            if chosen not in self.options:
                raise InvalidAnswerPayload(f"{chosen!r} is not one of the options")
        self.state.chosen = chosen
        self._finalize()
        return {"chosen": chosen}

    def answer_state(self) -> ChoiceState:
        return self.state

    def _presentation(self) -> Dict[str, Any]:
        return {"options": list(self.options), "chosen": self.state.chosen}

    def _answer_text(self) -> Any:
        return self.question.correct_option


class TextPlay(QuestionPlay):
    """Free-text, free-text media and hint-prompt questions."""

    def __init__(self, question: Union[FreeTextQuestion, MediaQuestion, HintPromptQuestion], rng, settings):
        super().__init__(question, rng, settings)
        self.state = TextState()

    def _submit(self, payload: Any) -> Dict[str, Any]:
        text = str(payload or "").strip()
        if not text:
            raise InvalidAnswerPayload("Answer text is empty")
        self.state.submitted = text
        self._finalize()
        return {"submitted": text}

    def _on_reveal(self) -> None:
        self.state.revealed_first = True

    def answer_state(self) -> TextState:
        return self.state

    def _presentation(self) -> Dict[str, Any]:
        state: Dict[str, Any] = {"submitted": self.state.submitted}
        if isinstance(self.question, HintPromptQuestion):
            state["hint"] = self.question.hint
        if isinstance(self.question, MediaQuestion):
            state["media_type"] = self.question.media_type
            state["media_url"] = self.question.media_url
        return state

    def _answer_text(self) -> Any:
        return self.question.answer


class ListPlay(QuestionPlay):
    """Find-n-of-m: type items until done, out of time, or out of strikes."""

    def __init__(
        self,
        question: FindListQuestion,
        rng,
        settings,
        scoring: ListScoring = ListScoring.TARGET,
        attempt_mode: AttemptMode = AttemptMode.UNLIMITED,
    ):
        super().__init__(question, rng, settings)
        self.state = ListState(scoring=scoring)
        self.attempt_mode = attempt_mode
        self.attempts: List[Dict[str, Any]] = []
        self.strikes = 0
        self.remaining_seconds: Optional[float] = None
        if attempt_mode is AttemptMode.TIMED:
            self.remaining_seconds = float(
                settings.list_timer_hard_seconds if question.difficulty.is_hard
                else settings.list_timer_seconds
            )

    def _submit(self, payload: Any) -> Dict[str, Any]:
        text = str(payload or "").strip()
        if not text:
            raise InvalidAnswerPayload("Attempt text is empty")

        match = self._match_item(text)
        is_new = match is not None and match not in self.state.found
        if is_new:
            self.state.found.append(match)
        elif match is None:
            self.strikes += 1
        self.attempts.append({"text": text, "correct": is_new, "match": match})

        if len(self.state.found) == len(self.question.answers):
            self._finalize()
        elif self.attempt_mode is AttemptMode.STRIKES and self.strikes >= self.settings.list_strikes:
            logger.debug(f"List play {self.question.question_id} out of strikes")
            self._finalize()
        return {"text": text, "correct": is_new, "match": match, "duplicate_item": match is not None and not is_new}

    def _match_item(self, text: str) -> Optional[str]:
        """Exact hits win, then fuzzy hits among items not yet found."""
        normalized = normalize_answer(text)
        if normalized:
            for answer in self.question.answers:
                if normalize_answer(answer) == normalized:
                    return answer
        remaining = [a for a in self.question.answers if a not in self.state.found]
        match = match_canonical(text, remaining)
        if match is None:
            match = match_canonical(text, self.state.found)
        return match

    def tick(self, seconds: float) -> PlayUpdate:
        if self.finalized:
            return self._duplicate()
        if self.remaining_seconds is None:
            return self._update({})
        self.remaining_seconds = max(0.0, self.remaining_seconds - seconds)
        if self.remaining_seconds <= 0:
            logger.debug(f"List play {self.question.question_id} timed out")
            self._finalize()
            return self._update({"timed_out": True})
        return self._update({"remaining_seconds": self.remaining_seconds})

    def answer_state(self) -> ListState:
        return self.state

    def _presentation(self) -> Dict[str, Any]:
        return {
            "found": list(self.state.found),
            "found_count": len(self.state.found),
            "pool_size": len(self.question.answers),
            "min_required": self.question.min_required,
            "self_score": self.question.is_self_score,
            "scoring": self.state.scoring.value,
            "attempt_mode": self.attempt_mode.value,
            "strikes": self.strikes,
            "remaining_seconds": self.remaining_seconds,
            "attempts": list(self.attempts),
        }

    def _answer_text(self) -> Any:
        return list(self.question.answers)


class GroupingPlay(QuestionPlay):
    """Classify-into-group on a sampled, shuffled grid."""

    def __init__(self, question: GroupingQuestion, rng, settings, mode: GroupingMode = GroupingMode.ELIMINATION):
        super().__init__(question, rng, settings)
        self.mode = mode
        self.correct_set: Set[str] = set(question.correct_items)
        self.grid = self._sample_grid()
        self.picked: List[str] = []
        available = sum(1 for item in self.grid if item in self.correct_set)
        self.state = GroupingState(correct_available=available)

    def _sample_grid(self) -> List[str]:
        correct_pool = [item for item in self.question.items if item in self.correct_set]
        wrong_pool = [item for item in self.question.items if item not in self.correct_set]
        grid_size = self.settings.grouping_grid_size

        need_correct = min(self.settings.grouping_max_correct, len(correct_pool))
        chosen_correct = self.rng.sample(correct_pool, need_correct)
        chosen_wrong = self.rng.sample(wrong_pool, min(len(wrong_pool), max(0, grid_size - need_correct)))

        grid = chosen_correct + chosen_wrong
        self.rng.shuffle(grid)
        return grid[:grid_size]

    def _submit(self, payload: Any) -> Dict[str, Any]:
        item = str(payload).strip()
        if item not in self.grid:
            raise InvalidAnswerPayload(f"{item!r} is not on the grid")
        if item in self.picked:
            return {"item": item, "already_picked": True}

        self.picked.append(item)
        is_correct = item in self.correct_set
        if is_correct:
            self.state.correct_picked += 1
        else:
            self.state.wrong_picked += 1

        if self.mode is GroupingMode.ELIMINATION:
            if not is_correct or self.state.correct_picked >= self.state.correct_available:
                self._finalize()
        elif len(self.picked) >= max(1, self.state.correct_available):
            self._finalize()
        return {"item": item, "correct": is_correct}

    def answer_state(self) -> GroupingState:
        return self.state

    def _presentation(self) -> Dict[str, Any]:
        return {
            "group_name": self.question.group_name,
            "mode": self.mode.value,
            "grid": list(self.grid),
            "picked": list(self.picked),
            "correct_available": self.state.correct_available,
        }

    def _answer_text(self) -> Any:
        return [item for item in self.grid if item in self.correct_set]


class ThisOrThatPlay(QuestionPlay):
    """Items shown one at a time against 2-3 labeled buckets."""

    def __init__(self, question: ThisOrThatQuestion, rng, settings, mode: ThisOrThatMode = ThisOrThatMode.STANDARD):
        super().__init__(question, rng, settings)
        self.mode = mode
        count = min(settings.this_or_that_items, len(question.items))
        self.items = rng.sample(list(question.items), count)
        self.index = 0
        self.choices: List[Dict[str, Any]] = []
        self.state = ThisOrThatState(sampled_count=len(self.items))

    def _label_key(self, payload: Any) -> str:
        text = str(payload).strip()
        keys = self.question.label_keys
        if text.upper() in keys:
            return text.upper()
        for key, label in zip(keys, self.question.labels):
            if text.lower() == label.lower():
                return key
        raise InvalidAnswerPayload(f"{text!r} is not one of the labels {list(self.question.labels)}")

    def _submit(self, payload: Any) -> Dict[str, Any]:
        key = self._label_key(payload)
        item = self.items[self.index]
        is_correct = key == item.answer
        if is_correct:
            self.state.correct_count += 1
        self.choices.append({"text": item.text, "chosen": key, "answer": item.answer, "correct": is_correct})
        self.index += 1

        if self.index >= len(self.items):
            self._finalize()
        elif self.mode is ThisOrThatMode.ELIMINATION and not is_correct:
            self._finalize()
        return {"item": item.text, "chosen": key, "correct": is_correct}

    def answer_state(self) -> ThisOrThatState:
        return self.state

    def _presentation(self) -> Dict[str, Any]:
        current = self.items[self.index].text if self.index < len(self.items) and not self.finalized else None
        return {
            "labels": dict(zip(self.question.label_keys, self.question.labels)),
            "mode": self.mode.value,
            "position": self.index,
            "total": len(self.items),
            "current_item": current,
            "correct_count": self.state.correct_count,
            "choices": list(self.choices),
        }

    def _answer_text(self) -> Any:
        return {item.text: item.answer for item in self.items}


class RankingPlay(QuestionPlay):
    """Order items; anchor/adjust locks correct positions between attempts."""

    def __init__(self, question: RankingQuestion, rng, settings, mode: RankingMode = RankingMode.ONE_SHOT):
        super().__init__(question, rng, settings)
        self.canonical = question.canonical_order
        self.order = list(self.canonical)
        self.rng.shuffle(self.order)
        self.locked: Set[int] = set()
        self.state = RankingState(mode=mode)

    def _submit(self, payload: Any) -> Dict[str, Any]:
        order = [str(item).strip() for item in (payload or [])]
        if sorted(order) != sorted(self.canonical):
            raise InvalidAnswerPayload("Submitted order must be a permutation of the ranked items")
        for index in self.locked:
            if order[index] != self.canonical[index]:
                raise InvalidAnswerPayload(f"{self.canonical[index]!r} is locked at position {index + 1}")

        self.order = order
        self.state.attempts += 1
        self.state.submitted = order
        newly_locked = {i for i, item in enumerate(order) if item == self.canonical[i]}
        self.locked |= newly_locked

        if self.state.mode is RankingMode.ONE_SHOT:
            self._finalize()
        elif len(self.locked) == len(self.canonical):
            self.state.all_locked = True
            self._finalize()
        return {"attempts": self.state.attempts, "locked": sorted(self.locked)}

    def answer_state(self) -> RankingState:
        return self.state

    def _presentation(self) -> Dict[str, Any]:
        return {
            "mode": self.state.mode.value,
            "order": list(self.order),
            "locked": sorted(self.locked),
            "attempts": self.state.attempts,
        }

    def _answer_text(self) -> Any:
        return list(self.canonical)


def _enum(enum_cls, value, default):
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        raise InvalidTransition(f"Unknown {enum_cls.__name__} {value!r}")


def create_play(
    question: AnyQuestion,
    rng: random.Random,
    settings: Optional[GameSettings] = None,
    list_scoring: Union[str, ListScoring, None] = None,
    attempt_mode: Union[str, AttemptMode, None] = None,
    grouping_mode: Union[str, GroupingMode, None] = None,
    this_or_that_mode: Union[str, ThisOrThatMode, None] = None,
    ranking_mode: Union[str, RankingMode, None] = None,
) -> QuestionPlay:
    """Build the play for ``question`` with sub-modes fixed before play starts.

    Raises:
        MalformedQuestionData: the question fails validation.
        InvalidTransition: an unknown sub-mode name.
    """
    settings = settings or GameSettings()
    question_type = question.question_type

    if question_type is QuestionType.SINGLE_SELECT:
        return ChoicePlay(question, rng, settings)
    if question_type is QuestionType.MEDIA:
        if question.is_multiple_choice:
            return ChoicePlay(question, rng, settings)
        return TextPlay(question, rng, settings)
    if question_type in (QuestionType.FREE_TEXT, QuestionType.HINT_PROMPT):
        return TextPlay(question, rng, settings)
    if question_type is QuestionType.FIND_N_OF_M:
        return ListPlay(
            question, rng, settings,
            scoring=_enum(ListScoring, list_scoring or settings.list_scoring, ListScoring.TARGET),
            attempt_mode=_enum(AttemptMode, attempt_mode or settings.list_attempt_mode, AttemptMode.UNLIMITED),
        )
    if question_type is QuestionType.CLASSIFY_INTO_GROUP:
        return GroupingPlay(
            question, rng, settings,
            mode=_enum(GroupingMode, grouping_mode or settings.grouping_mode, GroupingMode.ELIMINATION),
        )
    if question_type is QuestionType.THIS_OR_THAT:
        return ThisOrThatPlay(
            question, rng, settings,
            mode=_enum(ThisOrThatMode, this_or_that_mode or settings.this_or_that_mode, ThisOrThatMode.STANDARD),
        )
    if question_type is QuestionType.RANKING:
        return RankingPlay(
            question, rng, settings,
            mode=_enum(RankingMode, ranking_mode or settings.ranking_mode, RankingMode.ONE_SHOT),
        )
    raise InvalidTransition(f"Unsupported question type: {question_type}")
