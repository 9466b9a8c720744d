"""Typed quiz questions, raw-payload parsing and the question bank.

Questions are a tagged union: one frozen dataclass per QuestionType, each
carrying only the payload its type needs. ``validate()`` raises
MalformedQuestionData so that the Director can refuse to activate broken data.

Raw payloads (YAML/JSON exported by the spreadsheet importer) use the
original type names (``multiple_choice``, ``open_ended``, ``list`` ...) and an
in-band asterisk convention for correct options; ``parse_question`` turns
those into structured fields so the engine never sees marker text.
"""

import logging
import random
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

import yaml

from trivia.errors import MalformedQuestionData

logger = logging.getLogger(__name__)


class Difficulty(Enum):
    VERY_EASY = "very_easy"
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    VERY_HARD = "very_hard"

    @classmethod
    def parse(cls, value: Any) -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        key = str(value or "medium").strip().lower().replace("-", "_").replace(" ", "_")
        return cls(key)

    @property
    def is_hard(self) -> bool:
        return self in (Difficulty.HARD, Difficulty.VERY_HARD)


class QuestionType(Enum):
    SINGLE_SELECT = "single_select"
    FREE_TEXT = "free_text"
    FIND_N_OF_M = "find_n_of_m"
    CLASSIFY_INTO_GROUP = "classify_into_group"
    THIS_OR_THAT = "this_or_that"
    RANKING = "ranking"
    MEDIA = "media"
    HINT_PROMPT = "hint_prompt"


# Names used by the spreadsheet export
_TYPE_ALIASES: Dict[str, QuestionType] = {
    "multiple_choice": QuestionType.SINGLE_SELECT,
    "open_ended": QuestionType.FREE_TEXT,
    "list": QuestionType.FIND_N_OF_M,
    "grouping": QuestionType.CLASSIFY_INTO_GROUP,
    "prompt": QuestionType.HINT_PROMPT,
}

LABEL_KEYS = ("A", "B", "C")


@dataclass(frozen=True)
class Question:
    """Fields shared by every question type."""
    question_type: ClassVar[QuestionType]

    question_id: str
    prompt: str
    difficulty: Difficulty = Difficulty.MEDIUM
    category: str = ""

    def validate(self) -> None:
        if not self.prompt or not self.prompt.strip():
            raise MalformedQuestionData(f"Question {self.question_id} has no prompt text")

    def _fail(self, reason: str) -> None:
        raise MalformedQuestionData(
            f"{self.question_type.value} question {self.question_id}: {reason}"
        )


@dataclass(frozen=True)
class SingleSelectQuestion(Question):
    question_type: ClassVar[QuestionType] = QuestionType.SINGLE_SELECT

    options: Tuple[str, ...] = ()
    correct_option: Optional[str] = None

    def validate(self) -> None:
        super().validate()
        _validate_choices(self, self.options, self.correct_option)


@dataclass(frozen=True)
class FreeTextQuestion(Question):
    question_type: ClassVar[QuestionType] = QuestionType.FREE_TEXT

    answer: str = ""
    accepted_answers: Tuple[str, ...] = ()

    @property
    def all_answers(self) -> List[str]:
        return [a for a in (self.answer, *self.accepted_answers) if a and a.strip()]

    def validate(self) -> None:
        super().validate()
        if not self.all_answers:
            self._fail("no answer")


@dataclass(frozen=True)
class FindListQuestion(Question):
    """Find at least ``min_required`` of the ``answers`` pool."""
    question_type: ClassVar[QuestionType] = QuestionType.FIND_N_OF_M

    answers: Tuple[str, ...] = ()
    min_required: int = 1

    @property
    def is_self_score(self) -> bool:
        return is_self_score_text(self.prompt) or any(is_self_score_text(a) for a in self.answers)

    def validate(self) -> None:
        super().validate()
        if not self.answers:
            self._fail("empty answer pool")
        if self.min_required < 1:
            self._fail(f"min_required must be positive, got {self.min_required}")
        if self.min_required > len(self.answers):
            self._fail(f"min_required {self.min_required} exceeds pool of {len(self.answers)}")


@dataclass(frozen=True)
class GroupingQuestion(Question):
    """Pick the items that belong to ``group_name``."""
    question_type: ClassVar[QuestionType] = QuestionType.CLASSIFY_INTO_GROUP

    group_name: str = ""
    items: Tuple[str, ...] = ()
    correct_items: Tuple[str, ...] = ()

    def validate(self) -> None:
        super().validate()
        if len(self.items) < 2:
            self._fail("needs at least 2 items")
        if not self.correct_items:
            self._fail("no correct items")
        missing = [item for item in self.correct_items if item not in self.items]
        if missing:
            self._fail(f"correct items not in pool: {missing}")


@dataclass(frozen=True)
class ThisOrThatItem:
    text: str
    answer: str  # label key: A, B or C


@dataclass(frozen=True)
class ThisOrThatQuestion(Question):
    """Sort items one at a time into 2-3 labeled buckets."""
    question_type: ClassVar[QuestionType] = QuestionType.THIS_OR_THAT

    labels: Tuple[str, ...] = ()
    items: Tuple[ThisOrThatItem, ...] = ()

    @property
    def label_keys(self) -> Tuple[str, ...]:
        return LABEL_KEYS[:len(self.labels)]

    def validate(self) -> None:
        super().validate()
        if not 2 <= len(self.labels) <= 3:
            self._fail(f"needs 2 or 3 labels, got {len(self.labels)}")
        if not self.items:
            self._fail("no items")
        keys = self.label_keys
        for item in self.items:
            if item.answer not in keys:
                self._fail(f"item {item.text!r} answers unknown label {item.answer!r}")


@dataclass(frozen=True)
class RankingQuestion(Question):
    """Put items in order. ``items`` holds the canonical order when given."""
    question_type: ClassVar[QuestionType] = QuestionType.RANKING

    items: Tuple[str, ...] = ()
    criteria: str = ""

    @property
    def canonical_order(self) -> List[str]:
        if self.items:
            return list(self.items)
        return parse_ranking_items(self.prompt)

    def validate(self) -> None:
        super().validate()
        order = self.canonical_order
        if len(order) < 2:
            self._fail("needs at least 2 ranked items")
        if len(set(order)) != len(order):
            self._fail("ranked items must be unique")


@dataclass(frozen=True)
class MediaQuestion(Question):
    """Media-backed prompt; free-text unless authored as multiple choice."""
    question_type: ClassVar[QuestionType] = QuestionType.MEDIA

    media_type: str = ""
    media_url: str = ""
    answer: str = ""
    accepted_answers: Tuple[str, ...] = ()
    options: Tuple[str, ...] = ()
    correct_option: Optional[str] = None

    @property
    def is_multiple_choice(self) -> bool:
        return len(self.options) >= 2

    @property
    def all_answers(self) -> List[str]:
        return [a for a in (self.answer, *self.accepted_answers) if a and a.strip()]

    def validate(self) -> None:
        super().validate()
        if self.is_multiple_choice:
            _validate_choices(self, self.options, self.correct_option)
        elif not self.all_answers:
            self._fail("no answer")


@dataclass(frozen=True)
class HintPromptQuestion(Question):
    """Answer from a short hint; questions sharing a hint can be rerolled."""
    question_type: ClassVar[QuestionType] = QuestionType.HINT_PROMPT

    hint: str = ""
    answer: str = ""
    accepted_answers: Tuple[str, ...] = ()

    @property
    def all_answers(self) -> List[str]:
        return [a for a in (self.answer, *self.accepted_answers) if a and a.strip()]

    def validate(self) -> None:
        super().validate()
        if not self.hint.strip():
            self._fail("no hint text")
        if not self.all_answers:
            self._fail("no answer")


AnyQuestion = Union[
    SingleSelectQuestion,
    FreeTextQuestion,
    FindListQuestion,
    GroupingQuestion,
    ThisOrThatQuestion,
    RankingQuestion,
    MediaQuestion,
    HintPromptQuestion,
]


def _validate_choices(question: Question, options: Tuple[str, ...], correct: Optional[str]) -> None:
    if len(options) < 2:
        question._fail("needs at least 2 options")
    if not correct:
        question._fail("no correct option marked")
    if correct not in options:
        question._fail(f"correct option {correct!r} is not one of the options")


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

_SELF_SCORE = re.compile(r"self[\s_-]?scor", re.IGNORECASE)
_STAR_PREFIX = re.compile(r"^\*+\s*")
_STAR_SUFFIX = re.compile(r"\s*\*+$")


def is_self_score_text(text: str) -> bool:
    return bool(text) and bool(_SELF_SCORE.search(text))


def strip_star(option: str) -> str:
    return _STAR_SUFFIX.sub("", _STAR_PREFIX.sub("", option)).strip()


def is_starred(option: str) -> bool:
    stripped = option.strip()
    return stripped.startswith("*") or stripped.endswith("*")


def parse_starred_options(lines: List[str]) -> Tuple[Tuple[str, ...], Optional[str]]:
    """Split ``*marked*`` options into clean text plus the correct one."""
    options: List[str] = []
    correct: Optional[str] = None
    for line in lines:
        if not line or not line.strip():
            continue
        clean = strip_star(line)
        if not clean:
            continue
        options.append(clean)
        if correct is None and is_starred(line):
            correct = clean
    return tuple(options), correct


def looks_like_multiple_choice(answer_text: str) -> bool:
    """True when an answer payload holds 2+ lines and at least one is starred."""
    lines = [line for line in (answer_text or "").splitlines() if line.strip()]
    return len(lines) >= 2 and any(is_starred(line) for line in lines)


def ranking_prompt_text(prompt: str) -> str:
    """Prompt text before the colon-delimited item list."""
    before, _, _ = prompt.partition(":")
    return before.strip() or prompt


def parse_ranking_items(prompt: str) -> List[str]:
    """Items listed after the first colon, comma separated."""
    if ":" not in prompt:
        return []
    _, _, after = prompt.partition(":")
    return [item.strip() for item in after.split(",") if item.strip()]


_DIRECTION_RULES = [
    (("earliest", "oldest", "first"), ("1 = earliest", "N = latest")),
    (("latest", "newest", "most recent", "recent"), ("1 = latest", "N = earliest")),
    (
        ("highest", "largest", "biggest", "longest", "fastest", "strongest", "most", "greatest"),
        ("1 = greatest / most", "N = least / lowest"),
    ),
    (
        ("lowest", "smallest", "shortest", "slowest", "weakest", "least", "fewest"),
        ("1 = least / lowest", "N = greatest / most"),
    ),
]


def infer_ranking_direction(prompt: str) -> Tuple[str, str]:
    """Guess the (top, bottom) labels for a ranking prompt."""
    text = " " + re.sub(r"\s+", " ", re.sub(r"[^a-z0-9\s]", " ", prompt.lower())).strip() + " "
    for terms, labels in _DIRECTION_RULES:
        if any(f" {term} " in text for term in terms):
            return labels
    return ("1 = best fit for the prompt", "N = least fit for the prompt")


# ---------------------------------------------------------------------------
# Parsing raw payloads
# ---------------------------------------------------------------------------

def parse_question_type(value: Any) -> QuestionType:
    if isinstance(value, QuestionType):
        return value
    key = str(value or "").strip().lower().replace("-", "_")
    if key in _TYPE_ALIASES:
        return _TYPE_ALIASES[key]
    try:
        return QuestionType(key)
    except ValueError:
        raise MalformedQuestionData(f"Unknown question type: {value!r}")


def _category_name(raw: Any) -> str:
    if isinstance(raw, dict):
        return str(raw.get("name", ""))
    return str(raw or "")


def _str_tuple(values: Any) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = values.splitlines()
    return tuple(str(v).strip() for v in values if str(v).strip())


def parse_question(raw: Dict[str, Any], index: int = 0) -> AnyQuestion:
    """Build a typed question from a loosely typed dict and validate it.

    Raises:
        MalformedQuestionData: the row is not a mapping, has an unknown type,
            non-numeric counts, or is missing type-specific fields.
    """
    if not isinstance(raw, dict):
        raise MalformedQuestionData(f"Question {index} is not a mapping: {type(raw).__name__}")
    try:
        return _build_question(raw, index)
    except (TypeError, ValueError, AttributeError) as e:
        raise MalformedQuestionData(f"Question {index} has invalid fields: {e}") from e


def _build_question(raw: Dict[str, Any], index: int) -> AnyQuestion:
    question_type = parse_question_type(raw.get("type"))
    try:
        difficulty = Difficulty.parse(raw.get("difficulty"))
    except ValueError:
        raise MalformedQuestionData(f"Unknown difficulty: {raw.get('difficulty')!r}")

    common = {
        "question_id": str(raw.get("id") or f"q-{index}"),
        "prompt": str(raw.get("question") or raw.get("prompt_text") or ""),
        "difficulty": difficulty,
        "category": _category_name(raw.get("category")),
    }

    question: AnyQuestion
    if question_type is QuestionType.SINGLE_SELECT:
        options, starred = parse_starred_options(list(raw.get("options") or []))
        correct = str(raw.get("correctAnswer") or raw.get("correct_option") or "").strip() or starred
        question = SingleSelectQuestion(**common, options=options, correct_option=correct)

    elif question_type is QuestionType.FREE_TEXT:
        question = FreeTextQuestion(
            **common,
            answer=str(raw.get("answer") or ""),
            accepted_answers=_str_tuple(raw.get("acceptedAnswers") or raw.get("accepted_answers")),
        )

    elif question_type is QuestionType.FIND_N_OF_M:
        question = FindListQuestion(
            **common,
            answers=_str_tuple(raw.get("answers")),
            min_required=int(raw.get("minRequired") or raw.get("min_required") or 1),
        )

    elif question_type is QuestionType.CLASSIFY_INTO_GROUP:
        question = GroupingQuestion(
            **common,
            group_name=str(raw.get("groupName") or raw.get("group_name") or ""),
            items=_str_tuple(raw.get("items")),
            correct_items=_str_tuple(raw.get("correctItems") or raw.get("correct_items")),
        )

    elif question_type is QuestionType.THIS_OR_THAT:
        labels = tuple(
            str(raw[key]).strip()
            for key in ("categoryA", "categoryB", "categoryC")
            if raw.get(key)
        ) or _str_tuple(raw.get("labels"))
        items = tuple(
            ThisOrThatItem(text=re.sub(r"^[-\s]+", "", str(item.get("text", ""))), answer=str(item.get("answer", "")).upper())
            for item in (raw.get("items") or [])
            if isinstance(item, dict)
        )
        question = ThisOrThatQuestion(**common, labels=labels, items=items)

    elif question_type is QuestionType.RANKING:
        raw_items = raw.get("items") or []
        if raw_items and isinstance(raw_items[0], dict):
            ordered = sorted(raw_items, key=lambda item: item.get("rank", 0))
            items = tuple(str(item.get("text", "")).strip() for item in ordered if item.get("text"))
        else:
            items = _str_tuple(raw_items)
        question = RankingQuestion(**common, items=items, criteria=str(raw.get("criteria") or ""))

    elif question_type is QuestionType.MEDIA:
        answer_text = str(raw.get("answer") or "")
        options: Tuple[str, ...] = ()
        correct: Optional[str] = None
        if looks_like_multiple_choice(answer_text):
            options, correct = parse_starred_options(answer_text.splitlines())
            answer_text = correct or ""
        question = MediaQuestion(
            **common,
            media_type=str(raw.get("mediaType") or raw.get("media_type") or ""),
            media_url=str(raw.get("mediaUrl") or raw.get("media_url") or ""),
            answer=answer_text,
            accepted_answers=_str_tuple(raw.get("acceptedAnswers") or raw.get("accepted_answers")),
            options=options,
            correct_option=correct,
        )

    else:
        question = HintPromptQuestion(
            **common,
            hint=str(raw.get("prompt") or raw.get("hint") or ""),
            answer=str(raw.get("answer") or ""),
            accepted_answers=_str_tuple(raw.get("acceptedAnswers") or raw.get("accepted_answers")),
        )

    question.validate()
    return question


# ---------------------------------------------------------------------------
# Question bank
# ---------------------------------------------------------------------------

class QuestionBank:
    """Read-only pool of validated questions."""

    def __init__(self, questions: Optional[List[AnyQuestion]] = None):
        self._questions: List[AnyQuestion] = list(questions or [])
        self._by_id: Dict[str, AnyQuestion] = {q.question_id: q for q in self._questions}

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "QuestionBank":
        """Load ``questions:`` from a YAML file, skipping malformed entries."""
        path = Path(path)
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.error(f"Question file not found: {path}")
            raise

        questions: List[AnyQuestion] = []
        rows = data.get("questions", []) if isinstance(data, dict) else []
        for index, raw in enumerate(rows or []):
            try:
                questions.append(parse_question(raw, index))
            except MalformedQuestionData as e:
                logger.warning(f"Skipping question {index} in {path.name}: {e}")
        logger.info(f"Loaded {len(questions)} questions from {path}")
        return cls(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def all(self) -> List[AnyQuestion]:
        return list(self._questions)

    def get(self, question_id: str) -> Optional[AnyQuestion]:
        return self._by_id.get(question_id)

    def filter(
        self,
        question_type: Optional[QuestionType] = None,
        difficulty: Optional[Difficulty] = None,
    ) -> List[AnyQuestion]:
        return [
            q for q in self._questions
            if (question_type is None or q.question_type is question_type)
            and (difficulty is None or q.difficulty is difficulty)
        ]

    def pick(
        self,
        rng: random.Random,
        question_type: Optional[QuestionType] = None,
        difficulty: Optional[Difficulty] = None,
    ) -> Optional[AnyQuestion]:
        candidates = self.filter(question_type, difficulty)
        if not candidates:
            return None
        return rng.choice(candidates)

    def reroll(self, question: HintPromptQuestion, rng: random.Random) -> Optional[HintPromptQuestion]:
        """Another hint-prompt question sharing ``question``'s hint label."""
        pool = [
            q for q in self._questions
            if isinstance(q, HintPromptQuestion)
            and q.hint == question.hint
            and q.question_id != question.question_id
        ]
        if not pool:
            return None
        return rng.choice(pool)
