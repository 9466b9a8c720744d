"""Core data model: clues, episodes, teams and outcome records."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Round(Enum):
    """Board rounds, in play order."""
    SINGLE = "single"
    DOUBLE = "double"
    FINAL = "final"

    @classmethod
    def parse(cls, value: Any) -> "Round":
        if isinstance(value, Round):
            return value
        return cls(str(value).strip().lower())


ROUND_ORDER: Tuple[Round, ...] = (Round.SINGLE, Round.DOUBLE, Round.FINAL)


class Outcome(Enum):
    """Result of resolving one clue or question."""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    SKIP = "skip"

    @classmethod
    def parse(cls, value: Any) -> "Outcome":
        if isinstance(value, Outcome):
            return value
        return cls(str(value).strip().lower())


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Clue:
    """Immutable prompt/answer fact with board metadata."""
    clue_id: str
    prompt: str
    answer: str
    category: str
    round: Round
    value: Optional[int] = None  # None for final
    alternate_answers: Tuple[str, ...] = ()
    daily_double: bool = False
    triple_stumper: bool = False
    episode_id: Optional[int] = None
    row_index: int = 0
    topic_tags: Tuple[str, ...] = ()

    @property
    def is_final(self) -> bool:
        return self.round is Round.FINAL

    @property
    def accepted_answers(self) -> List[str]:
        return [a for a in (self.answer, *self.alternate_answers) if a]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["round"] = self.round.value
        data["alternate_answers"] = list(self.alternate_answers)
        data["topic_tags"] = list(self.topic_tags)
        return data


@dataclass(frozen=True)
class Episode:
    """Metadata for one archived game (show)."""
    episode_id: int
    show_number: int = 0
    air_date: str = ""
    season: Optional[int] = None
    is_special: bool = False
    tournament_type: Optional[str] = None


@dataclass
class Team:
    """A scoring unit; solo play uses a single team."""
    name: str
    score: int = 0


@dataclass(frozen=True)
class OutcomeRecord:
    """Append-only record of one resolved clue or question."""
    clue_or_question_id: str
    outcome: Outcome
    points_earned: int
    points_possible: int
    kind: str = "clue"
    recorded_at: str = field(default_factory=utc_now)

    def __post_init__(self):
        if not 0 <= self.points_earned <= self.points_possible:
            raise ValueError(
                f"points_earned {self.points_earned} outside 0..{self.points_possible}"
            )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["outcome"] = self.outcome.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OutcomeRecord":
        return cls(
            clue_or_question_id=str(data["clue_or_question_id"]),
            outcome=Outcome.parse(data["outcome"]),
            points_earned=int(data.get("points_earned", 0)),
            points_possible=int(data.get("points_possible", 0)),
            kind=data.get("kind", "clue"),
            recorded_at=data.get("recorded_at") or utc_now(),
        )


@dataclass(frozen=True)
class SessionSummary:
    """Emitted once when a session completes."""
    session_id: str
    mode: str
    final_score: int
    team_scores: Dict[str, int]
    episode_id: Optional[int] = None
    show_number: Optional[int] = None
    correct: int = 0
    incorrect: int = 0
    skipped: int = 0
    points_earned: int = 0
    points_possible: int = 0
    type_points: Dict[str, Dict[str, int]] = field(default_factory=dict)
    completed_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
