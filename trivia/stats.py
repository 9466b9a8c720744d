"""Durable per-user statistics.

The Director only appends (outcomes, completed sessions) and reads the
missed-or-skipped snapshot when building a learn board.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from trivia.models import Outcome, OutcomeRecord, SessionSummary
from trivia.scoring import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 30
_UNSAFE_FILENAME = re.compile(r"[^a-z0-9_.-]")


@dataclass
class UserStats:
    games_played: int = 0
    total_end_money: int = 0
    average_end_money: int = 0
    episodes_completed: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    skipped_questions: int = 0


@dataclass
class ClueProgress:
    """Bounded outcome history for one clue."""
    clue_id: str
    outcomes: List[str] = field(default_factory=list)
    last_outcome: str = ""
    updated_at: str = ""
    sequence: int = 0
    points_possible: int = 0


@dataclass
class UserRecord:
    user_id: str
    stats: UserStats = field(default_factory=UserStats)
    clue_progress: Dict[str, ClueProgress] = field(default_factory=dict)
    completed_episodes: List[int] = field(default_factory=list)
    sequence: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        return cls(
            user_id=data["user_id"],
            stats=UserStats(**data.get("stats", {})),
            clue_progress={
                clue_id: ClueProgress(**progress)
                for clue_id, progress in data.get("clue_progress", {}).items()
            },
            completed_episodes=list(data.get("completed_episodes", [])),
            sequence=int(data.get("sequence", 0)),
        )


class StatsStore(ABC):
    """Per-user outcome history and aggregates."""

    @abstractmethod
    def record_outcome(self, user_id: str, record: OutcomeRecord) -> None:
        pass

    @abstractmethod
    def record_session_completed(self, user_id: str, summary: SessionSummary) -> None:
        pass

    @abstractmethod
    def get_missed_or_skipped(self, user_id: str) -> List[OutcomeRecord]:
        """Latest record of each clue last answered incorrectly or skipped, newest first."""

    @abstractmethod
    def get_user_stats(self, user_id: str) -> UserStats:
        pass


class InMemoryStatsStore(StatsStore):
    """Stats kept in a dict of user records."""

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.history_limit = history_limit
        self._users: Dict[str, UserRecord] = {}

    @staticmethod
    def _key(user_id: str) -> str:
        return user_id.strip().lower()

    def _load(self, user_id: str) -> UserRecord:
        key = self._key(user_id)
        if key not in self._users:
            self._users[key] = UserRecord(user_id=user_id.strip())
        return self._users[key]

    def _save(self, user: UserRecord) -> None:
        self._users[self._key(user.user_id)] = user

    def _peek(self, user_id: str) -> Optional[UserRecord]:
        return self._users.get(self._key(user_id))

    def record_outcome(self, user_id: str, record: OutcomeRecord) -> None:
        if not user_id or not user_id.strip():
            return
        user = self._load(user_id)

        if record.outcome is Outcome.CORRECT:
            user.stats.correct_answers += 1
        elif record.outcome is Outcome.INCORRECT:
            user.stats.incorrect_answers += 1
        else:
            user.stats.skipped_questions += 1

        if record.kind == "clue":
            user.sequence += 1
            progress = user.clue_progress.get(record.clue_or_question_id) or ClueProgress(record.clue_or_question_id)
            progress.outcomes = (progress.outcomes + [record.outcome.value])[-self.history_limit:]
            progress.last_outcome = record.outcome.value
            progress.updated_at = record.recorded_at
            progress.sequence = user.sequence
            progress.points_possible = record.points_possible
            user.clue_progress[record.clue_or_question_id] = progress

        self._save(user)
        logger.debug(f"Recorded {record.outcome.value} for {record.clue_or_question_id} ({user_id})")

    def record_session_completed(self, user_id: str, summary: SessionSummary) -> None:
        if not user_id or not user_id.strip():
            return
        user = self._load(user_id)
        user.stats.games_played += 1
        user.stats.total_end_money += summary.final_score
        user.stats.average_end_money = round_half_up(user.stats.total_end_money / user.stats.games_played)

        if summary.show_number and summary.show_number not in user.completed_episodes:
            user.completed_episodes.append(summary.show_number)
            user.stats.episodes_completed = len(user.completed_episodes)

        self._save(user)
        logger.info(f"Session {summary.session_id} completed for {user_id}: {summary.final_score}")

    def get_missed_or_skipped(self, user_id: str) -> List[OutcomeRecord]:
        user = self._peek(user_id)
        if user is None:
            return []
        missed = [
            progress for progress in user.clue_progress.values()
            if progress.last_outcome in (Outcome.INCORRECT.value, Outcome.SKIP.value)
        ]
        missed.sort(key=lambda p: (p.updated_at, p.sequence), reverse=True)
        return [
            OutcomeRecord(
                clue_or_question_id=progress.clue_id,
                outcome=Outcome.parse(progress.last_outcome),
                points_earned=0,
                points_possible=progress.points_possible,
                recorded_at=progress.updated_at,
            )
            for progress in missed
        ]

    def get_user_stats(self, user_id: str) -> UserStats:
        user = self._peek(user_id)
        if user is None:
            return UserStats()
        return UserStats(**asdict(user.stats))


class JsonFileStatsStore(InMemoryStatsStore):
    """One JSON file per user under ``stats_dir``."""

    def __init__(self, stats_dir: Union[str, Path], history_limit: int = DEFAULT_HISTORY_LIMIT):
        super().__init__(history_limit)
        self.stats_dir = Path(stats_dir)
        self.stats_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, user_id: str) -> Path:
        # user ids are free text; keep the file inside stats_dir
        name = _UNSAFE_FILENAME.sub("_", self._key(user_id)).lstrip(".") or "_"
        return self.stats_dir / f"{name}.json"

    def _peek(self, user_id: str) -> Optional[UserRecord]:
        path = self._path(user_id)
        if not path.exists():
            return None
        with open(path, "r") as f:
            return UserRecord.from_dict(json.load(f))

    def _load(self, user_id: str) -> UserRecord:
        return self._peek(user_id) or UserRecord(user_id=user_id.strip())

    def _save(self, user: UserRecord) -> None:
        with open(self._path(user.user_id), "w") as f:
            json.dump(user.to_dict(), f, indent=2)
