"""Session/Board Director: the state machine that owns one trivia session.

Board play::

    IDLE -> BOARD_BUILDING -> ROUND_ACTIVE -> [WAGER_CAPTURE] -> CLUE_ACTIVE
         -> ANSWER_REVEALED -> ROUND_ACTIVE ... -> SESSION_COMPLETE

Practice play::

    IDLE -> PRACTICE -> QUESTION_ACTIVE -> PRACTICE ... -> SESSION_COMPLETE

Every public operation returns an ``ActionResult``. Engine errors raised
underneath are turned into ``Rejection`` values here and the session state is
left exactly as it was.
"""

import logging
import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Union

from shared import controllog as cl
from trivia.answers import is_acceptable_against_any
from trivia.board import Board, BoardBuilder, Cell, ClueFilter, GameLayout
from trivia.config import GameSettings
from trivia.errors import (
    EmptyConstructionResult,
    InvalidAnswerPayload,
    InvalidTransition,
    Rejection,
    TriviaError,
)
from trivia.models import Outcome, OutcomeRecord, Round, SessionSummary, Team
from trivia.plays import PlayUpdate, QuestionPlay, create_play
from trivia.questions import AnyQuestion, Difficulty, HintPromptQuestion, QuestionBank, parse_question_type
from trivia.repository import ClueRepository
from trivia.stats import StatsStore

logger = logging.getLogger(__name__)

SOLO_TEAM = "Player"

_STRATEGY_PARAMS = {
    "replay": {"episode_id", "season_range", "exclude_specials"},
    "random": {"category_count", "include_double", "include_final", "triple_stumpers_only"},
    "custom": {"clue_filter", "category_count"},
    "learn": {"category_count"},
}

_PLAY_MODES = {"list_scoring", "attempt_mode", "grouping_mode", "this_or_that_mode", "ranking_mode"}


class DirectorState(Enum):
    IDLE = "idle"
    BOARD_BUILDING = "board_building"
    ROUND_ACTIVE = "round_active"
    WAGER_CAPTURE = "wager_capture"
    CLUE_ACTIVE = "clue_active"
    ANSWER_REVEALED = "answer_revealed"
    PRACTICE = "practice"
    QUESTION_ACTIVE = "question_active"
    SESSION_COMPLETE = "session_complete"


@dataclass
class ActionResult:
    """Outcome of one Director operation."""
    ok: bool
    state: Dict[str, Any]
    rejection: Optional[Rejection] = None
    duplicate: bool = False
    detail: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ActiveClue:
    category_index: int
    value: Optional[int]
    cell: Cell
    stake: Optional[int] = None
    answer_revealed: bool = False
    responder: Optional[int] = None


def _positive_int(amount: Any, what: str) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidTransition(f"{what} must be a positive integer, got {amount!r}")
    return amount


class SessionDirector:
    """Drives one board or practice session for a user and their teams."""

    def __init__(
        self,
        repository: ClueRepository,
        stats_store: Optional[StatsStore] = None,
        user_id: Optional[str] = None,
        settings: Optional[GameSettings] = None,
        question_bank: Optional[QuestionBank] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        self.repository = repository
        self.stats_store = stats_store
        self.user_id = user_id
        self.settings = settings or GameSettings()
        self.question_bank = question_bank
        self.rng = rng or random.Random(seed)
        self.builder = BoardBuilder(repository, self.rng, self.settings)

        self.state = DirectorState.IDLE
        self._reset_session(mode=None, teams=[Team(SOLO_TEAM)])

        # Controllog state
        self._controllog_initialized = False
        self._run_id: Optional[str] = None

    def _reset_session(self, mode: Optional[str], teams: List[Team]) -> None:
        self.session_id = str(uuid.uuid4())[:8]
        self.mode = mode
        self.layout: Optional[GameLayout] = None
        self.board: Optional[Board] = None
        self.current_round: Optional[Round] = None
        self.teams = teams
        self.active_team_index = 0
        self.active_clue: Optional[ActiveClue] = None
        self.play: Optional[QuestionPlay] = None
        self._play_recorded = False
        self.revealed_ids: Set[str] = set()
        self.records: List[OutcomeRecord] = []
        self.type_points: Dict[str, Dict[str, int]] = {}
        self.summary: Optional[SessionSummary] = None
        self._last_resolved: Optional[str] = None

    # ------------------------------------------------------------------
    # Controllog
    # ------------------------------------------------------------------

    def init_controllog(self, log_path: Path, run_id: str) -> None:
        """Initialize controllog SDK for session analytics."""
        try:
            cl.init(project_id="trivia", log_dir=log_path)
            self._controllog_initialized = True
            self._run_id = run_id
            logger.info(f"Controllog initialized for session {self.session_id}")
        except Exception as e:
            logger.warning(f"Failed to initialize controllog: {e}")
            self._controllog_initialized = False

    @property
    def _task_id(self) -> str:
        return f"session:{self.session_id}"

    def _emit_state_move(self, from_state: DirectorState, to_state: DirectorState, payload: Optional[Dict] = None) -> None:
        if not self._controllog_initialized:
            return
        try:
            cl.state_move(
                task_id=self._task_id,
                from_=from_state.value,
                to=to_state.value,
                project_id="trivia",
                agent_id="agent:director",
                run_id=self._run_id,
                payload=payload or {"session_id": self.session_id},
            )
        except Exception as e:
            logger.debug(f"Failed to emit state move: {e}")

    def _emit_outcome(self, record: OutcomeRecord, score_delta: int, team: Team) -> None:
        if not self._controllog_initialized:
            return
        try:
            cl.clue_outcome(
                task_id=self._task_id,
                project_id="trivia",
                clue_or_question_id=record.clue_or_question_id,
                outcome=record.outcome.value,
                points_earned=record.points_earned,
                points_possible=record.points_possible,
                score_delta=score_delta,
                kind=record.kind,
                team=team.name,
                run_id=self._run_id,
            )
        except Exception as e:
            logger.debug(f"Failed to emit clue outcome: {e}")

    def _emit_session_complete(self, summary: SessionSummary) -> None:
        if not self._controllog_initialized:
            return
        try:
            cl.session_complete(
                task_id=self._task_id,
                project_id="trivia",
                session_id=summary.session_id,
                mode=summary.mode,
                final_score=summary.final_score,
                team_scores=summary.team_scores,
                correct=summary.correct,
                incorrect=summary.incorrect,
                skipped=summary.skipped,
                episode_id=summary.episode_id,
                run_id=self._run_id,
                payload={"type_points": summary.type_points},
            )
        except Exception as e:
            logger.debug(f"Failed to emit session complete: {e}")

    def _transition(self, to_state: DirectorState, payload: Optional[Dict] = None) -> None:
        from_state = self.state
        self.state = to_state
        if from_state is not to_state:
            logger.debug(f"Session {self.session_id}: {from_state.value} -> {to_state.value}")
            self._emit_state_move(from_state, to_state, payload)

    # ------------------------------------------------------------------
    # Result helpers
    # ------------------------------------------------------------------

    def _ok(self, detail: Optional[Dict[str, Any]] = None, duplicate: bool = False) -> ActionResult:
        return ActionResult(ok=True, state=self.snapshot(), duplicate=duplicate, detail=detail or {})

    def _guard(self, action: str, fn: Callable[..., ActionResult], *args, **kwargs) -> ActionResult:
        try:
            return fn(*args, **kwargs)
        except TriviaError as e:
            logger.warning(f"Rejected {action} in state {self.state.value}: {e}")
            return ActionResult(ok=False, state=self.snapshot(), rejection=Rejection.from_error(e))

    def _require(self, *states: DirectorState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise InvalidTransition(f"Not allowed in state {self.state.value} (needs {allowed})")

    # ------------------------------------------------------------------
    # Board construction
    # ------------------------------------------------------------------

    def build_board(self, strategy: str, teams: Optional[List[str]] = None, **params) -> ActionResult:
        """Build a board with ``replay``, ``random``, ``custom`` or ``learn``."""
        return self._guard("build_board", self._build_board, strategy, teams, **params)

    def _build_board(self, strategy: str, teams: Optional[List[str]], **params) -> ActionResult:
        self._require(DirectorState.IDLE, DirectorState.SESSION_COMPLETE)
        strategy = str(strategy).strip().lower()
        if strategy not in _STRATEGY_PARAMS:
            raise InvalidTransition(f"Unknown board strategy: {strategy!r}")
        unknown = set(params) - _STRATEGY_PARAMS[strategy]
        if unknown:
            raise InvalidTransition(f"Unsupported {strategy} options: {sorted(unknown)}")
        team_list = self._make_teams(teams)
        if strategy == "learn" and (self.stats_store is None or not self.user_id):
            raise InvalidTransition("Learn mode needs a user and a stats store")

        prior = self.state
        self._transition(DirectorState.BOARD_BUILDING, {"strategy": strategy})
        try:
            layout = self._construct(strategy, params)
        except TriviaError:
            self._transition(prior)
            raise

        self._reset_session(mode=strategy, teams=team_list)
        self.layout = layout
        self.current_round = layout.available_rounds[0]
        self.board = layout.build_board(self.current_round)
        self._transition(DirectorState.ROUND_ACTIVE, {
            "session_id": self.session_id,
            "mode": strategy,
            "rounds": [r.value for r in layout.available_rounds],
        })
        logger.info(
            f"Session {self.session_id} started: {strategy} board, "
            f"{len(self.board.cells)} cells in {self.current_round.value} round, "
            f"{len(self.teams)} team(s)"
        )
        return self._ok({"strategy": strategy})

    def _construct(self, strategy: str, params: Dict[str, Any]) -> GameLayout:
        if strategy == "replay":
            return self.builder.replay(**params)
        if strategy == "random":
            return self.builder.random(**params)
        if strategy == "custom":
            clue_filter = params.get("clue_filter")
            if clue_filter is None:
                clue_filter = ClueFilter()
            elif isinstance(clue_filter, dict):
                clue_filter = ClueFilter.from_dict(clue_filter)
            return self.builder.custom(clue_filter, params.get("category_count"))
        missed = self.stats_store.get_missed_or_skipped(self.user_id)
        return self.builder.learn([record.clue_or_question_id for record in missed], params.get("category_count"))

    @staticmethod
    def _make_teams(names: Optional[List[str]]) -> List[Team]:
        if not names:
            return [Team(SOLO_TEAM)]
        cleaned = [str(name).strip() for name in names]
        if any(not name for name in cleaned):
            raise InvalidTransition("Team names must not be empty")
        if len(set(cleaned)) != len(cleaned):
            raise InvalidTransition("Team names must be unique")
        return [Team(name) for name in cleaned]

    # ------------------------------------------------------------------
    # Clue flow
    # ------------------------------------------------------------------

    def select_cell(self, category_index: int, value: Optional[int], wager: Optional[int] = None) -> ActionResult:
        return self._guard("select_cell", self._select_cell, category_index, value, wager)

    def _select_cell(self, category_index: int, value: Optional[int], wager: Optional[int]) -> ActionResult:
        self._require(DirectorState.ROUND_ACTIVE)
        cell = self.board.get(category_index, value)
        if cell is None:
            raise InvalidTransition(f"No cell at category {category_index}, value {value}")
        if cell.revealed:
            raise InvalidTransition(f"Cell {category_index}/{value} is already revealed")

        is_final = self.board.round is Round.FINAL
        needs_wager = cell.clue.daily_double and not is_final
        if wager is not None:
            if not (needs_wager or is_final):
                raise InvalidTransition("Wagers apply only to daily doubles and the final round")
            wager = _positive_int(wager, "Wager")

        self._last_resolved = None
        self.active_clue = ActiveClue(category_index, value, cell)
        if needs_wager and wager is None:
            self._transition(DirectorState.WAGER_CAPTURE, {"clue_id": cell.clue.clue_id})
        else:
            self.active_clue.stake = wager if wager is not None else (value or 0)
            self._transition(DirectorState.CLUE_ACTIVE, {"clue_id": cell.clue.clue_id})
        return self._ok({"clue_id": cell.clue.clue_id})

    def declare_wager(self, amount: Optional[int] = None) -> ActionResult:
        """Stake for a daily double; None takes the cell value."""
        return self._guard("declare_wager", self._declare_wager, amount)

    def _declare_wager(self, amount: Optional[int]) -> ActionResult:
        self._require(DirectorState.WAGER_CAPTURE)
        if amount is None:
            stake = self.active_clue.value or 0
        else:
            stake = _positive_int(amount, "Wager")
        self.active_clue.stake = stake
        self._transition(DirectorState.CLUE_ACTIVE, {"stake": stake})
        return self._ok({"stake": stake})

    def reveal_answer(self) -> ActionResult:
        return self._guard("reveal_answer", self._reveal_answer)

    def _reveal_answer(self) -> ActionResult:
        if self.state is DirectorState.QUESTION_ACTIVE:
            return self._apply_play_update(self.play.reveal())
        if self.state is DirectorState.ANSWER_REVEALED:
            return self._ok({"answer": self.active_clue.cell.clue.answer}, duplicate=True)
        self._require(DirectorState.CLUE_ACTIVE)
        self.active_clue.answer_revealed = True
        self._transition(DirectorState.ANSWER_REVEALED)
        return self._ok({"answer": self.active_clue.cell.clue.answer})

    def set_responder(self, team_index: int) -> ActionResult:
        """Name the team answering the active clue (or the next practice question)."""
        return self._guard("set_responder", self._set_responder, team_index)

    def _set_responder(self, team_index: int) -> ActionResult:
        if isinstance(team_index, bool) or not isinstance(team_index, int) or not 0 <= team_index < len(self.teams):
            raise InvalidTransition(f"Team index {team_index!r} out of range (0..{len(self.teams) - 1})")
        if self.state in (DirectorState.WAGER_CAPTURE, DirectorState.CLUE_ACTIVE, DirectorState.ANSWER_REVEALED):
            self.active_clue.responder = team_index
        else:
            self._require(DirectorState.ROUND_ACTIVE, DirectorState.PRACTICE, DirectorState.QUESTION_ACTIVE)
        self.active_team_index = team_index
        return self._ok({"team": self.teams[team_index].name})

    def submit_answer(self, payload: Any) -> ActionResult:
        """Grade free text for the active clue, or feed the active question play."""
        return self._guard("submit_answer", self._submit_answer, payload)

    def _submit_answer(self, payload: Any) -> ActionResult:
        if self.state is DirectorState.QUESTION_ACTIVE:
            return self._apply_play_update(self.play.submit(payload))
        if self.state is DirectorState.ROUND_ACTIVE and self._last_resolved:
            return self._ok(duplicate=True)
        self._require(DirectorState.CLUE_ACTIVE)

        text = str(payload or "").strip()
        if not text:
            raise InvalidAnswerPayload("Answer text is empty")
        self._check_responder(Outcome.CORRECT)

        clue = self.active_clue.cell.clue
        correct = is_acceptable_against_any(text, clue.accepted_answers)
        self.active_clue.answer_revealed = True
        self._transition(DirectorState.ANSWER_REVEALED)
        result = self._resolve_clue(Outcome.CORRECT if correct else Outcome.INCORRECT)
        result.detail.update({"submitted": text, "correct": correct, "answer": clue.answer})
        return result

    def record_outcome(self, outcome: Union[str, Outcome]) -> ActionResult:
        """Apply +stake, -stake or 0 to the responder and reveal the cell."""
        return self._guard("record_outcome", self._record_outcome, outcome)

    def _record_outcome(self, outcome: Union[str, Outcome]) -> ActionResult:
        try:
            outcome = Outcome.parse(outcome)
        except ValueError:
            raise InvalidTransition(f"Unknown outcome: {outcome!r}")
        if self.state is DirectorState.ROUND_ACTIVE and self._last_resolved:
            return self._ok({"clue_id": self._last_resolved}, duplicate=True)
        self._require(DirectorState.ANSWER_REVEALED)
        self._check_responder(outcome)
        return self._resolve_clue(outcome)

    def record_skip(self) -> ActionResult:
        return self._guard("record_skip", self._record_skip)

    def _record_skip(self) -> ActionResult:
        if self.state is DirectorState.QUESTION_ACTIVE:
            return self._apply_play_update(self.play.skip())
        return self._record_outcome(Outcome.SKIP)

    def _check_responder(self, outcome: Outcome) -> None:
        if outcome is Outcome.SKIP or len(self.teams) <= 1:
            return
        if self.active_clue.responder is None:
            raise InvalidTransition("Set the responding team before recording an outcome")

    def _resolve_clue(self, outcome: Outcome) -> ActionResult:
        active = self.active_clue
        clue = active.cell.clue
        stake = active.stake or 0
        team_index = active.responder if active.responder is not None else self.active_team_index
        team = self.teams[team_index]

        delta = {Outcome.CORRECT: stake, Outcome.INCORRECT: -stake, Outcome.SKIP: 0}[outcome]
        team.score += delta
        self.board.reveal(active.category_index, active.value)
        self.revealed_ids.add(clue.clue_id)

        record = OutcomeRecord(
            clue_or_question_id=clue.clue_id,
            outcome=outcome,
            points_earned=stake if outcome is Outcome.CORRECT else 0,
            points_possible=stake,
            kind="clue",
        )
        self.records.append(record)
        self.active_clue = None
        self._last_resolved = clue.clue_id
        self._transition(DirectorState.ROUND_ACTIVE)
        logger.debug(f"Clue {clue.clue_id}: {outcome.value} ({delta:+d}) for {team.name}")

        self._store_outcome(record)
        self._emit_outcome(record, delta, team)

        detail: Dict[str, Any] = {"clue_id": clue.clue_id, "outcome": outcome.value, "score_delta": delta}
        next_round = self._next_round_if_exhausted()
        if next_round is not None:
            self._load_round(next_round)
            detail["advanced_to"] = next_round.value
        return self._ok(detail)

    def _store_outcome(self, record: OutcomeRecord) -> None:
        if self.stats_store is None or not self.user_id:
            return
        try:
            self.stats_store.record_outcome(self.user_id, record)
        except Exception as e:
            logger.warning(f"Failed to record stats for {record.clue_or_question_id}: {e}")

    # ------------------------------------------------------------------
    # Rounds and completion
    # ------------------------------------------------------------------

    def _next_round_if_exhausted(self) -> Optional[Round]:
        if not self.settings.auto_advance_rounds or not self.board.is_exhausted:
            return None
        rounds = self.layout.available_rounds
        position = rounds.index(self.current_round)
        if position + 1 < len(rounds):
            return rounds[position + 1]
        return None

    def _load_round(self, round: Round) -> None:
        self.board = self.layout.build_board(round, self.revealed_ids)
        self.current_round = round
        logger.info(f"Session {self.session_id} moved to {round.value} round")

    def switch_round(self, round: Union[str, Round]) -> ActionResult:
        return self._guard("switch_round", self._switch_round, round)

    def _switch_round(self, round: Union[str, Round]) -> ActionResult:
        self._require(DirectorState.ROUND_ACTIVE)
        try:
            round = Round.parse(round)
        except ValueError:
            raise InvalidTransition(f"Unknown round: {round!r}")
        if round not in self.layout.available_rounds:
            raise InvalidTransition(f"Round {round.value} is not part of this session")
        if round is self.current_round:
            return self._ok({"round": round.value}, duplicate=True)
        self._load_round(round)
        return self._ok({"round": round.value})

    def end_session(self) -> ActionResult:
        """Emit the session summary and discard the board."""
        return self._guard("end_session", self._end_session)

    def _end_session(self) -> ActionResult:
        if self.state is DirectorState.SESSION_COMPLETE:
            return self._ok({"summary": self.summary.to_dict()}, duplicate=True)
        self._require(DirectorState.ROUND_ACTIVE, DirectorState.PRACTICE)

        summary = self._build_summary()
        self.summary = summary
        self.board = None
        self.active_clue = None
        self.play = None
        self._transition(DirectorState.SESSION_COMPLETE, {"final_score": summary.final_score})

        if self.stats_store is not None and self.user_id:
            try:
                self.stats_store.record_session_completed(self.user_id, summary)
            except Exception as e:
                logger.warning(f"Failed to record session {self.session_id} for {self.user_id}: {e}")
        self._emit_session_complete(summary)
        logger.info(
            f"Session {self.session_id} complete: score {summary.final_score}, "
            f"{summary.correct} correct / {summary.incorrect} incorrect / {summary.skipped} skipped"
        )
        return self._ok({"summary": summary.to_dict()})

    def _build_summary(self) -> SessionSummary:
        episode = self.layout.episode if self.layout else None
        counts = {outcome: 0 for outcome in Outcome}
        for record in self.records:
            counts[record.outcome] += 1
        return SessionSummary(
            session_id=self.session_id,
            mode=self.mode or "practice",
            final_score=max(team.score for team in self.teams),
            team_scores={team.name: team.score for team in self.teams},
            episode_id=episode.episode_id if episode else None,
            show_number=episode.show_number if episode else None,
            correct=counts[Outcome.CORRECT],
            incorrect=counts[Outcome.INCORRECT],
            skipped=counts[Outcome.SKIP],
            points_earned=sum(r.points_earned for r in self.records),
            points_possible=sum(r.points_possible for r in self.records),
            type_points={k: dict(v) for k, v in self.type_points.items()},
        )

    # ------------------------------------------------------------------
    # Practice mode
    # ------------------------------------------------------------------

    def start_practice(self, teams: Optional[List[str]] = None) -> ActionResult:
        return self._guard("start_practice", self._start_practice, teams)

    def _start_practice(self, teams: Optional[List[str]]) -> ActionResult:
        self._require(DirectorState.IDLE, DirectorState.SESSION_COMPLETE)
        team_list = self._make_teams(teams)
        self._reset_session(mode="practice", teams=team_list)
        self._transition(DirectorState.PRACTICE, {"session_id": self.session_id, "mode": "practice"})
        logger.info(f"Session {self.session_id} started: practice, {len(self.teams)} team(s)")
        return self._ok()

    def start_question(
        self,
        question: Optional[AnyQuestion] = None,
        question_type: Optional[str] = None,
        difficulty: Optional[str] = None,
        **modes,
    ) -> ActionResult:
        """Activate ``question``, or a random bank question of the given type/difficulty."""
        return self._guard("start_question", self._start_question, question, question_type, difficulty, **modes)

    def _start_question(
        self,
        question: Optional[AnyQuestion],
        question_type: Optional[str],
        difficulty: Optional[str],
        **modes,
    ) -> ActionResult:
        if not (self.state is DirectorState.QUESTION_ACTIVE and self.play.finalized):
            self._require(DirectorState.PRACTICE)
        unknown = set(modes) - _PLAY_MODES
        if unknown:
            raise InvalidTransition(f"Unsupported play modes: {sorted(unknown)}")

        if question is None:
            question = self._pick_question(question_type, difficulty)
        play = create_play(question, self.rng, self.settings, **modes)

        self.play = play
        self._play_recorded = False
        self._transition(DirectorState.QUESTION_ACTIVE, {"question_id": question.question_id})
        return self._ok({"question_id": question.question_id})

    def _pick_question(self, question_type: Optional[str], difficulty: Optional[str]) -> AnyQuestion:
        if self.question_bank is None or len(self.question_bank) == 0:
            raise EmptyConstructionResult("No question bank loaded")
        try:
            wanted_difficulty = Difficulty.parse(difficulty) if difficulty else None
        except ValueError:
            raise InvalidTransition(f"Unknown difficulty: {difficulty!r}")
        wanted_type = parse_question_type(question_type) if question_type else None
        question = self.question_bank.pick(self.rng, wanted_type, wanted_difficulty)
        if question is None:
            raise EmptyConstructionResult("No questions match the requested type and difficulty")
        return question

    def finish_question(self) -> ActionResult:
        """Finalize the active play with what has accrued and return to practice."""
        return self._guard("finish_question", self._finish_question)

    def _finish_question(self) -> ActionResult:
        self._require(DirectorState.QUESTION_ACTIVE)
        update = self.play.finish()
        result = self._apply_play_update(update)
        self._transition(DirectorState.PRACTICE)
        result.state = self.snapshot()
        return result

    def reroll_question(self) -> ActionResult:
        """Swap a hint-prompt question for another with the same hint. Scores nothing."""
        return self._guard("reroll_question", self._reroll_question)

    def _reroll_question(self) -> ActionResult:
        self._require(DirectorState.QUESTION_ACTIVE)
        if self.play.finalized:
            return self._ok(duplicate=True)
        current = self.play.question
        if not isinstance(current, HintPromptQuestion):
            raise InvalidTransition("Only hint-prompt questions can be rerolled")
        if self.question_bank is None:
            raise EmptyConstructionResult("No question bank loaded")
        replacement = self.question_bank.reroll(current, self.rng)
        if replacement is None:
            raise EmptyConstructionResult(f"No other questions share the hint {current.hint!r}")
        self.play = create_play(replacement, self.rng, self.settings)
        logger.debug(f"Rerolled {current.question_id} -> {replacement.question_id}")
        return self._ok({"question_id": replacement.question_id})

    def tick(self, seconds: float) -> ActionResult:
        """Advance the active play's timer."""
        return self._guard("tick", self._tick, seconds)

    def _tick(self, seconds: float) -> ActionResult:
        self._require(DirectorState.QUESTION_ACTIVE)
        if isinstance(seconds, bool) or not isinstance(seconds, (int, float)) or seconds < 0:
            raise InvalidTransition(f"Tick must be a non-negative number of seconds, got {seconds!r}")
        return self._apply_play_update(self.play.tick(seconds))

    def _apply_play_update(self, update: PlayUpdate) -> ActionResult:
        if update.duplicate:
            return self._ok(dict(update.detail), duplicate=True)
        detail = dict(update.detail)
        if update.finalized and not self._play_recorded:
            detail.update(self._record_question())
        return self._ok(detail)

    def _record_question(self) -> Dict[str, Any]:
        play = self.play
        result = play.result
        if play.skipped:
            outcome = Outcome.SKIP
        else:
            outcome = Outcome.CORRECT if result.correct else Outcome.INCORRECT

        team = self.teams[self.active_team_index]
        team.score += result.points_earned
        record = OutcomeRecord(
            clue_or_question_id=play.question.question_id,
            outcome=outcome,
            points_earned=result.points_earned,
            points_possible=result.points_possible,
            kind="question",
        )
        self.records.append(record)
        self._play_recorded = True

        tally = self.type_points.setdefault(play.question.question_type.value, {"earned": 0, "possible": 0})
        tally["earned"] += result.points_earned
        tally["possible"] += result.points_possible
        self._store_outcome(record)
        self._emit_outcome(record, result.points_earned, team)
        logger.debug(
            f"Question {play.question.question_id}: {outcome.value} "
            f"{result.points_earned}/{result.points_possible} for {team.name}"
        )
        return {
            "outcome": outcome.value,
            "points_earned": result.points_earned,
            "points_possible": result.points_possible,
        }

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Everything a presentation layer needs to draw the session."""
        state: Dict[str, Any] = {
            "state": self.state.value,
            "session_id": self.session_id,
            "mode": self.mode,
            "teams": [{"name": t.name, "score": t.score} for t in self.teams],
            "active_team_index": self.active_team_index,
            "outcomes_recorded": len(self.records),
            "revealed_count": len(self.revealed_ids),
        }
        if self.layout is not None:
            state["available_rounds"] = [r.value for r in self.layout.available_rounds]
            if self.layout.episode is not None:
                state["episode"] = {
                    "episode_id": self.layout.episode.episode_id,
                    "show_number": self.layout.episode.show_number,
                    "air_date": self.layout.episode.air_date,
                }
        if self.board is not None:
            state["round"] = self.current_round.value
            state["board"] = self.board.snapshot()
        if self.active_clue is not None:
            clue = self.active_clue.cell.clue
            state["active_clue"] = {
                "clue_id": clue.clue_id,
                "category": clue.category,
                "prompt": clue.prompt if self.state is not DirectorState.WAGER_CAPTURE else None,
                "value": self.active_clue.value,
                "stake": self.active_clue.stake,
                "daily_double": clue.daily_double,
                "responder": self.active_clue.responder,
                "answer": clue.answer if self.active_clue.answer_revealed else None,
            }
        if self.play is not None:
            state["question"] = self.play.snapshot()
        if self.type_points:
            state["type_points"] = {k: dict(v) for k, v in self.type_points.items()}
        if self.summary is not None:
            state["summary"] = self.summary.to_dict()
        return state
