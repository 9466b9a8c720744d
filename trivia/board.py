"""Board layout, clue filters and board construction strategies.

Four strategies produce a ``GameLayout``:

- replay: one archived episode's clue set as-is
- random: distinct categories drawn from the whole corpus
- custom: a ``ClueFilter`` over the corpus, then random shaping
- learn: the user's missed or skipped clues, grouped by category

A layout holds category columns per round; ``GameLayout.build_board`` turns
one round into a ``Board`` of cells keyed by ``(category_index, value)``.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from trivia.config import GameSettings
from trivia.errors import EmptyConstructionResult, InvalidTransition
from trivia.models import ROUND_ORDER, Clue, Episode, Round

logger = logging.getLogger(__name__)

VALUE_LADDERS: Dict[Round, Tuple[int, ...]] = {
    Round.SINGLE: (200, 400, 600, 800, 1000),
    Round.DOUBLE: (400, 800, 1200, 1600, 2000),
    Round.FINAL: (),
}

FINAL_KEY: Tuple[int, Optional[int]] = (0, None)

CellKey = Tuple[int, Optional[int]]


@dataclass
class Cell:
    clue: Clue
    value: Optional[int]
    revealed: bool = False


class Board:
    """Cells for one round. The only mutation is ``reveal``."""

    def __init__(self, round: Round, categories: List[str], cells: Dict[CellKey, Cell]):
        self.round = round
        self.categories = categories
        self.cells = cells

    def get(self, category_index: int, value: Optional[int]) -> Optional[Cell]:
        return self.cells.get((category_index, value))

    def reveal(self, category_index: int, value: Optional[int]) -> Cell:
        cell = self.cells[(category_index, value)]
        cell.revealed = True
        return cell

    @property
    def revealed_count(self) -> int:
        return sum(1 for cell in self.cells.values() if cell.revealed)

    @property
    def is_exhausted(self) -> bool:
        return all(cell.revealed for cell in self.cells.values())

    def unrevealed(self) -> List[CellKey]:
        return [key for key, cell in self.cells.items() if not cell.revealed]

    def snapshot(self) -> Dict[str, Any]:
        columns = []
        for index, name in enumerate(self.categories):
            cells = [
                {
                    "value": cell.value,
                    "revealed": cell.revealed,
                    "clue_id": cell.clue.clue_id,
                    "daily_double": cell.clue.daily_double,
                }
                for (cat, _), cell in sorted(
                    self.cells.items(), key=lambda item: (item[0][0], item[0][1] or 0)
                )
                if cat == index
            ]
            columns.append({"category": name, "cells": cells})
        return {
            "round": self.round.value,
            "categories": columns,
            "revealed_count": self.revealed_count,
            "total_cells": len(self.cells),
        }


@dataclass
class CategoryColumn:
    """One category; ``clues[i]`` sits on ladder rung ``i`` (None leaves a gap)."""
    name: str
    clues: List[Optional[Clue]] = field(default_factory=list)

    @property
    def clue_count(self) -> int:
        return sum(1 for clue in self.clues if clue is not None)


@dataclass
class GameLayout:
    """Category columns per round, produced by a construction strategy."""
    mode: str
    rounds: Dict[Round, List[CategoryColumn]]
    episode: Optional[Episode] = None

    @property
    def available_rounds(self) -> List[Round]:
        return [r for r in ROUND_ORDER if self.rounds.get(r)]

    @property
    def clue_ids(self) -> Set[str]:
        return {
            clue.clue_id
            for columns in self.rounds.values()
            for column in columns
            for clue in column.clues
            if clue is not None
        }

    def build_board(self, round: Round, revealed_ids: Optional[Set[str]] = None) -> Board:
        """Board for ``round``; clues in ``revealed_ids`` start revealed."""
        columns = self.rounds.get(round)
        if not columns:
            raise InvalidTransition(f"Round {round.value} is not part of this session")
        revealed_ids = revealed_ids or set()

        cells: Dict[CellKey, Cell] = {}
        if round is Round.FINAL:
            clue = next(c for column in columns for c in column.clues if c is not None)
            cells[FINAL_KEY] = Cell(clue, None, clue.clue_id in revealed_ids)
            return Board(round, [columns[0].name], cells)

        ladder = VALUE_LADDERS[round]
        for cat_index, column in enumerate(columns):
            for row, clue in enumerate(column.clues[:len(ladder)]):
                if clue is None:
                    continue
                value = ladder[row]
                cells[(cat_index, value)] = Cell(clue, value, clue.clue_id in revealed_ids)
        return Board(round, [column.name for column in columns], cells)


@dataclass
class ClueFilter:
    """Criteria for custom boards and repository queries. Empty matches all."""
    daily_doubles_only: bool = False
    triple_stumpers_only: bool = False
    final_only: bool = False
    flagged_only: bool = False
    media_flagged_only: bool = False
    search: Optional[str] = None
    topic_tags: Tuple[str, ...] = ()
    seasons: Tuple[int, ...] = ()
    episode_ids: Tuple[int, ...] = ()
    rounds: Tuple[Round, ...] = ()
    min_value: Optional[int] = None
    max_value: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClueFilter":
        """Accepts snake_case or the camelCase keys of saved filters."""
        def pick(*keys, default=None):
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        return cls(
            daily_doubles_only=bool(pick("daily_doubles_only", "dailyDoublesOnly", default=False)),
            triple_stumpers_only=bool(pick("triple_stumpers_only", "tripleStumpersOnly", default=False)),
            final_only=bool(pick("final_only", "finalOnly", default=False)),
            flagged_only=bool(pick("flagged_only", "flaggedOnly", default=False)),
            media_flagged_only=bool(pick("media_flagged_only", "mediaFlaggedOnly", default=False)),
            search=pick("search"),
            topic_tags=tuple(pick("topic_tags", "topicTags", default=())),
            seasons=tuple(int(s) for s in pick("seasons", default=())),
            episode_ids=tuple(int(e) for e in pick("episode_ids", "gameIds", default=())),
            rounds=tuple(Round.parse(r) for r in pick("rounds", default=())),
            min_value=pick("min_value", "minValue"),
            max_value=pick("max_value", "maxValue"),
        )

    def matches(self, clue: Clue, annotation: Any = None, episode: Optional[Episode] = None) -> bool:
        if self.seasons and (episode is None or episode.season not in self.seasons):
            return False
        if self.episode_ids and clue.episode_id not in self.episode_ids:
            return False
        if self.rounds and clue.round not in self.rounds:
            return False
        if self.triple_stumpers_only and not clue.triple_stumper:
            return False
        if self.daily_doubles_only and not clue.daily_double:
            return False
        if self.final_only and not clue.is_final:
            return False
        if self.min_value is not None and clue.value is not None and clue.value < self.min_value:
            return False
        if self.max_value is not None and clue.value is not None and clue.value > self.max_value:
            return False
        if self.search:
            combined = f"{clue.prompt} {clue.answer} {clue.category}".lower()
            if self.search.lower() not in combined:
                return False

        flagged = bool(annotation and annotation.flagged)
        media_flag = bool(annotation and annotation.media_flag)
        tags = set(annotation.topic_tags if annotation else ()) | set(clue.topic_tags)
        if self.flagged_only and not flagged:
            return False
        if self.media_flagged_only and not media_flag:
            return False
        if self.topic_tags and not all(tag in tags for tag in self.topic_tags):
            return False
        return True


class BoardBuilder:
    """Construction strategies over a clue repository."""

    def __init__(self, repository, rng: random.Random, settings: Optional[GameSettings] = None):
        self.repository = repository
        self.rng = rng
        self.settings = settings or GameSettings()

    def _category_count(self, category_count: Optional[int]) -> int:
        count = category_count or self.settings.category_count
        if not GameSettings.MIN_CATEGORIES <= count <= GameSettings.MAX_CATEGORIES:
            raise InvalidTransition(
                f"category_count must be between {GameSettings.MIN_CATEGORIES} and "
                f"{GameSettings.MAX_CATEGORIES}, got {count}"
            )
        return count

    # -- replay --------------------------------------------------------------

    def replay(
        self,
        episode_id: Optional[int] = None,
        season_range: Optional[Tuple[int, int]] = None,
        exclude_specials: bool = False,
    ) -> GameLayout:
        """One episode's board exactly as it aired."""
        if episode_id is None:
            episode = self._pick_episode(season_range, exclude_specials)
        else:
            episode = self.repository.get_episode(episode_id)
            if episode is None:
                raise EmptyConstructionResult(f"Episode {episode_id} not found")

        clues = self.repository.list_clues(ClueFilter(episode_ids=(episode.episode_id,)))
        if not clues:
            raise EmptyConstructionResult(f"Episode {episode.episode_id} has no clues")

        rounds: Dict[Round, List[CategoryColumn]] = {}
        for round in ROUND_ORDER:
            round_clues = [c for c in clues if c.round is round]
            if not round_clues:
                continue
            if round is Round.FINAL:
                rounds[round] = [CategoryColumn(round_clues[0].category, [round_clues[0]])]
                continue
            rounds[round] = self._replay_columns(round_clues, len(VALUE_LADDERS[round]))

        logger.info(
            f"Built replay board for episode {episode.episode_id} "
            f"(show #{episode.show_number}): {[r.value for r in rounds]}"
        )
        return GameLayout(mode="replay", rounds=rounds, episode=episode)

    @staticmethod
    def _replay_columns(clues: List[Clue], rungs: int) -> List[CategoryColumn]:
        columns: Dict[str, CategoryColumn] = {}
        for clue in clues:
            column = columns.setdefault(clue.category, CategoryColumn(clue.category, [None] * rungs))
            if 0 <= clue.row_index < rungs and column.clues[clue.row_index] is None:
                column.clues[clue.row_index] = clue
            else:
                logger.warning(f"Dropping clue {clue.clue_id}: row {clue.row_index} unavailable")
        return list(columns.values())

    def _pick_episode(self, season_range: Optional[Tuple[int, int]], exclude_specials: bool) -> Episode:
        episodes = self.repository.list_episodes()
        if season_range:
            low, high = season_range
            episodes = [e for e in episodes if e.season is not None and low <= e.season <= high]
        if exclude_specials:
            episodes = [e for e in episodes if not e.is_special]
        if not episodes:
            raise EmptyConstructionResult("No episodes match the replay selection")
        return self.rng.choice(episodes)

    # -- random / custom -----------------------------------------------------

    def random(
        self,
        category_count: Optional[int] = None,
        include_double: Optional[bool] = None,
        include_final: Optional[bool] = None,
        triple_stumpers_only: bool = False,
    ) -> GameLayout:
        """Distinct categories per round drawn from the whole corpus."""
        count = self._category_count(category_count)
        include_double = self.settings.include_double if include_double is None else include_double
        include_final = self.settings.include_final if include_final is None else include_final

        rounds: Dict[Round, List[CategoryColumn]] = {}
        used_names: Set[str] = set()
        wanted = [Round.SINGLE] + ([Round.DOUBLE] if include_double else [])
        for round in wanted:
            pool = self.repository.list_clues(
                ClueFilter(rounds=(round,), triple_stumpers_only=triple_stumpers_only)
            )
            columns = self._random_columns(pool, count, exclude_names=used_names)
            if columns:
                rounds[round] = columns
                used_names.update(column.name for column in columns)

        if not rounds:
            raise EmptyConstructionResult("No clues available for a random board")

        if include_final:
            finals = self.repository.list_clues(ClueFilter(final_only=True))
            if finals:
                final = self.rng.choice(finals)
                rounds[Round.FINAL] = [CategoryColumn(final.category, [final])]

        logger.info(
            "Built random board: "
            + ", ".join(f"{r.value}={len(cols)} categories" for r, cols in rounds.items())
        )
        return GameLayout(mode="random", rounds=rounds)

    def _random_columns(
        self,
        clues: Sequence[Clue],
        count: int,
        exclude_names: Iterable[str] = (),
    ) -> List[CategoryColumn]:
        """Group by (episode, round, category); one group per distinct name."""
        groups: Dict[Tuple[Any, Round, str], List[Clue]] = {}
        for clue in clues:
            groups.setdefault((clue.episode_id, clue.round, clue.category), []).append(clue)

        per_category = self.settings.clues_per_category
        keys = list(groups)
        self.rng.shuffle(keys)
        # Full categories first, shuffle order preserved within each tier
        keys.sort(key=lambda key: len(groups[key]) < per_category)

        excluded = set(exclude_names)
        columns: List[CategoryColumn] = []
        for key in keys:
            name = key[2]
            if name in excluded:
                continue
            excluded.add(name)
            chosen = list(groups[key])
            if len(chosen) > per_category:
                chosen = self.rng.sample(chosen, per_category)
            chosen.sort(key=lambda clue: (clue.value or 0, clue.row_index))
            columns.append(CategoryColumn(name, chosen))
            if len(columns) >= count:
                break
        return columns

    def _grouped_single_round(self, clues: Sequence[Clue], count: int) -> Dict[Round, List[CategoryColumn]]:
        by_name: Dict[str, List[Clue]] = {}
        for clue in clues:
            by_name.setdefault(clue.category, []).append(clue)

        names = list(by_name)
        self.rng.shuffle(names)
        per_category = self.settings.clues_per_category
        columns = []
        for name in names[:count]:
            chosen = list(by_name[name])
            self.rng.shuffle(chosen)
            columns.append(CategoryColumn(name, chosen[:per_category]))
        return {Round.SINGLE: columns}

    def custom(self, clue_filter: ClueFilter, category_count: Optional[int] = None) -> GameLayout:
        """Filtered clues grouped by category name into a single round."""
        count = self._category_count(category_count)
        clues = self.repository.list_clues(clue_filter)
        if not clues:
            raise EmptyConstructionResult("No clues match the custom filter")
        rounds = self._grouped_single_round(clues, count)
        logger.info(f"Built custom board from {len(clues)} matching clues")
        return GameLayout(mode="custom", rounds=rounds)

    # -- learn ---------------------------------------------------------------

    def learn(self, missed_clue_ids: Sequence[str], category_count: Optional[int] = None) -> GameLayout:
        """The user's missed or skipped clues, most recent first."""
        count = self._category_count(category_count)
        clues = []
        for clue_id in missed_clue_ids:
            clue = self.repository.get_clue(clue_id)
            if clue is None:
                logger.debug(f"Learn: clue {clue_id} no longer in corpus")
                continue
            clues.append(clue)
        if not clues:
            raise EmptyConstructionResult("No missed or skipped clues to learn from")
        rounds = self._grouped_single_round(clues, count)
        logger.info(f"Built learn board from {len(clues)} missed clues")
        return GameLayout(mode="learn", rounds=rounds)
