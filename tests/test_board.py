"""Tests for board layouts, clue filters and construction strategies."""

import random

import pytest

from trivia.board import FINAL_KEY, VALUE_LADDERS, BoardBuilder, ClueFilter
from trivia.config import GameSettings
from trivia.errors import EmptyConstructionResult, InvalidTransition
from trivia.models import Episode, Round
from trivia.repository import ClueAnnotation, ClueAnnotations, InMemoryClueRepository

from tests.helpers import build_episode_one, build_episode_two, build_repository, make_clue


class TestValueLadders:
    """Test cases for the fixed value ladders."""

    def test_single_and_double(self):
        assert VALUE_LADDERS[Round.SINGLE] == (200, 400, 600, 800, 1000)
        assert VALUE_LADDERS[Round.DOUBLE] == (400, 800, 1200, 1600, 2000)
        assert VALUE_LADDERS[Round.FINAL] == ()


class TestReplay:
    """Test cases for the replay strategy."""

    def setup_method(self):
        """Setup for each test."""
        self.builder = BoardBuilder(build_repository(), random.Random(42))

    def test_replay_places_clues_by_row(self):
        layout = self.builder.replay(episode_id=1)
        assert layout.mode == "replay"
        assert layout.episode.show_number == 8123
        assert layout.available_rounds == [Round.SINGLE, Round.DOUBLE, Round.FINAL]

        board = layout.build_board(Round.SINGLE)
        assert board.categories[0] == "HISTORY"
        assert len(board.cells) == 30
        assert board.get(0, 600).clue.daily_double
        assert board.get(1, 200).clue.answer == "atom"

        double = layout.build_board(Round.DOUBLE)
        assert double.get(1, 1600).clue.daily_double

    def test_replay_final_board(self):
        board = self.builder.replay(episode_id=1).build_board(Round.FINAL)
        assert list(board.cells) == [FINAL_KEY]
        assert board.get(*FINAL_KEY).clue.answer == "HMS Beagle"

    def test_replay_unknown_episode(self):
        with pytest.raises(EmptyConstructionResult):
            self.builder.replay(episode_id=404)

    def test_replay_random_pick_respects_filters(self):
        layout = self.builder.replay(exclude_specials=True)
        assert layout.episode.episode_id == 1

        layout = self.builder.replay(season_range=(37, 40))
        assert layout.episode.episode_id == 2

        with pytest.raises(EmptyConstructionResult):
            self.builder.replay(season_range=(1, 2))

    def test_revealed_ids_carry_into_board(self):
        layout = self.builder.replay(episode_id=2)
        board = layout.build_board(Round.SINGLE, revealed_ids={"g2-s-c0-r0"})
        assert board.get(0, 200).revealed
        assert board.revealed_count == 1
        assert not board.is_exhausted

    def test_round_outside_layout(self):
        layout = self.builder.replay(episode_id=2)
        assert Round.DOUBLE not in layout.available_rounds
        with pytest.raises(InvalidTransition):
            layout.build_board(Round.DOUBLE)


class TestRandom:
    """Test cases for the random strategy."""

    def setup_method(self):
        """Setup for each test."""
        self.builder = BoardBuilder(build_repository(), random.Random(7))

    def test_default_shape(self):
        layout = self.builder.random()
        single = layout.build_board(Round.SINGLE)
        assert len(single.categories) == 6
        assert len(single.cells) == 30
        assert Round.FINAL in layout.available_rounds

    def test_category_names_distinct_across_rounds(self):
        layout = self.builder.random(category_count=4)
        names = [c.name for r in (Round.SINGLE, Round.DOUBLE) for c in layout.rounds[r]]
        assert len(names) == len(set(names))

    def test_without_double_and_final(self):
        layout = self.builder.random(category_count=3, include_double=False, include_final=False)
        assert layout.available_rounds == [Round.SINGLE]
        assert len(layout.rounds[Round.SINGLE]) == 3

    def test_category_count_bounds(self):
        with pytest.raises(InvalidTransition):
            self.builder.random(category_count=1)
        with pytest.raises(InvalidTransition):
            self.builder.random(category_count=9)

    def test_empty_corpus(self):
        builder = BoardBuilder(InMemoryClueRepository([]), random.Random(1))
        with pytest.raises(EmptyConstructionResult):
            builder.random()


class TestCustomAndLearn:
    """Test cases for custom and learn strategies."""

    def setup_method(self):
        """Setup for each test."""
        self.builder = BoardBuilder(build_repository(), random.Random(3), GameSettings())

    def test_custom_empty_filter_result(self):
        clue_filter = ClueFilter.from_dict({"dailyDoublesOnly": True, "search": "atom"})
        with pytest.raises(EmptyConstructionResult):
            self.builder.custom(clue_filter)

    def test_custom_groups_by_category(self):
        layout = self.builder.custom(ClueFilter(daily_doubles_only=True))
        names = sorted(c.name for c in layout.rounds[Round.SINGLE])
        assert names == ["HISTORY", "POETS"]
        board = layout.build_board(Round.SINGLE)
        assert sorted(cell.value for cell in board.cells.values()) == [200, 200]

    def test_learn_skips_missing_ids(self):
        layout = self.builder.learn(["g1-s-c1-r0", "gone-clue", "g2-s-c0-r3"])
        assert layout.mode == "learn"
        assert layout.clue_ids == {"g1-s-c1-r0", "g2-s-c0-r3"}

    def test_learn_with_nothing(self):
        with pytest.raises(EmptyConstructionResult):
            self.builder.learn(["gone-clue"])


class TestClueFilter:
    """Test cases for ClueFilter matching."""

    def setup_method(self):
        """Setup for each test."""
        annotations = ClueAnnotations({
            "g1-s-c1-r0": ClueAnnotation("g1-s-c1-r0", flagged=True, topic_tags=("chemistry",)),
            "g1-s-c3-r1": ClueAnnotation("g1-s-c3-r1", media_flag=True),
        })
        episodes = [Episode(1, season=36), Episode(2, season=37)]
        self.repo = InMemoryClueRepository(build_episode_one() + build_episode_two(), episodes, annotations)

    def ids(self, **kwargs):
        return {clue.clue_id for clue in self.repo.list_clues(ClueFilter(**kwargs))}

    def test_empty_filter_matches_all(self):
        assert len(self.repo.list_clues(ClueFilter())) == len(self.repo.list_clues())

    def test_annotation_filters(self):
        assert self.ids(flagged_only=True) == {"g1-s-c1-r0"}
        assert self.ids(media_flagged_only=True) == {"g1-s-c3-r1"}
        assert self.ids(topic_tags=("chemistry",)) == {"g1-s-c1-r0"}

    def test_search_is_case_insensitive(self):
        assert self.ids(search="ATOM") == {"g1-s-c1-r0"}
        assert "g1-f-c0-r0" in self.ids(search="beagle")

    def test_seasons_and_rounds(self):
        assert self.ids(seasons=(37,), rounds=(Round.FINAL,)) == {"g2-f-c0-r0"}
        assert self.ids(triple_stumpers_only=True) == {"g1-s-c2-r4"}

    def test_value_range(self):
        clues = self.repo.list_clues(ClueFilter(min_value=1600, rounds=(Round.DOUBLE,)))
        assert {clue.value for clue in clues} == {1600, 2000}

    def test_clue_tags_count(self):
        clue = make_clue(3, Round.SINGLE, 0, 0, "X", 200, topic_tags=("geo",))
        assert ClueFilter(topic_tags=("geo",)).matches(clue)

    def test_from_dict_camel_case(self):
        clue_filter = ClueFilter.from_dict({"gameIds": [2], "tripleStumpersOnly": False, "rounds": ["final"]})
        assert clue_filter.episode_ids == (2,)
        assert clue_filter.rounds == (Round.FINAL,)
