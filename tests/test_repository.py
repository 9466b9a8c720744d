"""Tests for clue repositories and YAML loading."""

from pathlib import Path

import pytest
import yaml

from trivia.board import ClueFilter
from trivia.models import Round
from trivia.repository import (
    ClueAnnotations,
    InMemoryClueRepository,
    YamlClueRepository,
    make_clue_id,
    parse_episode_file,
)

INPUTS_DIR = Path(__file__).parent.parent / "inputs"


class TestYamlClueRepository:
    """Test cases for YamlClueRepository over the bundled inputs."""

    def setup_method(self):
        """Setup for each test."""
        self.repo = YamlClueRepository(INPUTS_DIR)

    def test_episodes_loaded(self):
        episodes = self.repo.list_episodes()
        assert [e.episode_id for e in episodes] == [9001, 9002]
        special = self.repo.get_episode(9002)
        assert special.is_special
        assert special.tournament_type == "Tournament of Champions"

    def test_generated_clue_ids(self):
        clue = self.repo.get_clue("g9001-s-c0-r0")
        assert clue.answer == "hydrogen"
        assert clue.category == "SCIENCE"
        assert clue.value == 200

        final = self.repo.get_clue("g9001-f-c0-r0")
        assert final.is_final
        assert final.value is None
        assert "Beagle" in final.accepted_answers

    def test_daily_doubles(self):
        clues = self.repo.list_clues(ClueFilter(daily_doubles_only=True))
        assert sorted(c.answer for c in clues) == ["Manhattan Project", "Rome", "Stravinsky"]

    def test_annotations_drive_filters(self):
        flagged = self.repo.list_clues(ClueFilter(flagged_only=True))
        assert [c.clue_id for c in flagged] == ["g9001-s-c0-r2"]
        tagged = self.repo.list_clues(ClueFilter(topic_tags=("music",)))
        assert [c.answer for c in tagged] == ["Beethoven"]
        assert self.repo.annotations.all_tags() == ["chemistry", "music"]

    def test_season_filter(self):
        clues = self.repo.list_clues(ClueFilter(seasons=(38,)))
        assert {c.episode_id for c in clues} == {9002}

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            YamlClueRepository(tmp_path / "nowhere")


class TestEpisodeParsing:
    """Test cases for parse_episode_file."""

    def test_positions_and_explicit_ids(self):
        data = {
            "episode": {"episode_id": 7, "show_number": 100},
            "categories": [
                {"name": "A", "round": "single", "clues": [{"prompt": "p", "answer": "a", "value": 200}]},
                {"name": "B", "round": "single", "position": 4,
                 "clues": [{"prompt": "p", "answer": "b", "value": 400, "row_index": 1, "clue_id": "custom-1"}]},
                {"name": "C", "round": "double", "clues": [{"prompt": "p", "answer": "c", "value": 400}]},
            ],
        }
        episode, clues = parse_episode_file(data)
        assert episode.episode_id == 7
        assert [c.clue_id for c in clues] == ["g7-s-c0-r0", "custom-1", "g7-d-c0-r0"]
        assert clues[1].row_index == 1

    def test_missing_episode_id(self):
        with pytest.raises(ValueError):
            parse_episode_file({"episode": {}, "categories": []}, source="bad.yaml")

    def test_bad_file_is_reported(self, tmp_path):
        episodes_dir = tmp_path / "episodes"
        episodes_dir.mkdir()
        (episodes_dir / "broken.yaml").write_text("episode: {show_number: 1}\n")
        with pytest.raises(ValueError):
            YamlClueRepository(tmp_path)


class TestAnnotations:
    """Test cases for ClueAnnotations."""

    def test_from_yaml_and_updates(self, tmp_path):
        path = tmp_path / "annotations.yaml"
        path.write_text(yaml.safe_dump({"annotations": {"c1": {"mediaFlag": True, "topicTags": ["art"]}}}))
        annotations = ClueAnnotations.from_yaml(path)
        assert annotations.get("c1").media_flag
        assert annotations.get("c1").topic_tags == ("art",)

        annotations.update_flags("c2", flagged=True)
        annotations.update_tags("c2", ["history"])
        assert annotations.get("c2").flagged
        assert annotations.all_tags() == ["art", "history"]

    def test_missing_file(self, tmp_path):
        assert ClueAnnotations.from_yaml(tmp_path / "none.yaml").get("c1") is None

    def test_in_memory_repo_defaults(self):
        repo = InMemoryClueRepository([])
        assert repo.list_clues() == []
        assert repo.get_clue("x") is None
        assert repo.list_episodes() == []

    def test_make_clue_id(self):
        assert make_clue_id(12, Round.DOUBLE, 3, 4) == "g12-d-c3-r4"
