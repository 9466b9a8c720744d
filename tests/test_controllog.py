"""Tests for controllog SDK, builders and Director emission."""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from shared import controllog as cl
from shared.controllog import sdk
from trivia.director import SessionDirector

from tests.helpers import build_repository


def written_events(mock_write):
    return [call[0][1] for call in mock_write.call_args_list]


class TestControllogBuilders:
    """Test cases for the event builders."""

    def setup_method(self):
        """Setup for each test."""
        self.temp_dir = tempfile.mkdtemp()
        cl.init(project_id="test_project", log_dir=Path(self.temp_dir))

    def test_state_move_event_structure(self):
        with patch('shared.controllog.sdk._write_jsonl') as mock_write:
            cl.state_move(
                task_id="session:abc",
                from_="idle",
                to="board_building",
                project_id="trivia",
                agent_id="agent:director",
                run_id="test_run",
                payload={"strategy": "random"},
            )

            event_data = mock_write.call_args_list[0][0][1]
            assert event_data["kind"] == "state_move"
            assert event_data["project_id"] == "trivia"
            assert event_data["run_id"] == "test_run"
            assert event_data["agent_id"] == "agent:director"

            payload = event_data["payload_json"]
            assert payload["from"] == "idle"
            assert payload["to"] == "board_building"
            assert payload["strategy"] == "random"

    def test_clue_outcome_event_structure(self):
        with patch('shared.controllog.sdk._write_jsonl') as mock_write:
            cl.clue_outcome(
                task_id="session:abc",
                project_id="trivia",
                clue_or_question_id="g1-s-c0-r0",
                outcome="incorrect",
                points_earned=0,
                points_possible=400,
                score_delta=-400,
                team="Reds",
            )

            event_data = mock_write.call_args_list[0][0][1]
            assert event_data["kind"] == "clue_outcome"
            payload = event_data["payload_json"]
            assert payload["clue_or_question_id"] == "g1-s-c0-r0"
            assert payload["kind"] == "clue"
            assert payload["score_delta"] == -400
            assert payload["team"] == "Reds"

    def test_session_complete_with_extra_payload(self):
        with patch('shared.controllog.sdk._write_jsonl') as mock_write:
            cl.session_complete(
                task_id="session:abc",
                project_id="trivia",
                session_id="abc",
                mode="practice",
                final_score=12,
                team_scores={"Player": 12},
                correct=3,
                incorrect=1,
                skipped=0,
                payload={"type_points": {"ranking": {"earned": 6, "possible": 6}}},
            )

            payload = mock_write.call_args_list[0][0][1]["payload_json"]
            assert payload["final_score"] == 12
            assert payload["episode_id"] is None
            assert payload["type_points"]["ranking"]["earned"] == 6

    def test_default_project_id(self):
        with patch('shared.controllog.sdk._write_jsonl') as mock_write:
            cl.event(kind="custom", payload={"a": 1})
            assert mock_write.call_args_list[0][0][1]["project_id"] == "test_project"

    def test_events_written_as_jsonl(self):
        cl.event(kind="custom", payload={"a": 1}, project_id="trivia")
        lines = (Path(self.temp_dir) / "events.jsonl").read_text().splitlines()
        assert json.loads(lines[-1])["payload_json"] == {"a": 1}

    def test_event_requires_init(self):
        with patch.dict(sdk._STATE, {"project_id": None, "log_dir": None}):
            with pytest.raises(RuntimeError):
                cl.event(kind="custom")


class TestDirectorEmission:
    """Test cases for Director controllog integration."""

    def setup_method(self):
        """Setup for each test."""
        self.temp_dir = tempfile.mkdtemp()
        self.director = SessionDirector(build_repository(), seed=42)
        self.director.init_controllog(Path(self.temp_dir), run_id="run-1")

    def test_board_session_events(self):
        with patch('shared.controllog.sdk._write_jsonl') as mock_write:
            self.director.build_board("replay", episode_id=1)
            self.director.select_cell(1, 200)
            self.director.reveal_answer()
            self.director.record_outcome("correct")
            self.director.end_session()

            events = written_events(mock_write)
            kinds = [e["kind"] for e in events]
            assert kinds.count("clue_outcome") == 1
            assert kinds[-2:] == ["state_move", "session_complete"]

            moves = [(e["payload_json"]["from"], e["payload_json"]["to"]) for e in events if e["kind"] == "state_move"]
            assert moves[:2] == [("idle", "board_building"), ("board_building", "round_active")]
            assert moves[-1] == ("round_active", "session_complete")

            outcome = next(e for e in events if e["kind"] == "clue_outcome")
            assert outcome["run_id"] == "run-1"
            assert outcome["payload_json"]["score_delta"] == 200
            assert outcome["payload_json"]["team"] == "Player"

    def test_rejections_emit_nothing(self):
        with patch('shared.controllog.sdk._write_jsonl') as mock_write:
            self.director.select_cell(0, 200)
            assert not mock_write.called

    def test_no_events_without_init(self):
        director = SessionDirector(build_repository(), seed=42)
        with patch('shared.controllog.sdk._write_jsonl') as mock_write:
            director.build_board("random")
            assert not mock_write.called
