"""Tests for question parsing, validation and the question bank."""

import random
from pathlib import Path

import pytest
import yaml

from trivia.errors import MalformedQuestionData
from trivia.questions import (
    Difficulty,
    FindListQuestion,
    GroupingQuestion,
    HintPromptQuestion,
    MediaQuestion,
    QuestionBank,
    QuestionType,
    RankingQuestion,
    SingleSelectQuestion,
    ThisOrThatQuestion,
    infer_ranking_direction,
    looks_like_multiple_choice,
    parse_question,
    parse_ranking_items,
    parse_starred_options,
    ranking_prompt_text,
)

INPUTS_DIR = Path(__file__).parent.parent / "inputs"


class TestParseQuestion:
    """Test cases for raw payload parsing."""

    def test_starred_multiple_choice(self):
        question = parse_question({
            "id": "mc",
            "type": "multiple_choice",
            "question": "Largest ocean?",
            "options": ["Atlantic", "*Pacific*", "Indian"],
        })
        assert isinstance(question, SingleSelectQuestion)
        assert question.options == ("Atlantic", "Pacific", "Indian")
        assert question.correct_option == "Pacific"

    def test_difficulty_aliases(self):
        question = parse_question({
            "type": "open_ended", "question": "Q?", "answer": "A", "difficulty": "very-hard",
        })
        assert question.difficulty is Difficulty.VERY_HARD
        assert question.question_id == "q-0"

    def test_ranking_items_sorted_by_rank(self):
        question = parse_question({
            "type": "ranking",
            "question": "Order these",
            "items": [{"text": "B", "rank": 2}, {"text": "A", "rank": 1}, {"text": "C", "rank": 3}],
        })
        assert isinstance(question, RankingQuestion)
        assert question.canonical_order == ["A", "B", "C"]

    def test_ranking_order_from_prompt(self):
        question = parse_question({"type": "ranking", "question": "Oldest first: Rome, Paris, Oslo"})
        assert question.canonical_order == ["Rome", "Paris", "Oslo"]

    def test_media_multiple_choice_detection(self):
        question = parse_question({
            "type": "media",
            "question": "Who painted this?",
            "mediaType": "image",
            "answer": "Monet\n*Van Gogh*\nPicasso",
        })
        assert isinstance(question, MediaQuestion)
        assert question.is_multiple_choice
        assert question.correct_option == "Van Gogh"

    def test_this_or_that_labels(self):
        question = parse_question({
            "type": "this_or_that",
            "question": "Fruit or veg?",
            "categoryA": "Fruit",
            "categoryB": "Vegetable",
            "items": [{"text": "- Tomato", "answer": "a"}, {"text": "Carrot", "answer": "B"}],
        })
        assert isinstance(question, ThisOrThatQuestion)
        assert question.labels == ("Fruit", "Vegetable")
        assert question.items[0].text == "Tomato"
        assert question.items[0].answer == "A"

    def test_hint_prompt_uses_prompt_as_hint(self):
        question = parse_question({
            "type": "prompt", "question": "Name the film", "prompt": "Movie quotes", "answer": "Casablanca",
        })
        assert isinstance(question, HintPromptQuestion)
        assert question.hint == "Movie quotes"

    def test_unknown_type(self):
        with pytest.raises(MalformedQuestionData):
            parse_question({"type": "crossword", "question": "Q"})

    def test_multiple_choice_without_marked_answer(self):
        with pytest.raises(MalformedQuestionData):
            parse_question({"type": "multiple_choice", "question": "Q", "options": ["a", "b"]})

    def test_list_min_required_exceeds_pool(self):
        with pytest.raises(MalformedQuestionData):
            parse_question({"type": "list", "question": "Q", "answers": ["a"], "minRequired": 3})

    def test_grouping_correct_item_missing_from_pool(self):
        with pytest.raises(MalformedQuestionData):
            parse_question({
                "type": "grouping", "question": "Q", "items": ["a", "b"], "correctItems": ["z"],
            })

    def test_ranking_needs_two_items(self):
        with pytest.raises(MalformedQuestionData):
            parse_question({"type": "ranking", "question": "No list here"})

    def test_non_numeric_min_required(self):
        with pytest.raises(MalformedQuestionData):
            parse_question({"type": "list", "question": "Q", "answers": ["a", "b"], "minRequired": "lots"})

    def test_non_mapping_row(self):
        with pytest.raises(MalformedQuestionData):
            parse_question(["type", "list"])


class TestTextHelpers:
    """Test cases for ingestion helpers."""

    def test_parse_starred_options_skips_blank(self):
        options, correct = parse_starred_options(["", "* Yes", "No"])
        assert options == ("Yes", "No")
        assert correct == "Yes"

    def test_looks_like_multiple_choice(self):
        assert looks_like_multiple_choice("a\n*b*")
        assert not looks_like_multiple_choice("just one *answer*")
        assert not looks_like_multiple_choice("a\nb")

    def test_ranking_prompt_helpers(self):
        prompt = "Rank by population, highest first: China, India"
        assert ranking_prompt_text(prompt) == "Rank by population, highest first"
        assert parse_ranking_items(prompt) == ["China", "India"]
        assert infer_ranking_direction("Largest population at the top") == ("1 = greatest / most", "N = least / lowest")
        assert infer_ranking_direction("Order from earliest") == ("1 = earliest", "N = latest")
        assert infer_ranking_direction("Put these in order")[0] == "1 = best fit for the prompt"

    def test_self_score_detection(self):
        question = FindListQuestion("l", "Self-score: name a Beatles song", answers=("Help",))
        assert question.is_self_score
        assert not FindListQuestion("l2", "Name a lake", answers=("Erie",)).is_self_score


class TestQuestionBank:
    """Test cases for the question bank."""

    def setup_method(self):
        """Setup for each test."""
        self.bank = QuestionBank.from_yaml(INPUTS_DIR / "questions.yaml")
        self.rng = random.Random(7)

    def test_loads_every_type(self):
        types = {q.question_type for q in self.bank.all()}
        assert types == set(QuestionType)

    def test_pick_by_type(self):
        picked = self.bank.pick(self.rng, QuestionType.RANKING)
        assert isinstance(picked, RankingQuestion)
        assert self.bank.pick(self.rng, QuestionType.RANKING, Difficulty.VERY_EASY) is None

    def test_reroll_shares_hint(self):
        first = self.bank.get("hint-001")
        other = self.bank.reroll(first, self.rng)
        assert other.question_id == "hint-002"
        assert other.hint == first.hint

    def test_malformed_entries_skipped(self, tmp_path):
        path = tmp_path / "questions.yaml"
        path.write_text(yaml.safe_dump({"questions": [
            {"id": "ok", "type": "open_ended", "question": "Q?", "answer": "A"},
            {"id": "bad", "type": "open_ended", "question": "Q?"},
            "just a string",
            {"id": "lots", "type": "list", "question": "Q?", "answers": ["a", "b"], "minRequired": "lots"},
        ]}))
        bank = QuestionBank.from_yaml(path)
        assert len(bank) == 1
        assert bank.get("ok") is not None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            QuestionBank.from_yaml(tmp_path / "nope.yaml")
