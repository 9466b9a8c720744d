"""Shared corpus builders for the trivia tests."""

from typing import List

from trivia.models import Clue, Episode, Round
from trivia.repository import InMemoryClueRepository, make_clue_id

SINGLE_VALUES = [200, 400, 600, 800, 1000]
DOUBLE_VALUES = [400, 800, 1200, 1600, 2000]

SINGLE_CATEGORIES = ["HISTORY", "SCIENCE", "SPORTS", "MUSIC", "FILM", "FOOD"]
DOUBLE_CATEGORIES = ["RIVERS", "POETS", "BIRDS", "OPERA", "CARS", "GAMES"]


def make_clue(episode_id, round, cat_index, row, category, value=None, **kwargs) -> Clue:
    defaults = {
        "prompt": f"{category} prompt {row}",
        "answer": f"{category.lower()} answer {row}",
    }
    defaults.update(kwargs)
    return Clue(
        clue_id=make_clue_id(episode_id, round, cat_index, row),
        category=category,
        round=round,
        value=value,
        episode_id=episode_id,
        row_index=row,
        **defaults,
    )


def build_episode_one() -> List[Clue]:
    """Full episode: 6x5 single, 6x5 double, one final."""
    clues = []
    for cat_index, name in enumerate(SINGLE_CATEGORIES):
        for row, value in enumerate(SINGLE_VALUES):
            extra = {}
            if name == "HISTORY" and row == 2:
                extra["daily_double"] = True
            if name == "SCIENCE" and row == 0:
                extra.update(prompt="Smallest unit of an element", answer="atom")
            if name == "SPORTS" and row == 4:
                extra["triple_stumper"] = True
            clues.append(make_clue(1, Round.SINGLE, cat_index, row, name, value, **extra))
    for cat_index, name in enumerate(DOUBLE_CATEGORIES):
        for row, value in enumerate(DOUBLE_VALUES):
            extra = {"daily_double": True} if name == "POETS" and row == 3 else {}
            clues.append(make_clue(1, Round.DOUBLE, cat_index, row, name, value, **extra))
    clues.append(make_clue(
        1, Round.FINAL, 0, 0, "FAMOUS SHIPS",
        prompt="Darwin sailed aboard this ship",
        answer="HMS Beagle",
        alternate_answers=("Beagle",),
    ))
    return clues


def build_episode_two() -> List[Clue]:
    """Short special: two single-round categories and a final."""
    clues = []
    for cat_index, name in enumerate(["CAPITALS", "PLANETS"]):
        for row, value in enumerate(SINGLE_VALUES):
            clues.append(make_clue(2, Round.SINGLE, cat_index, row, name, value))
    clues.append(make_clue(2, Round.FINAL, 0, 0, "WORDS", prompt="Seven-day span", answer="week"))
    return clues


def build_repository() -> InMemoryClueRepository:
    episodes = [
        Episode(episode_id=1, show_number=8123, air_date="2020-01-06", season=36),
        Episode(episode_id=2, show_number=8500, air_date="2021-11-08", season=37,
                is_special=True, tournament_type="Tournament of Champions"),
    ]
    return InMemoryClueRepository(build_episode_one() + build_episode_two(), episodes)
