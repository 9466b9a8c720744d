"""Clue corpus access: repository interface, in-memory and YAML implementations.

Episode files live under ``<inputs>/episodes/*.yaml``::

    episode:
      episode_id: 9001
      show_number: 8123
      air_date: "2020-01-06"
      season: 36
    categories:
      - name: SCIENCE
        round: single
        clues:
          - prompt: "This element has atomic number 1"
            answer: hydrogen
            value: 200

Per-clue annotations (flags and topic tags) are read from
``<inputs>/annotations.yaml`` when present.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from trivia.board import ClueFilter
from trivia.models import Clue, Episode, Round

logger = logging.getLogger(__name__)

# Cache for parsed episode directories (keyed by directory path)
_EPISODE_CACHE: Dict[str, Tuple[List[Episode], List[Clue]]] = {}


@dataclass
class ClueAnnotation:
    """User-maintained data attached to a clue id."""
    clue_id: str
    flagged: bool = False
    media_flag: bool = False
    topic_tags: Tuple[str, ...] = ()


class ClueAnnotations:
    """Annotation lookup keyed by clue id."""

    def __init__(self, annotations: Optional[Dict[str, ClueAnnotation]] = None):
        self._annotations: Dict[str, ClueAnnotation] = dict(annotations or {})

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ClueAnnotations":
        path = Path(path)
        if not path.exists():
            logger.debug(f"No annotations file at {path}")
            return cls()
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        annotations = {}
        for clue_id, raw in (data.get("annotations") or {}).items():
            raw = raw or {}
            annotations[str(clue_id)] = ClueAnnotation(
                clue_id=str(clue_id),
                flagged=bool(raw.get("flagged", False)),
                media_flag=bool(raw.get("media_flag", raw.get("mediaFlag", False))),
                topic_tags=tuple(raw.get("topic_tags", raw.get("topicTags", ())) or ()),
            )
        logger.info(f"Loaded {len(annotations)} clue annotations from {path}")
        return cls(annotations)

    def get(self, clue_id: str) -> Optional[ClueAnnotation]:
        return self._annotations.get(clue_id)

    def update_flags(self, clue_id: str, flagged: Optional[bool] = None, media_flag: Optional[bool] = None) -> ClueAnnotation:
        current = self._annotations.get(clue_id) or ClueAnnotation(clue_id)
        if flagged is not None:
            current.flagged = flagged
        if media_flag is not None:
            current.media_flag = media_flag
        self._annotations[clue_id] = current
        return current

    def update_tags(self, clue_id: str, topic_tags: List[str]) -> ClueAnnotation:
        current = self._annotations.get(clue_id) or ClueAnnotation(clue_id)
        current.topic_tags = tuple(topic_tags)
        self._annotations[clue_id] = current
        return current

    def all_tags(self) -> List[str]:
        return sorted({tag for a in self._annotations.values() for tag in a.topic_tags})


class ClueRepository(ABC):
    """Read-only access to the clue corpus."""

    @abstractmethod
    def list_clues(self, clue_filter: Optional[ClueFilter] = None) -> List[Clue]:
        """All clues matching ``clue_filter`` (every clue when None)."""

    @abstractmethod
    def get_episode(self, episode_id: int) -> Optional[Episode]:
        pass

    @abstractmethod
    def list_episodes(self) -> List[Episode]:
        pass

    @abstractmethod
    def get_clue(self, clue_id: str) -> Optional[Clue]:
        pass


class InMemoryClueRepository(ClueRepository):
    """Repository over clue and episode lists held in memory."""

    def __init__(
        self,
        clues: List[Clue],
        episodes: Optional[List[Episode]] = None,
        annotations: Optional[ClueAnnotations] = None,
    ):
        self._clues = list(clues)
        self._by_id = {clue.clue_id: clue for clue in self._clues}
        self._episodes = {episode.episode_id: episode for episode in (episodes or [])}
        self.annotations = annotations or ClueAnnotations()

    def list_clues(self, clue_filter: Optional[ClueFilter] = None) -> List[Clue]:
        if clue_filter is None:
            return list(self._clues)
        return [
            clue for clue in self._clues
            if clue_filter.matches(
                clue,
                self.annotations.get(clue.clue_id),
                self._episodes.get(clue.episode_id),
            )
        ]

    def get_episode(self, episode_id: int) -> Optional[Episode]:
        return self._episodes.get(episode_id)

    def list_episodes(self) -> List[Episode]:
        return sorted(self._episodes.values(), key=lambda e: e.episode_id)

    def get_clue(self, clue_id: str) -> Optional[Clue]:
        return self._by_id.get(clue_id)


def make_clue_id(episode_id: int, round: Round, category_index: int, row_index: int) -> str:
    """Stable id: ``g<episode>-<round initial>-c<category>-r<row>``."""
    return f"g{episode_id}-{round.value[0]}-c{category_index}-r{row_index}"


def parse_episode_file(data: Dict[str, Any], source: str = "") -> Tuple[Episode, List[Clue]]:
    """Build an episode and its clues from one parsed YAML document."""
    meta = data.get("episode") or {}
    if "episode_id" not in meta:
        raise ValueError(f"Episode file {source} has no episode_id")
    episode = Episode(
        episode_id=int(meta["episode_id"]),
        show_number=int(meta.get("show_number") or 0),
        air_date=str(meta.get("air_date") or ""),
        season=meta.get("season"),
        is_special=bool(meta.get("is_special", False)),
        tournament_type=meta.get("tournament_type"),
    )

    clues: List[Clue] = []
    positions: Dict[Round, int] = {}
    for category in data.get("categories") or []:
        round = Round.parse(category.get("round", "single"))
        cat_index = category.get("position", positions.get(round, 0))
        positions[round] = cat_index + 1
        for row, raw in enumerate(category.get("clues") or []):
            row_index = int(raw.get("row_index", row))
            clues.append(Clue(
                clue_id=str(raw.get("clue_id") or make_clue_id(episode.episode_id, round, cat_index, row_index)),
                prompt=str(raw.get("prompt", "")),
                answer=str(raw.get("answer", "")),
                category=str(category.get("name", "")),
                round=round,
                value=None if round is Round.FINAL else raw.get("value"),
                alternate_answers=tuple(raw.get("alternate_answers") or ()),
                daily_double=bool(raw.get("daily_double", False)),
                triple_stumper=bool(raw.get("triple_stumper", False)),
                episode_id=episode.episode_id,
                row_index=row_index,
                topic_tags=tuple(raw.get("topic_tags") or ()),
            ))
    return episode, clues


class YamlClueRepository(InMemoryClueRepository):
    """Repository backed by ``episodes/*.yaml`` under an inputs directory."""

    def __init__(self, inputs_dir: Union[str, Path]):
        self.inputs_dir = Path(inputs_dir)
        episodes, clues = self._load_episodes(self.inputs_dir / "episodes")
        annotations = ClueAnnotations.from_yaml(self.inputs_dir / "annotations.yaml")
        super().__init__(clues, episodes, annotations)

    @staticmethod
    def _load_episodes(episodes_dir: Path) -> Tuple[List[Episode], List[Clue]]:
        cache_key = str(episodes_dir.resolve())
        if cache_key in _EPISODE_CACHE:
            return _EPISODE_CACHE[cache_key]

        if not episodes_dir.is_dir():
            logger.error(f"Episodes directory not found: {episodes_dir}")
            raise FileNotFoundError(episodes_dir)

        episodes: List[Episode] = []
        clues: List[Clue] = []
        for path in sorted(episodes_dir.glob("*.yaml")):
            try:
                with open(path, "r") as f:
                    data = yaml.safe_load(f) or {}
                episode, episode_clues = parse_episode_file(data, source=path.name)
            except (yaml.YAMLError, ValueError) as e:
                logger.error(f"Error loading episode file {path}: {e}")
                raise
            episodes.append(episode)
            clues.extend(episode_clues)

        logger.info(f"Loaded {len(episodes)} episodes ({len(clues)} clues) from {episodes_dir}")
        _EPISODE_CACHE[cache_key] = (episodes, clues)
        return episodes, clues
