"""Game settings with YAML overrides."""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "TRIVIA_DATA_DIR"
DEFAULT_SETTINGS_FILE = "settings.yaml"


@dataclass
class GameSettings:
    """Tunable rules for board construction and question play."""

    # Board shaping
    category_count: int = 6
    clues_per_category: int = 5
    include_double: bool = True
    include_final: bool = True
    auto_advance_rounds: bool = True

    # Find-n-of-m
    list_scoring: str = "target"
    list_attempt_mode: str = "unlimited"
    list_timer_seconds: int = 30
    list_timer_hard_seconds: int = 60
    list_strikes: int = 3

    # Classify-into-group
    grouping_mode: str = "elimination"
    grouping_grid_size: int = 16
    grouping_max_correct: int = 8

    # This-or-that
    this_or_that_mode: str = "standard"
    this_or_that_items: int = 5

    # Ranking
    ranking_mode: str = "one_shot"

    # Stats
    outcome_history_limit: int = 30

    MIN_CATEGORIES = 2
    MAX_CATEGORIES = 8

    def __post_init__(self):
        if not self.MIN_CATEGORIES <= self.category_count <= self.MAX_CATEGORIES:
            raise ValueError(
                f"category_count must be between {self.MIN_CATEGORIES} and "
                f"{self.MAX_CATEGORIES}, got {self.category_count}"
            )
        if self.clues_per_category < 1:
            raise ValueError("clues_per_category must be positive")

    def with_overrides(self, **overrides: Any) -> "GameSettings":
        """Copy with non-None overrides applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return GameSettings(**values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameSettings":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})


def resolve_data_dir(data_dir: Optional[Union[str, Path]] = None) -> Path:
    """Inputs directory: explicit path, then $TRIVIA_DATA_DIR, then ./inputs."""
    if data_dir:
        return Path(data_dir)
    env_dir = os.getenv(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    cwd_inputs = Path("inputs")
    if cwd_inputs.exists():
        return cwd_inputs
    return Path(__file__).parent.parent / "inputs"


def load_settings(path: Optional[Union[str, Path]] = None) -> GameSettings:
    """Load settings from YAML; missing default file yields defaults."""
    settings_path = Path(path) if path else resolve_data_dir() / DEFAULT_SETTINGS_FILE
    if not settings_path.exists():
        if path:
            logger.error(f"Settings file not found: {settings_path}")
            raise FileNotFoundError(settings_path)
        logger.debug(f"No settings file at {settings_path}, using defaults")
        return GameSettings()

    with open(settings_path, "r") as f:
        data = yaml.safe_load(f) or {}
    logger.info(f"Loaded settings from {settings_path}")
    return GameSettings.from_dict(data.get("settings", data))
