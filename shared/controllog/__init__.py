"""Controllable logging SDK: structured session events as JSONL.

Events cover:
- State transitions (state_move)
- Resolved clues and questions (clue_outcome)
- Session completion (session_complete)
"""

from .sdk import init, event, new_id
from .builders import (
    clue_outcome,
    session_complete,
    state_move,
)

__all__ = [
    "init",
    "event",
    "new_id",
    "clue_outcome",
    "session_complete",
    "state_move",
]
