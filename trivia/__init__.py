"""TriviaParty session engine.

Answer evaluation, question scoring and the session/board director.
"""

__version__ = "0.1.0"

from .answers import is_acceptable_against_any, is_acceptable_answer
from .director import ActionResult, DirectorState, SessionDirector
from .errors import EmptyConstructionResult, InvalidTransition, MalformedQuestionData, Rejection
from .scoring import possible_points, resolve_outcome

__all__ = [
    "ActionResult",
    "DirectorState",
    "EmptyConstructionResult",
    "InvalidTransition",
    "MalformedQuestionData",
    "Rejection",
    "SessionDirector",
    "is_acceptable_against_any",
    "is_acceptable_answer",
    "possible_points",
    "resolve_outcome",
]
