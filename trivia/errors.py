"""Error taxonomy for the trivia session engine.

Engine internals raise these exceptions. The SessionDirector catches them at
its public boundary and hands callers a Rejection value instead, so a running
session never crashes on a bad UI event.
"""

from dataclasses import dataclass
from enum import Enum


class RejectionKind(Enum):
    """Why a Director operation was refused."""
    INVALID_TRANSITION = "invalid_transition"
    MALFORMED_QUESTION = "malformed_question"
    EMPTY_CONSTRUCTION = "empty_construction"


class TriviaError(Exception):
    """Base class for all engine errors."""
    kind = RejectionKind.INVALID_TRANSITION


class InvalidTransition(TriviaError):
    """Operation not supported in the current session or play state."""
    kind = RejectionKind.INVALID_TRANSITION


class InvalidAnswerPayload(InvalidTransition):
    """Payload does not fit the active question (unknown item, bad permutation)."""


class MalformedQuestionData(TriviaError):
    """Question payload is missing fields its type requires."""
    kind = RejectionKind.MALFORMED_QUESTION


class EmptyConstructionResult(TriviaError):
    """A board construction strategy found no eligible clues."""
    kind = RejectionKind.EMPTY_CONSTRUCTION


@dataclass(frozen=True)
class Rejection:
    """Explicit failure value returned by the Director."""
    kind: RejectionKind
    message: str

    @classmethod
    def from_error(cls, error: TriviaError) -> "Rejection":
        return cls(kind=error.kind, message=str(error))

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "message": self.message}
