"""Fuzzy grading of free-form answers.

Human-typed answers carry typos, truncations and partial phrasing, so several
increasingly permissive rules are layered, each gated so that trivial inputs
(single characters, very short strings) never match by accident:

1. exact match on normalized text
2. a single token (3+ chars) that appears as a whole token in the canonical
3. bounded Levenshtein distance, scaled by length (both strings 3+ chars)
4. token overlap for multi-word submissions
"""

import re
from typing import Iterable, List, Optional

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")

MIN_SUBMISSION_LENGTH = 2
MIN_TOKEN_LENGTH = 3
MIN_FUZZY_LENGTH = 3


def normalize_answer(text: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    if not text:
        return ""
    lowered = _NON_ALNUM.sub(" ", text.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute all cost 1)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            ))
        previous = current
    return previous[-1]


def edit_distance_threshold(max_length: int) -> int:
    """Allowed typo budget for strings of the given (longer) length."""
    if max_length <= 6:
        return 1
    if max_length <= 12:
        return 2
    return 3


def is_acceptable_answer(submitted: str, canonical: str) -> bool:
    """Return True if ``submitted`` should be graded correct for ``canonical``."""
    guess = normalize_answer(submitted)
    target = normalize_answer(canonical)
    if len(guess) < MIN_SUBMISSION_LENGTH or not target:
        return False

    if guess == target:
        return True

    guess_tokens = guess.split(" ")
    target_tokens = target.split(" ")

    if len(guess_tokens) == 1 and len(guess) >= MIN_TOKEN_LENGTH and guess in target_tokens:
        return True

    if len(guess) >= MIN_FUZZY_LENGTH and len(target) >= MIN_FUZZY_LENGTH:
        distance = levenshtein(guess, target)
        if distance <= edit_distance_threshold(max(len(guess), len(target))):
            return True

    if len(guess_tokens) >= 2:
        target_set = set(target_tokens)
        overlap = len(set(guess_tokens) & target_set)
        if overlap >= min(2, len(guess_tokens)):
            return True

    return False


def is_acceptable_against_any(submitted: str, canonical_list: Iterable[str]) -> bool:
    """True if any non-empty canonical answer accepts the submission."""
    return match_canonical(submitted, canonical_list) is not None


def match_canonical(submitted: str, pool: Iterable[str]) -> Optional[str]:
    """Return the first pool entry that accepts ``submitted``, else None."""
    for candidate in pool:
        if candidate and is_acceptable_answer(submitted, candidate):
            return candidate
    return None


def accepted_answers(answer: str, alternates: Iterable[str] = ()) -> List[str]:
    """Canonical answer followed by non-empty alternates."""
    return [text for text in [answer, *alternates] if text and text.strip()]
