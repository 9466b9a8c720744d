"""Typed event builders for session analytics."""

from typing import Any, Dict, Optional

from .sdk import event


def state_move(
    task_id: str,
    from_: str,
    to: str,
    project_id: str,
    agent_id: str,
    run_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> str:
    """A state machine transition."""
    body = {"from": from_, "to": to}
    body.update(payload or {})
    return event(
        kind="state_move",
        payload=body,
        project_id=project_id,
        run_id=run_id,
        task_id=task_id,
        agent_id=agent_id,
    )


def clue_outcome(
    task_id: str,
    project_id: str,
    clue_or_question_id: str,
    outcome: str,
    points_earned: int,
    points_possible: int,
    score_delta: int = 0,
    kind: str = "clue",
    team: Optional[str] = None,
    run_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> str:
    """One resolved clue or question."""
    body = {
        "clue_or_question_id": clue_or_question_id,
        "kind": kind,
        "outcome": outcome,
        "points_earned": points_earned,
        "points_possible": points_possible,
        "score_delta": score_delta,
        "team": team,
    }
    body.update(payload or {})
    return event(
        kind="clue_outcome",
        payload=body,
        project_id=project_id,
        run_id=run_id,
        task_id=task_id,
    )


def session_complete(
    task_id: str,
    project_id: str,
    session_id: str,
    mode: str,
    final_score: int,
    team_scores: Dict[str, int],
    correct: int,
    incorrect: int,
    skipped: int,
    episode_id: Optional[int] = None,
    run_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> str:
    """Emitted once when a session ends."""
    body = {
        "session_id": session_id,
        "mode": mode,
        "final_score": final_score,
        "team_scores": dict(team_scores),
        "episode_id": episode_id,
        "correct": correct,
        "incorrect": incorrect,
        "skipped": skipped,
    }
    body.update(payload or {})
    return event(
        kind="session_complete",
        payload=body,
        project_id=project_id,
        run_id=run_id,
        task_id=task_id,
    )
