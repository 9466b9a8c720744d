"""Minimal event writer: one JSON object per line in ``events.jsonl``."""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

_STATE: Dict[str, Any] = {
    "project_id": None,
    "log_dir": None,
}

EVENTS_FILE = "events.jsonl"


def init(project_id: str, log_dir: Path) -> None:
    """Set the default project and output directory for subsequent events."""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    _STATE["project_id"] = project_id
    _STATE["log_dir"] = log_dir


def new_id() -> str:
    return str(uuid.uuid4())


def _write_jsonl(path: Path, data: Dict[str, Any]) -> None:
    with open(path, "a") as f:
        f.write(json.dumps(data, default=str) + "\n")


def event(
    kind: str,
    payload: Optional[Dict[str, Any]] = None,
    project_id: Optional[str] = None,
    run_id: Optional[str] = None,
    task_id: Optional[str] = None,
    agent_id: Optional[str] = None,
) -> str:
    """Write one event and return its id."""
    if _STATE["log_dir"] is None:
        raise RuntimeError("controllog.init() must be called before emitting events")

    event_id = new_id()
    data = {
        "event_id": event_id,
        "kind": kind,
        "event_time": datetime.now(timezone.utc).isoformat(),
        "project_id": project_id or _STATE["project_id"],
        "run_id": run_id,
        "task_id": task_id,
        "agent_id": agent_id,
        "payload_json": payload or {},
    }
    _write_jsonl(_STATE["log_dir"] / EVENTS_FILE, data)
    return event_id
