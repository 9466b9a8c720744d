"""JSON-formatted logging utilities."""

import json
import logging
from datetime import datetime
from pathlib import Path


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logger(log_dir: Path, verbose: bool = False) -> Path:
    """Attach a JSONL file handler (and a console handler when verbose).

    Returns the path of the log file for this run.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"trivia_{datetime.now().strftime('%Y%m%d_%H%M%S')}.jsonl"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(root.handlers):
        if getattr(handler, "_trivia_handler", False):
            root.removeHandler(handler)

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(JSONFormatter())
    file_handler._trivia_handler = True
    root.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        console_handler._trivia_handler = True
        root.addHandler(console_handler)

    return log_file
