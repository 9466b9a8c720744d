"""Shared infrastructure for TriviaParty.

- controllog: structured JSONL event log for session analytics
- utils: common utilities (JSON logging setup)
"""

__version__ = "0.1.0"
