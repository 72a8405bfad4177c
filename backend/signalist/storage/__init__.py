"""Storage layer for Signalist - file-based persistence.

This package provides:
- Durable step logs for workflow runs (data/runs/{run_id}.jsonl)
- Subscriber directory (data/subscribers.yaml)
"""

# Step logs
from .step_log import (
    FileStepLog,
    InMemoryStepLog,
    get_runs_dir,
    open_step_log,
    step_log_path,
)

# Subscribers
from .subscribers import SubscriberDirectory, SubscriberFile, UserEntry

__all__ = [
    # Step logs
    "FileStepLog",
    "InMemoryStepLog",
    "get_runs_dir",
    "open_step_log",
    "step_log_path",
    # Subscribers
    "SubscriberDirectory",
    "SubscriberFile",
    "UserEntry",
]
