"""Durable step logs for workflow runs.

Each run writes its step records to ``data/runs/{run_id}.jsonl``, one JSON
object per line, appended as steps complete. Re-opening the same run id
loads the records back so a restarted run replays finished steps instead of
repeating them.
"""

import json
import logging
import re
from pathlib import Path

from pydantic import ValidationError

from signalist.workflow.steps import StepRecord

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._@-]+")


class InMemoryStepLog:
    """Step log that lives only as long as the process."""

    def __init__(self) -> None:
        self._records: dict[str, StepRecord] = {}

    def get(self, name: str) -> StepRecord | None:
        return self._records.get(name)

    def append(self, record: StepRecord) -> None:
        self._records[record.name] = record

    def records(self) -> list[StepRecord]:
        return list(self._records.values())

    def discard(self) -> None:
        self._records.clear()


class FileStepLog:
    """JSONL-backed step log that survives process restarts."""

    def __init__(self, path: Path):
        self.path = path
        self._records: dict[str, StepRecord] | None = None

    def _load(self) -> dict[str, StepRecord]:
        if self._records is not None:
            return self._records

        records: dict[str, StepRecord] = {}
        if self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                for line_no, line in enumerate(f, 1):
                    if not line.strip():
                        continue
                    try:
                        record = StepRecord.model_validate(json.loads(line))
                    except (json.JSONDecodeError, ValidationError) as e:
                        # A crash mid-append leaves at most one torn line
                        logger.warning(
                            f"Skipping unreadable step record {self.path}:{line_no}: {e}"
                        )
                        continue
                    records.setdefault(record.name, record)

            logger.info(f"Loaded {len(records)} step records from {self.path}")

        self._records = records
        return records

    def get(self, name: str) -> StepRecord | None:
        return self._load().get(name)

    def append(self, record: StepRecord) -> None:
        records = self._load()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(record.model_dump_json() + "\n")
                f.flush()
        except Exception as e:
            logger.error(f"Failed to record step '{record.name}' to {self.path}: {e}")
            raise

        records[record.name] = record
        logger.debug(f"Recorded step '{record.name}' ({record.status}) to {self.path}")

    def records(self) -> list[StepRecord]:
        return list(self._load().values())

    def discard(self) -> None:
        self.path.unlink(missing_ok=True)
        self._records = {}
        logger.debug(f"Discarded step log {self.path}")


def get_runs_dir(data_dir: Path) -> Path:
    """Directory holding the step logs of unfinished runs."""
    runs_dir = data_dir / "runs"
    runs_dir.mkdir(parents=True, exist_ok=True)
    return runs_dir


def step_log_path(data_dir: Path, run_id: str) -> Path:
    """Filesystem-safe log path for a run id."""
    safe_id = _UNSAFE_CHARS.sub("_", run_id).strip("._") or "run"
    return get_runs_dir(data_dir) / f"{safe_id}.jsonl"


def open_step_log(data_dir: Path, run_id: str) -> FileStepLog:
    """Open (or resume) the durable log for ``run_id``."""
    return FileStepLog(step_log_path(data_dir, run_id))
