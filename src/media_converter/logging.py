from __future__ import annotations

import csv
import json
import time
from dataclasses import asdict, dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any

from .config import AppConfig
from .models import BatchState, TaskOutcome
from .utils import atomic_write

SUMMARY_HEADER = ["batch_id", "timestamp", "total", "converted", "skipped", "failed"]


@dataclass(slots=True)
class RunLogEntry:
    batch_id: str
    source: str
    status: str
    media_kind: str
    output_name: str | None
    error_code: str | None
    message: str | None
    warnings: list[str]
    size_bytes: int
    elapsed_ms: float

    @classmethod
    def from_outcome(
        cls, batch_id: str, outcome: TaskOutcome, *, size_bytes: int, elapsed_ms: float
    ) -> RunLogEntry:
        return cls(
            batch_id=batch_id,
            source=outcome.task.relative_path,
            status=outcome.status.value,
            media_kind=outcome.kind.value,
            output_name=outcome.output_name,
            error_code=outcome.error_code,
            message=outcome.message,
            warnings=list(outcome.warnings),
            size_bytes=size_bytes,
            elapsed_ms=round(elapsed_ms, 3),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class RunLogger:
    def __init__(self, log_file: Path) -> None:
        self._log_file = log_file

    @property
    def log_file(self) -> Path:
        return self._log_file

    def append(self, entry: RunLogEntry) -> None:
        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with self._log_file.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")


@dataclass(slots=True)
class BatchSummary:
    batch_id: str
    timestamp: float = field(default_factory=time.time)
    total: int = 0
    converted: int = 0
    skipped: int = 0
    failed: int = 0

    @classmethod
    def from_state(cls, batch_id: str, state: BatchState) -> BatchSummary:
        return cls(
            batch_id=batch_id,
            total=state.total_tasks,
            converted=state.converted,
            skipped=state.skipped,
            failed=state.failed,
        )

    def as_row(self) -> list[str]:
        return [
            self.batch_id,
            time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.timestamp)),
            str(self.total),
            str(self.converted),
            str(self.skipped),
            str(self.failed),
        ]


def batch_logger(config: AppConfig, batch_id: str) -> RunLogger:
    return RunLogger(config.runtime.output_dir / batch_id / config.runtime.log_file)


def write_summary_csv(path: Path, header: list[str], rows: list[list[str]]) -> None:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(header)
    writer.writerows(rows)
    atomic_write(path, buffer.getvalue())


def append_batch_summary(config: AppConfig, summary: BatchSummary) -> Path:
    summary_path = config.runtime.output_dir / config.runtime.summary_csv
    header = SUMMARY_HEADER
    rows: list[list[str]] = []
    if summary_path.exists():
        with summary_path.open("r", encoding="utf-8", newline="") as handle:
            reader = list(csv.reader(handle))
        if reader:
            header = reader[0]
            rows = reader[1:]
    rows.append(summary.as_row())
    write_summary_csv(summary_path, header, rows)
    return summary_path
