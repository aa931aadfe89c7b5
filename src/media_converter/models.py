"""Domain models for a conversion batch."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from .detection import MediaKind
from .handles import DirectoryHandle, FileHandle


@dataclass(frozen=True, slots=True)
class ConversionTask:
    """One candidate file, as found by discovery or picked directly."""

    source: FileHandle
    relative_path: str
    parent: DirectoryHandle | None = None

    def __post_init__(self) -> None:
        if not self.relative_path:
            raise ValueError("relative_path must not be empty")

    @property
    def name(self) -> str:
        return self.source.name


class SelectionOrigin(str, Enum):
    FOLDER = "folder"
    FILES = "files"
    DROP = "drop"


@dataclass(slots=True)
class Selection:
    tasks: list[ConversionTask]
    origin: SelectionOrigin


class OutcomeStatus(str, Enum):
    CONVERTED = "converted"
    SKIPPED = "skipped"
    FAILED = "failed"


class FailureKind(str, Enum):
    PERMISSION_DENIED = "permission_denied"
    CODEC_FAILURE = "codec_failure"
    IO_FAILURE = "io_failure"
    SIZE_LIMIT = "size_limit"


@dataclass(frozen=True, slots=True)
class TaskOutcome:
    task: ConversionTask
    status: OutcomeStatus
    kind: MediaKind
    output_name: str | None = None
    failure: FailureKind | None = None
    error_code: str | None = None
    message: str | None = None
    warnings: tuple[str, ...] = ()

    @classmethod
    def skipped(cls, task: ConversionTask) -> TaskOutcome:
        return cls(task=task, status=OutcomeStatus.SKIPPED, kind=MediaKind.UNSUPPORTED)

    @classmethod
    def failed(
        cls,
        task: ConversionTask,
        kind: MediaKind,
        failure: FailureKind,
        *,
        error_code: str | None = None,
        message: str | None = None,
    ) -> TaskOutcome:
        return cls(
            task=task,
            status=OutcomeStatus.FAILED,
            kind=kind,
            failure=failure,
            error_code=error_code or failure.value.upper(),
            message=message,
        )


class BatchPhase(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    READY = "ready"
    CONVERTING = "converting"
    COMPLETED = "completed"


@dataclass(slots=True)
class BatchState:
    """Progress counters for the loaded tasks; read by progress displays."""

    phase: BatchPhase = BatchPhase.IDLE
    total_tasks: int = 0
    total_convertible: int = 0
    converted: int = 0
    skipped: int = 0
    failed: int = 0
    summary: str = "No folder selected."

    @property
    def is_running(self) -> bool:
        return self.phase is BatchPhase.CONVERTING

    @property
    def visited(self) -> int:
        return self.converted + self.skipped + self.failed

    @property
    def progress_percent(self) -> int:
        if self.total_convertible <= 0:
            return 0
        return round(self.converted / self.total_convertible * 100)

    def record(self, outcome: TaskOutcome) -> None:
        if outcome.status is OutcomeStatus.CONVERTED:
            self.converted += 1
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    def snapshot(self) -> BatchState:
        return replace(self)

    def as_dict(self) -> dict[str, object]:
        return {
            "phase": self.phase.value,
            "is_running": self.is_running,
            "total_tasks": self.total_tasks,
            "total_convertible": self.total_convertible,
            "converted": self.converted,
            "skipped": self.skipped,
            "failed": self.failed,
            "progress_percent": self.progress_percent,
            "summary": self.summary,
        }


@dataclass(slots=True)
class BatchResult:
    batch_id: str
    state: BatchState
    outcomes: list[TaskOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


__all__ = [
    "BatchPhase",
    "BatchResult",
    "BatchState",
    "ConversionTask",
    "FailureKind",
    "OutcomeStatus",
    "Selection",
    "SelectionOrigin",
    "TaskOutcome",
]
