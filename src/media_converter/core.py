from __future__ import annotations

import threading
import time
from typing import Callable, Mapping

from .adapters import CodecAdapter, create_adapter
from .config import AppConfig
from .detection import MediaKind, classify
from .errors import BatchInProgressError, CodecError
from .handles import ensure_read_write_permission
from .logging import BatchSummary, RunLogEntry, RunLogger, append_batch_summary, batch_logger
from .models import (
    BatchPhase,
    BatchResult,
    BatchState,
    ConversionTask,
    FailureKind,
    OutcomeStatus,
    Selection,
    SelectionOrigin,
    TaskOutcome,
)
from .utils import generate_run_id, replace_extension

ProgressCallback = Callable[[BatchState], None]
LoggerFactory = Callable[[AppConfig, str], RunLogger]

_LOADED_MESSAGES: dict[SelectionOrigin, str] = {
    SelectionOrigin.FOLDER: "Loaded {count} files from selected folder.",
    SelectionOrigin.FILES: "Loaded {count} file(s).",
    SelectionOrigin.DROP: "Loaded {count} files from dropped folders.",
}


class ConversionEngine:
    """Runs one batch of in-place conversions at a time.

    Tasks are visited strictly in order. Each task resolves to a
    :class:`TaskOutcome` that is folded into the batch counters, so a failing
    item is recorded and the loop moves on. The codec adapters are created on
    first use and kept for the lifetime of the engine.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        adapters: Mapping[MediaKind, CodecAdapter] | None = None,
        progress: ProgressCallback | None = None,
        logger: LoggerFactory | None = None,
    ) -> None:
        self._config = config
        self._adapters: dict[MediaKind, CodecAdapter] = dict(adapters or {})
        self._progress = progress or (lambda _: None)
        self._logger_factory = logger or batch_logger
        self._tasks: list[ConversionTask] = []
        self._state = BatchState()
        self._run_lock = threading.Lock()

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def state(self) -> BatchState:
        return self._state.snapshot()

    @property
    def tasks(self) -> tuple[ConversionTask, ...]:
        return tuple(self._tasks)

    def set_progress_callback(self, progress: ProgressCallback | None) -> None:
        self._progress = progress or (lambda _: None)

    def classify(self, task: ConversionTask) -> MediaKind:
        return classify(task.name, self._config.formats)

    def convertible_count(self, tasks: list[ConversionTask] | None = None) -> int:
        return sum(1 for task in (self._tasks if tasks is None else tasks) if self.classify(task).convertible)

    def scan(self, loader: Callable[[], Selection]) -> BatchState:
        """Replace the loaded tasks with the selection produced by ``loader``.

        Errors from ``loader`` propagate and leave the previous tasks loaded.
        """

        self._ensure_not_running()
        previous = self._state
        self._state = BatchState(phase=BatchPhase.SCANNING, summary="Scanning...")
        try:
            selection = loader()
        except Exception:
            self._state = previous
            raise
        return self.load_selection(selection)

    def load_selection(self, selection: Selection) -> BatchState:
        self._ensure_not_running()
        self._tasks = list(selection.tasks)
        count = len(self._tasks)
        self._state = BatchState(
            phase=BatchPhase.READY,
            total_tasks=count,
            total_convertible=self.convertible_count(),
            summary=_LOADED_MESSAGES[selection.origin].format(count=count),
        )
        return self.state

    def process_items(self) -> BatchResult | None:
        """Convert every loaded task; a no-op while empty or already running."""

        if not self._tasks:
            return None
        if not self._run_lock.acquire(blocking=False):
            return None
        try:
            return self._run_batch(list(self._tasks))
        finally:
            self._run_lock.release()

    def close(self) -> None:
        for adapter in self._adapters.values():
            adapter.close()
        self._adapters.clear()

    def _ensure_not_running(self) -> None:
        if self._run_lock.locked():
            raise BatchInProgressError("A batch is already converting.")

    def _run_batch(self, tasks: list[ConversionTask]) -> BatchResult:
        batch_id = generate_run_id("batch")
        logger = self._logger_factory(self._config, batch_id)
        self._state = BatchState(
            phase=BatchPhase.CONVERTING,
            total_tasks=len(tasks),
            total_convertible=self.convertible_count(tasks),
            summary="Converting files...",
        )
        self._publish()

        outcomes: list[TaskOutcome] = []
        warnings: list[str] = []
        log_broken = False
        for task in tasks:
            start = time.perf_counter()
            outcome, size_bytes = self._process_task(task)
            self._state.record(outcome)
            outcomes.append(outcome)
            self._publish()
            if log_broken:
                continue
            elapsed_ms = (time.perf_counter() - start) * 1000
            try:
                logger.append(
                    RunLogEntry.from_outcome(batch_id, outcome, size_bytes=size_bytes, elapsed_ms=elapsed_ms)
                )
            except OSError as exc:
                # stop logging for this batch, keep converting
                log_broken = True
                warnings.append(f"RUN_LOG_UNAVAILABLE: {exc}")

        state = self._state
        state.phase = BatchPhase.COMPLETED
        state.summary = f"Done. Converted {state.converted}, skipped {state.skipped}, failed {state.failed}."
        try:
            append_batch_summary(self._config, BatchSummary.from_state(batch_id, state))
        except OSError as exc:
            warnings.append(f"SUMMARY_UNAVAILABLE: {exc}")
        self._publish()
        return BatchResult(batch_id=batch_id, state=self.state, outcomes=outcomes, warnings=warnings)

    def _process_task(self, task: ConversionTask) -> tuple[TaskOutcome, int]:
        kind = self.classify(task)
        if not kind.convertible:
            return TaskOutcome.skipped(task), 0

        permission_target = task.parent if task.parent is not None else task.source
        try:
            granted = ensure_read_write_permission(permission_target)
        except Exception as exc:
            return TaskOutcome.failed(task, kind, FailureKind.PERMISSION_DENIED, message=str(exc)), 0
        if not granted:
            return TaskOutcome.failed(task, kind, FailureKind.PERMISSION_DENIED), 0

        size_bytes = 0
        try:
            size_bytes = task.source.size()
            if size_bytes > self._config.runtime.max_file_size_mb * 1024 * 1024:
                message = f"{task.name} exceeds {self._config.runtime.max_file_size_mb} MB"
                return TaskOutcome.failed(task, kind, FailureKind.SIZE_LIMIT, message=message), size_bytes
            data = task.source.read_bytes()
            response = self._adapter_for(kind).convert(data, task.name)
            output_name = replace_extension(task.name, kind.output_extension or "")
            self._write_back(task, output_name, response.payload)
        except CodecError as exc:
            outcome = TaskOutcome.failed(
                task, kind, FailureKind.CODEC_FAILURE, error_code=exc.code, message=str(exc)
            )
            return outcome, size_bytes
        except OSError as exc:
            return TaskOutcome.failed(task, kind, FailureKind.IO_FAILURE, message=str(exc)), size_bytes
        except Exception as exc:
            outcome = TaskOutcome.failed(
                task,
                kind,
                FailureKind.CODEC_FAILURE,
                error_code="UNEXPECTED_ERROR",
                message=f"{type(exc).__name__}: {exc}",
            )
            return outcome, size_bytes

        outcome = TaskOutcome(
            task=task,
            status=OutcomeStatus.CONVERTED,
            kind=kind,
            output_name=output_name,
            warnings=tuple(response.warnings),
        )
        return outcome, size_bytes

    def _adapter_for(self, kind: MediaKind) -> CodecAdapter:
        adapter = self._adapters.get(kind)
        if adapter is None:
            adapter = create_adapter(kind, self._config)
            self._adapters[kind] = adapter
        adapter.ensure_initialized()
        return adapter

    def _write_back(self, task: ConversionTask, output_name: str, payload: bytes) -> None:
        if task.parent is None:
            # no container to create a sibling in: the name stays, the content changes
            task.source.write_bytes(payload)
            return
        destination = task.parent.get_file_handle(output_name, create=True)
        destination.write_bytes(payload)
        if output_name != task.name:
            task.parent.remove_entry(task.name)

    def _publish(self) -> None:
        self._progress(self.state)


__all__ = ["ConversionEngine", "ProgressCallback"]
