"""Run statistics shared by every task of one documentation run."""

import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

COUNTERS = (
    "packages_total",
    "batches_total",
    "batches_processed",
    "files_total",
    "files_processed",
    "files_modified",
    "units_considered",
    "units_succeeded",
    "units_failed",
    "units_skipped",
    "embeddings_succeeded",
    "embeddings_failed",
    "relationships_discovered",
)


@dataclass(frozen=True)
class ErrorRecord:
    """One recorded failure.

    Attributes:
        file_path: File being processed.
        message: Error message.
        unit_id: Declaration id, if the failure concerned one unit.
        unit_name: Declaration name.
        stack: Formatted traceback, if available.
        timestamp: When the failure was recorded.
    """

    file_path: str
    message: str
    unit_id: str | None = None
    unit_name: str | None = None
    stack: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class RunStatistics:
    """Aggregate counters for one run.

    Mutations go through ``increment`` and ``record_error``, which hold a
    lock so concurrent file tasks can update the same instance. After
    ``finish`` the statistics are read-only.
    """

    dry_run: bool = False
    packages_total: int = 0
    batches_total: int = 0
    batches_processed: int = 0
    files_total: int = 0
    files_processed: int = 0
    files_modified: int = 0
    units_considered: int = 0
    units_succeeded: int = 0
    units_failed: int = 0
    units_skipped: int = 0
    embeddings_succeeded: int = 0
    embeddings_failed: int = 0
    relationships_discovered: int = 0
    errors: list[ErrorRecord] = field(default_factory=list)
    start_time: float = field(default_factory=time.monotonic)
    end_time: float | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def finished(self) -> bool:
        return self.end_time is not None

    @property
    def duration_seconds(self) -> float:
        end = self.end_time if self.end_time is not None else time.monotonic()
        return end - self.start_time

    def _check_open(self) -> None:
        if self.finished:
            raise RuntimeError("Run statistics are read-only after finish()")

    def increment(self, counter: str, amount: int = 1) -> None:
        """Add amount to a named counter.

        Raises:
            ValueError: If counter is not a known counter name.
            RuntimeError: If the run has finished.
        """
        if counter not in COUNTERS:
            raise ValueError(f"Unknown counter: {counter}")
        with self._lock:
            self._check_open()
            setattr(self, counter, getattr(self, counter) + amount)

    def record_error(
        self,
        file_path: str,
        message: str,
        unit_id: str | None = None,
        unit_name: str | None = None,
        stack: str | None = None,
    ) -> ErrorRecord:
        """Append an error record."""
        record = ErrorRecord(
            file_path=file_path,
            message=message,
            unit_id=unit_id,
            unit_name=unit_name,
            stack=stack,
        )
        with self._lock:
            self._check_open()
            self.errors.append(record)
        return record

    def finish(self) -> None:
        """Freeze the statistics. Calling it twice is a no-op."""
        with self._lock:
            if self.end_time is None:
                self.end_time = time.monotonic()

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for reporting."""
        data: dict[str, Any] = {name: getattr(self, name) for name in COUNTERS}
        data["dry_run"] = self.dry_run
        data["duration_seconds"] = round(self.duration_seconds, 3)
        data["errors"] = [
            {**asdict(e), "timestamp": e.timestamp.isoformat()} for e in self.errors
        ]
        return data
