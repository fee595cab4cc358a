"""Job handle for cooperative cancellation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class TranslationJob:
    """Mutable status shared between the pipeline and whoever started it.

    The orchestrator checks ``cancelled`` between waves. In-flight requests
    are not aborted; their results are discarded.
    """

    id: str = field(default_factory=lambda: uuid4().hex)
    status: JobStatus = JobStatus.PENDING

    @property
    def cancelled(self) -> bool:
        return self.status == JobStatus.CANCELLED

    def cancel(self) -> None:
        if self.status in (JobStatus.PENDING, JobStatus.RUNNING):
            self.status = JobStatus.CANCELLED

    def start(self) -> None:
        if self.status == JobStatus.PENDING:
            self.status = JobStatus.RUNNING

    def finish(self, status: JobStatus = JobStatus.COMPLETED) -> None:
        if not self.cancelled:
            self.status = status
