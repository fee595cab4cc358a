"""Progress event stream for translation jobs.

The pipeline is the only producer: it emits events through a ProgressReporter,
which owns all debounce and ordering state for one job. Consumers (CLI progress
bars, web sockets, job stores) register a callback and receive events in order.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from subai.utils.console import console


class ProgressStage(str, Enum):
    INITIALIZING = "initializing"
    ANALYZING = "analyzing"
    RESEARCHING = "researching"
    ANALYZING_CONTENT = "analyzing_content"
    TRANSLATING = "translating"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STAGES = frozenset({ProgressStage.COMPLETED, ProgressStage.ERROR})


@dataclass(frozen=True)
class ProgressEvent:
    """A progress event emitted during a translation job.

    Attributes:
        stage: Pipeline stage.
        progress: Overall job progress, 0 to 100.
        details: Optional human-readable or JSON detail payload.
    """

    stage: ProgressStage
    progress: float
    details: str | None = None


EventCallback = Callable[[ProgressEvent], None]


class ProgressReporter:
    """Per-job progress producer.

    Guarantees that delivered ``progress`` values never decrease. Updates
    within the same stage are dropped if they arrive less than
    ``min_interval`` seconds after the previous delivery; stage changes and
    terminal events are always delivered.
    """

    def __init__(
        self,
        on_event: EventCallback | None = None,
        min_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._on_event = on_event
        self._min_interval = min_interval
        self._clock = clock
        self._last_time: float | None = None
        self._last_stage: ProgressStage | None = None
        self._last_progress = 0.0
        self.history: list[ProgressEvent] = []

    @property
    def last_progress(self) -> float:
        return self._last_progress

    def emit(
        self,
        stage: ProgressStage,
        progress: float,
        details: str | None = None,
        force: bool = False,
    ) -> bool:
        """Emit an event. Returns True if it was delivered."""
        now = self._clock()
        same_stage = stage == self._last_stage
        if (
            not force
            and same_stage
            and stage not in TERMINAL_STAGES
            and self._last_time is not None
            and now - self._last_time < self._min_interval
        ):
            return False

        progress = min(100.0, max(self._last_progress, float(progress)))
        event = ProgressEvent(stage=stage, progress=progress, details=details)

        self._last_time = now
        self._last_stage = stage
        self._last_progress = progress
        self.history.append(event)

        if self._on_event is not None:
            try:
                self._on_event(event)
            except Exception as e:
                console.print(f"[yellow]Progress consumer error:[/yellow] {e}")
        return True
