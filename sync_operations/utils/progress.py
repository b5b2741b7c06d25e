"""
Progress Reporting Utilities

Export and import report progress as typed events to a ``ProgressSink``.
The core only emits events; rendering (tqdm bars, log lines) lives in the
sink implementations below, which own all display state.

Two kinds of events exist:
- step-level events (planned step count, step started, step advanced)
- byte-level events for each download (size known, progress, completed, redirected)
"""

import logging
import sys
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Type, TypeVar, Union

from tqdm import tqdm

from ..models.entities import ArtifactKind

logger = logging.getLogger(__name__)


# Step-level events

@dataclass(frozen=True)
class StepsPlanned:
    """The operation will advance the step counter ``total`` times."""
    total: int


@dataclass(frozen=True)
class StepStarted:
    """A new step begins; ``message`` describes it."""
    message: str


@dataclass(frozen=True)
class StepAdvanced:
    """The step counter moved to ``current`` of ``total``."""
    current: int
    total: int


@dataclass(frozen=True)
class StepsFinished:
    """All planned steps completed."""
    total: int


# Byte-level events

@dataclass(frozen=True)
class SizeKnown:
    """The remote announced the size of an artifact."""
    artifact: ArtifactKind
    total: int


@dataclass(frozen=True)
class Progress:
    """``transferred`` bytes of an artifact have been written so far."""
    artifact: ArtifactKind
    transferred: int


@dataclass(frozen=True)
class Completed:
    """An artifact was downloaded completely."""
    artifact: ArtifactKind
    total: int


@dataclass(frozen=True)
class Redirected:
    """The request for an artifact was redirected to ``url``."""
    artifact: ArtifactKind
    url: str


ProgressEvent = Union[
    StepsPlanned, StepStarted, StepAdvanced, StepsFinished,
    SizeKnown, Progress, Completed, Redirected
]

E = TypeVar("E")


class ProgressSink(Protocol):
    """Anything that accepts progress events."""

    def emit(self, event: ProgressEvent) -> None:
        ...


class NullProgressSink:
    """Discards all events."""

    def emit(self, event: ProgressEvent) -> None:
        pass


class RecordingProgressSink:
    """
    Keeps every event in order.

    Example:
        ```python
        sink = RecordingProgressSink()
        fetcher = RemoteFetcher(config, progress=sink)
        fetcher.fetch_all(url, secret, include_assets=False)
        assert sink.of_type(Completed)[0].artifact == ArtifactKind.CONTENT_DUMP
        ```
    """

    def __init__(self):
        self.events: List[ProgressEvent] = []

    def emit(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: Type[E]) -> List[E]:
        """Recorded events of one type, in order."""
        return [e for e in self.events if isinstance(e, event_type)]

    @property
    def step_messages(self) -> List[str]:
        """Messages of all StepStarted events."""
        return [e.message for e in self.of_type(StepStarted)]


class StepCounter:
    """
    Step accounting for one operation.

    Pure bookkeeping: it counts and forwards events to the sink, it never renders.

    Example:
        ```python
        steps = StepCounter(sink, total=3)
        steps.start("Exporting database...")
        steps.advance()
        steps.finish()
        ```
    """

    def __init__(self, sink: ProgressSink, total: int):
        """
        Initialize the counter and announce the planned total.

        Args:
            sink: Receiver of the events
            total: Number of times ``advance`` will be called
        """
        if total <= 0:
            raise ValueError("total must be positive")
        self.sink = sink
        self.total = total
        self.current = 0
        self.sink.emit(StepsPlanned(total))

    def start(self, message: str) -> None:
        """Announce the step that is about to run."""
        logger.info(message)
        self.sink.emit(StepStarted(message))

    def advance(self) -> None:
        """Count one finished unit of work."""
        self.current = min(self.current + 1, self.total)
        self.sink.emit(StepAdvanced(self.current, self.total))

    def finish(self) -> None:
        """Announce that the operation finished."""
        self.sink.emit(StepsFinished(self.total))


class TransferTracker:
    """
    Track a single download with speed and ETA estimation.

    Speed is averaged over a short history of samples so that the estimate
    does not jump around with every chunk.
    """

    # Number of speed samples to keep for averaging
    SPEED_HISTORY_SIZE = 10

    # Minimum interval between speed calculations (seconds)
    MIN_SPEED_CALC_INTERVAL = 1.0

    def __init__(self, artifact: ArtifactKind, total_bytes: int = 0):
        self.artifact = artifact
        self.total_bytes = total_bytes
        self.bytes_transferred = 0
        self.start_time = datetime.now()
        self.last_speed_calc_time = self.start_time
        self.last_bytes_for_speed = 0
        self.speed_history: deque = deque(maxlen=self.SPEED_HISTORY_SIZE)

    def update(self, bytes_transferred: int, now: Optional[datetime] = None) -> None:
        """Record the running byte count."""
        now = now or datetime.now()
        self.bytes_transferred = bytes_transferred

        time_delta = (now - self.last_speed_calc_time).total_seconds()
        if time_delta < self.MIN_SPEED_CALC_INTERVAL:
            return

        bytes_delta = self.bytes_transferred - self.last_bytes_for_speed
        if bytes_delta > 0:
            self.speed_history.append(bytes_delta / time_delta)
            self.last_speed_calc_time = now
            self.last_bytes_for_speed = self.bytes_transferred

    @property
    def percentage(self) -> float:
        """Progress percentage (0-100), 0 if the size is unknown."""
        if self.total_bytes <= 0:
            return 0.0
        return min(100.0, (self.bytes_transferred / self.total_bytes) * 100.0)

    @property
    def average_speed_bps(self) -> Optional[float]:
        """Average speed in bytes per second, or None without samples."""
        if not self.speed_history:
            return None
        return sum(self.speed_history) / len(self.speed_history)

    def estimate_remaining_seconds(self) -> Optional[float]:
        """Estimated seconds until completion, or None if it cannot be estimated."""
        if self.total_bytes <= 0 or self.bytes_transferred >= self.total_bytes:
            return None
        speed = self.average_speed_bps
        if not speed:
            return None
        return (self.total_bytes - self.bytes_transferred) / speed

    @property
    def elapsed_time_seconds(self) -> float:
        """Seconds since the tracker was created."""
        return (datetime.now() - self.start_time).total_seconds()


class LoggingProgressSink:
    """
    Writes progress to the log instead of drawing bars.

    Meant for non-interactive runs (cron, CI). Byte progress is logged at
    DEBUG every ``log_every_percent`` percent; completion is logged at INFO.
    """

    def __init__(self, log: Optional[logging.Logger] = None, log_every_percent: float = 25.0):
        self.log = log or logger
        self.log_every_percent = log_every_percent
        self._trackers: Dict[ArtifactKind, TransferTracker] = {}
        self._last_logged: Dict[ArtifactKind, float] = {}

    def emit(self, event: ProgressEvent) -> None:
        if isinstance(event, StepAdvanced):
            self.log.info(f"Step {event.current}/{event.total} done")
        elif isinstance(event, SizeKnown):
            self._trackers[event.artifact] = TransferTracker(event.artifact, event.total)
            self._last_logged[event.artifact] = 0.0
            self.log.info(f"Downloading {event.artifact.label} ({event.total / (1024 ** 2):.2f} MB)")
        elif isinstance(event, Progress):
            tracker = self._trackers.setdefault(event.artifact, TransferTracker(event.artifact))
            tracker.update(event.transferred)
            if tracker.percentage - self._last_logged.get(event.artifact, 0.0) >= self.log_every_percent:
                self._last_logged[event.artifact] = tracker.percentage
                self.log.debug(f"{event.artifact.label}: {tracker.percentage:.0f}%")
        elif isinstance(event, Completed):
            tracker = self._trackers.pop(event.artifact, None)
            elapsed = tracker.elapsed_time_seconds if tracker else 0.0
            self.log.info(f"Downloaded {event.artifact.label}: {event.total} bytes in {elapsed:.1f}s")
        elif isinstance(event, Redirected):
            self.log.info(f"Download of {event.artifact.label} redirected to {event.url}")


class TqdmProgressSink:
    """
    Renders progress with tqdm.

    One bar counts steps (``3/6 [=====     ] 50% Importing database...``); an
    additional byte bar is shown while an artifact is downloading.
    """

    STEP_BAR_FORMAT = "{n_fmt}/{total_fmt} [{bar}] {percentage:3.0f}% {desc}"

    def __init__(self, file=None, disable: bool = False):
        self.file = file or sys.stderr
        self.disable = disable
        self._steps: Optional[tqdm] = None
        self._bytes: Optional[tqdm] = None

    def emit(self, event: ProgressEvent) -> None:
        if isinstance(event, StepsPlanned):
            self._close_steps()
            self._steps = tqdm(
                total=event.total,
                bar_format=self.STEP_BAR_FORMAT,
                file=self.file,
                disable=self.disable,
                position=0
            )
        elif isinstance(event, StepStarted):
            if self._steps is not None:
                self._steps.set_description_str(event.message)
        elif isinstance(event, StepAdvanced):
            if self._steps is not None:
                self._steps.update(event.current - self._steps.n)
        elif isinstance(event, StepsFinished):
            self._close_bytes()
            self._close_steps()
        elif isinstance(event, SizeKnown):
            self._close_bytes()
            self._bytes = tqdm(
                total=event.total,
                desc=event.artifact.label,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                file=self.file,
                disable=self.disable,
                leave=False,
                position=1
            )
        elif isinstance(event, Progress):
            if self._bytes is None:
                self._bytes = tqdm(
                    desc=event.artifact.label,
                    unit="B",
                    unit_scale=True,
                    unit_divisor=1024,
                    file=self.file,
                    disable=self.disable,
                    leave=False,
                    position=1
                )
            self._bytes.update(event.transferred - self._bytes.n)
        elif isinstance(event, Completed):
            self._close_bytes()
        elif isinstance(event, Redirected):
            if self._steps is not None:
                self._steps.write(f"Redirected to {event.url}", file=self.file)

    def close(self) -> None:
        """Close any open bars (e.g. after a failure)."""
        self._close_bytes()
        self._close_steps()

    def _close_bytes(self) -> None:
        if self._bytes is not None:
            self._bytes.close()
            self._bytes = None

    def _close_steps(self) -> None:
        if self._steps is not None:
            self._steps.close()
            self._steps = None
