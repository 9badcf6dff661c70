"""
Monitoring Loop - Turns per-tick perception results into debounced events

The loop evaluates the candidate once per tick. Status is level-triggered
(updated every tick) while events are edge-triggered: a continuing
violation fires once, at its threshold crossing or onset.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from ..detectors.base import PerceptionPort
from ..events import create_event
from ..models import (
    INITIAL_STATUS,
    EventType,
    ProctoringEvent,
    StatusColor,
    StatusIndicator,
    monotonic,
    utc_now,
)
from ..utils.logging import log_proctor_event, log_violation
from .dedup import ObjectDedupWindow

logger = logging.getLogger(__name__)


@dataclass
class MonitoringState:
    """Counters carried from one tick to the next, owned by one loop"""

    no_face_ticks: int = 0
    focus_lost_ticks: int = 0
    last_face_count: int = 0
    last_object_check_time: Optional[datetime] = None

    def reset(self):
        """Reset all counters"""
        self.no_face_ticks = 0
        self.focus_lost_ticks = 0
        self.last_face_count = 0
        self.last_object_check_time = None


class MonitoringLoop:
    """
    Periodic face / object evaluation for one recording session.

    Runs as a single asyncio task; ticks never overlap. Object detection
    runs as a separate task, at most one at a time, and its results are
    dropped if the loop was stopped or restarted meanwhile.
    """

    def __init__(
        self,
        perception: PerceptionPort,
        on_event_detected: Callable[[ProctoringEvent], None],
        tick_seconds: float = 1.0,
        no_face_threshold_ticks: int = 10,
        focus_warning_ticks: int = 5,
        object_check_interval_seconds: float = 3.0,
        dedup_window: Optional[ObjectDedupWindow] = None,
        clock: Callable[[], datetime] = utc_now,
        session_id: str = "-"
    ):
        """
        Initialize the monitoring loop.

        Args:
            perception: Face / object detection capabilities
            on_event_detected: Called synchronously for every emitted event
            tick_seconds: Period between evaluations
            no_face_threshold_ticks: Consecutive absent ticks before a no_face event
            focus_warning_ticks: Consecutive absent ticks before the soft warning
            object_check_interval_seconds: Minimum time between object checks
            dedup_window: Suspicious object deduplication (default 5s buckets)
            clock: Source of the current time (readings never go backwards)
            session_id: Used for log correlation only
        """
        self.perception = perception
        self.on_event_detected = on_event_detected
        self.tick_seconds = tick_seconds
        self.no_face_threshold_ticks = no_face_threshold_ticks
        self.focus_warning_ticks = focus_warning_ticks
        self.object_check_interval_seconds = object_check_interval_seconds
        self.dedup = dedup_window or ObjectDedupWindow()
        self.clock = monotonic(clock)
        self.session_id = session_id

        self.state = MonitoringState()
        self.status: StatusIndicator = INITIAL_STATUS
        self.tick_count = 0

        self._running = False
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._object_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def pending_object_check(self) -> Optional[asyncio.Task]:
        """The in-flight object detection task, if any"""
        if self._object_task is not None and not self._object_task.done():
            return self._object_task
        return None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, run_periodic: bool = True) -> None:
        """
        Start (or restart) monitoring with fresh state.

        Args:
            run_periodic: Schedule the periodic tick task on the running
                event loop. When False, the caller drives tick() itself.
        """
        if self._running:
            self.stop()

        self._generation += 1
        self.state.reset()
        self.dedup.reset()
        self.status = INITIAL_STATUS
        self.tick_count = 0
        self._running = True

        if run_periodic:
            self._task = asyncio.get_running_loop().create_task(
                self._run(self._generation)
            )

        log_proctor_event(self.session_id, "monitoring_start", {"generation": self._generation})

    def stop(self) -> None:
        """Cancel the periodic task and any in-flight object check"""
        if not self._running:
            logger.debug(f"Monitoring loop for {self.session_id} already stopped")
            return

        self._running = False
        self._generation += 1

        for task in (self._task, self._object_task):
            if task is not None and not task.done():
                task.cancel()
        self._task = None
        self._object_task = None

        log_proctor_event(self.session_id, "monitoring_stop", {"ticks": self.tick_count})

    async def wait_closed(self) -> None:
        """Wait for cancelled tasks to finish unwinding"""
        tasks = [t for t in (self._task, self._object_task) if t is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, generation: int) -> None:
        while self._running and generation == self._generation:
            await self.tick()
            await asyncio.sleep(self.tick_seconds)

    # ------------------------------------------------------------------
    # Tick evaluation
    # ------------------------------------------------------------------

    async def tick(self) -> List[ProctoringEvent]:
        """
        Evaluate exactly one tick.

        Returns:
            Events emitted by the face logic during this tick
            (object events arrive later, from the object check task)
        """
        if not self._running:
            logger.debug(f"Tick ignored, monitoring for {self.session_id} is not running")
            return []

        now = self.clock()
        self.tick_count += 1
        emitted: List[ProctoringEvent] = []

        try:
            face_count = self._count_faces()
            emitted = self._evaluate_faces(face_count, now)
            self._maybe_start_object_check(now)
        except Exception as e:
            logger.error(f"Monitoring tick {self.tick_count} failed for {self.session_id}: {e}")

        return emitted

    def _count_faces(self) -> int:
        try:
            return len(self.perception.detect_faces())
        except Exception as e:
            # Treat a failing detector as "nobody there"
            logger.warning(f"Face detection error: {e}")
            return 0

    def _evaluate_faces(self, face_count: int, now: datetime) -> List[ProctoringEvent]:
        state = self.state
        emitted: List[ProctoringEvent] = []

        if face_count == 0:
            state.no_face_ticks += 1
            state.focus_lost_ticks += 1

            if state.no_face_ticks == self.no_face_threshold_ticks:
                emitted.append(self._emit(
                    EventType.NO_FACE,
                    f"No face detected for {self.no_face_threshold_ticks} seconds",
                    now
                ))
                self._set_status(StatusColor.RED, "No face detected!")
            elif state.focus_lost_ticks >= self.focus_warning_ticks:
                self._set_status(StatusColor.RED, "Candidate not visible")

        elif face_count == 1:
            if state.no_face_ticks >= self.no_face_threshold_ticks:
                emitted.append(self._emit(EventType.FACE_DETECTED, "Face detected again", now))

            state.no_face_ticks = 0
            state.focus_lost_ticks = 0
            self._set_status(StatusColor.GREEN, "Candidate focused")

        else:
            if state.last_face_count <= 1:
                emitted.append(self._emit(
                    EventType.MULTIPLE_FACES,
                    f"{face_count} faces detected in frame",
                    now
                ))
            self._set_status(StatusColor.RED, f"Multiple faces detected ({face_count})")

        state.last_face_count = face_count
        return emitted

    def _set_status(self, color: StatusColor, message: str) -> None:
        self.status = StatusIndicator(color, message)

    def _emit(self, event_type: EventType, description: str, now: datetime) -> ProctoringEvent:
        event = create_event(event_type, description, timestamp=now)
        self._deliver(event)
        return event

    def _deliver(self, event: ProctoringEvent) -> None:
        log_violation(self.session_id, event)
        try:
            self.on_event_detected(event)
        except Exception as e:
            logger.error(f"Event callback failed for {event.id}: {e}")

    # ------------------------------------------------------------------
    # Object detection
    # ------------------------------------------------------------------

    def _maybe_start_object_check(self, now: datetime) -> None:
        if self.pending_object_check is not None:
            # Previous check still running; retry on a later tick
            return

        last_check = self.state.last_object_check_time
        if last_check is not None:
            elapsed = (now - last_check).total_seconds()
            if elapsed <= self.object_check_interval_seconds:
                return

        self.state.last_object_check_time = now
        self._object_task = asyncio.get_running_loop().create_task(
            self._run_object_check(now, self._generation)
        )

    async def _run_object_check(self, requested_at: datetime, generation: int) -> None:
        try:
            detections = await self.perception.detect_objects()
        except Exception as e:
            logger.warning(f"Object detection error: {e}")
            return

        if not self._running or generation != self._generation:
            logger.debug(f"Discarding stale object detection result for {self.session_id}")
            return

        for event in self.dedup.process(detections, requested_at, emitted_at=self.clock()):
            self._deliver(event)
