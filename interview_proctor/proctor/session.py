"""
Interview Session - Manages the lifecycle of proctored interview sessions
"""

import uuid
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..config import ProctorSettings, settings as default_settings
from .detectors import FrameBuffer, FramePerception, MediaPipeFaceDetector, PerceptionPort, YoloObjectDetector
from .events import EventSink, create_event
from .models import EventType, ProctoringEvent, SessionData, StatusIndicator, monotonic, utc_now
from .monitoring import MonitoringLoop, ObjectDedupWindow
from .report import generate_report_text
from .scoring import IntegrityScorer, calculate_stats
from .store import SessionStore
from .utils.logging import log_session_end, log_session_start, log_violation

logger = logging.getLogger(__name__)


class SessionValidationError(ValueError):
    """A session could not be started because the request is invalid"""


class SessionConflictError(RuntimeError):
    """Another session is already recording"""


class InterviewSession:
    """
    A single proctored interview.

    Wires a MonitoringLoop to an EventSink, keeps SessionData in sync
    with the emitted events and persists it while recording.
    """

    def __init__(
        self,
        candidate_name: str,
        perception: PerceptionPort,
        config: Optional[ProctorSettings] = None,
        store: Optional[SessionStore] = None,
        clock: Callable[[], datetime] = utc_now,
        session_id: Optional[str] = None
    ):
        """
        Initialize a new interview session.

        Args:
            candidate_name: Validated, stripped candidate name
            perception: Face / object detection capabilities
            config: Thresholds and cadence (defaults to global settings)
            store: Optional persistence for the session record
            clock: Source of the current time (readings never go backwards)
            session_id: Optional custom session ID (auto-generated if not provided)
        """
        config = config or default_settings

        self.id = session_id or f"INT_{uuid.uuid4().hex[:6].upper()}"
        self.perception = perception
        self.store = store
        self.clock = monotonic(clock)
        self.data = SessionData(candidate_name=candidate_name, start_time=self.clock())
        self.scorer = IntegrityScorer()

        self.sink = EventSink(on_append=self._on_event_appended)
        self.loop = MonitoringLoop(
            perception=perception,
            on_event_detected=self.sink.append,
            tick_seconds=config.TICK_SECONDS,
            no_face_threshold_ticks=config.NO_FACE_THRESHOLD_TICKS,
            focus_warning_ticks=config.FOCUS_WARNING_TICKS,
            object_check_interval_seconds=config.OBJECT_CHECK_INTERVAL_SECONDS,
            dedup_window=ObjectDedupWindow(
                bucket_seconds=config.DEDUP_BUCKET_SECONDS,
                vocabulary=config.SUSPICIOUS_OBJECTS,
                retention_buckets=config.DEDUP_RETENTION_BUCKETS
            ),
            clock=self.clock,
            session_id=self.id
        )

        self._focused = True

    @property
    def candidate_name(self) -> str:
        return self.data.candidate_name

    @property
    def is_recording(self) -> bool:
        return self.data.is_recording

    @property
    def status(self) -> StatusIndicator:
        return self.loop.status

    @property
    def frame_buffer(self) -> Optional[FrameBuffer]:
        """Frame buffer of frame-fed perception, None for other ports"""
        return getattr(self.perception, "frame_buffer", None)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, run_periodic: bool = True) -> None:
        """Start recording: begin monitoring and persist the new session"""
        self.loop.start(run_periodic=run_periodic)
        self._save_current()
        log_session_start(self.id, self.candidate_name)

    def stop(self) -> Optional[Dict[str, Any]]:
        """
        Stop recording, freeze the events and archive the session.

        Returns:
            Final results, or None if the session was not recording
        """
        if not self.is_recording:
            logger.warning(f"Stop requested for session {self.id} which is not recording")
            return None

        self.loop.stop()
        self.data.end_time = self.clock()
        self.data.events = list(self.sink.snapshot())

        try:
            self.perception.close()
        except Exception as e:
            logger.warning(f"Error closing perception for {self.id}: {e}")

        if self.store is not None:
            self.store.archive(self.data)

        result = self.summary()
        log_session_end(
            self.id,
            result["integrity_score"],
            len(self.data.events),
            result["duration_seconds"]
        )
        return result

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def record_focus_change(self, focused: bool) -> Optional[ProctoringEvent]:
        """
        Record a focus change reported by the client (tab or window blur).

        Only transitions produce events; repeated reports of the same
        state are ignored.

        Returns:
            The emitted event, or None when nothing changed
        """
        if not self.is_recording:
            logger.warning(f"Focus change ignored, session {self.id} is not recording")
            return None

        if focused == self._focused:
            return None

        self._focused = focused
        if focused:
            event = create_event(EventType.FOCUS_REGAINED, "Candidate returned to the interview window", self.clock())
        else:
            event = create_event(EventType.FOCUS_LOST, "Candidate switched away from the interview window", self.clock())

        log_violation(self.id, event)
        self.sink.append(event)
        return event

    def _on_event_appended(self, event: ProctoringEvent) -> None:
        self.data.events.append(event)
        self._save_current()

    def _save_current(self) -> None:
        if self.store is not None and self.is_recording:
            self.store.save_current(self.data)

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def events(self) -> List[ProctoringEvent]:
        return list(self.sink.snapshot())

    def summary(self) -> Dict[str, Any]:
        """Current stats and score; final once the session is stopped"""
        duration = self.data.duration(self.clock())
        stats = calculate_stats(self.sink.snapshot(), total_duration=duration)
        score = self.scorer.compute(stats)

        return {
            "session_id": self.id,
            "candidate_name": self.candidate_name,
            "is_recording": self.is_recording,
            "start_time": self.data.start_time.isoformat(),
            "end_time": self.data.end_time.isoformat() if self.data.end_time else None,
            "duration_seconds": duration.total_seconds(),
            "stats": stats.to_dict(),
            "integrity_score": score,
            "score_label": self.scorer.get_label(score),
            "score_breakdown": self.scorer.compute_breakdown(stats),
            "status": {"color": self.status.color.value, "message": self.status.message},
            "event_count": len(self.sink)
        }

    def report_text(self) -> str:
        """Plain-text proctoring report"""
        duration = self.data.duration(self.clock())
        snapshot = SessionData(
            candidate_name=self.data.candidate_name,
            start_time=self.data.start_time,
            end_time=self.data.end_time,
            events=list(self.sink.snapshot())
        )
        stats = calculate_stats(snapshot.events, total_duration=duration)
        return generate_report_text(
            snapshot,
            stats,
            self.scorer.compute(stats),
            duration,
            generated_at=self.clock()
        )


def default_perception_factory(config: ProctorSettings) -> PerceptionPort:
    """Frame-fed perception using MediaPipe faces and YOLO objects"""
    return FramePerception(
        frame_buffer=FrameBuffer(),
        face_detector=MediaPipeFaceDetector(min_confidence=config.FACE_MIN_CONFIDENCE),
        object_detector=YoloObjectDetector(
            model_path=config.YOLO_MODEL_PATH,
            confidence=config.OBJECT_MIN_CONFIDENCE
        )
    )


class SessionManager:
    """
    Starts, tracks and stops interview sessions.

    At most one session records at a time, matching the store's single
    current-session slot.
    """

    def __init__(
        self,
        config: Optional[ProctorSettings] = None,
        store: Optional[SessionStore] = None,
        perception_factory: Callable[[ProctorSettings], PerceptionPort] = default_perception_factory,
        clock: Callable[[], datetime] = utc_now
    ):
        self.config = config or default_settings
        self.store = store
        self.perception_factory = perception_factory
        self.clock = clock
        self._sessions: Dict[str, InterviewSession] = {}

    @property
    def active_session(self) -> Optional[InterviewSession]:
        for session in self._sessions.values():
            if session.is_recording:
                return session
        return None

    def start_session(
        self,
        candidate_name: str,
        perception: Optional[PerceptionPort] = None,
        run_periodic: bool = True
    ) -> InterviewSession:
        """
        Validate the request and start a new recording session.

        Args:
            candidate_name: Candidate display name (must not be blank)
            perception: Override the perception port (defaults to the factory)
            run_periodic: Schedule the monitoring task on the running event loop

        Raises:
            SessionValidationError: Candidate name is blank
            SessionConflictError: Another session is still recording
        """
        name = (candidate_name or "").strip()
        if not name:
            raise SessionValidationError("Please enter candidate name")

        active = self.active_session
        if active is not None:
            raise SessionConflictError(f"Session {active.id} is still recording")

        session = InterviewSession(
            candidate_name=name,
            perception=perception or self.perception_factory(self.config),
            config=self.config,
            store=self.store,
            clock=self.clock
        )
        self._sessions[session.id] = session
        session.start(run_periodic=run_periodic)

        logger.info(f"Started interview session {session.id} for {name}")
        return session

    def get(self, session_id: str) -> Optional[InterviewSession]:
        return self._sessions.get(session_id)

    def stop_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Stop a session.

        Unknown or already-stopped sessions are a logged no-op.

        Returns:
            Final results, or None if there was nothing to stop
        """
        session = self._sessions.get(session_id)
        if session is None:
            logger.warning(f"Stop requested for unknown session {session_id}")
            return None
        return session.stop()

    def remove(self, session_id: str) -> bool:
        """Forget a stopped session (it stays in the store)"""
        session = self._sessions.get(session_id)
        if session is None or session.is_recording:
            return False
        del self._sessions[session_id]
        return True

    def list_completed(self) -> List[SessionData]:
        return self.store.list_completed() if self.store is not None else []

    def shutdown(self) -> None:
        """Stop every recording session"""
        for session in list(self._sessions.values()):
            if session.is_recording:
                session.stop()
