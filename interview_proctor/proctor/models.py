"""
Proctoring Models - Events, sessions and derived statistics
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class Severity(str, Enum):
    """Severity attached to every proctoring event"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EventType(str, Enum):
    """
    Closed set of proctoring event types.

    Each member carries the severity it is always emitted with,
    so producers never pick a severity by hand.
    """
    FOCUS_LOST = "focus_lost"
    NO_FACE = "no_face"
    MULTIPLE_FACES = "multiple_faces"
    SUSPICIOUS_OBJECT = "suspicious_object"
    FOCUS_REGAINED = "focus_regained"
    FACE_DETECTED = "face_detected"

    @property
    def severity(self) -> Severity:
        return _EVENT_SEVERITY[self]

    @property
    def is_violation(self) -> bool:
        """True for event types that are penalized by the integrity score"""
        return self in VIOLATION_TYPES


_EVENT_SEVERITY: Dict[EventType, Severity] = {
    EventType.FOCUS_LOST: Severity.MEDIUM,
    EventType.NO_FACE: Severity.HIGH,
    EventType.MULTIPLE_FACES: Severity.HIGH,
    EventType.SUSPICIOUS_OBJECT: Severity.HIGH,
    EventType.FOCUS_REGAINED: Severity.LOW,
    EventType.FACE_DETECTED: Severity.LOW,
}

VIOLATION_TYPES = frozenset({
    EventType.FOCUS_LOST,
    EventType.NO_FACE,
    EventType.MULTIPLE_FACES,
    EventType.SUSPICIOUS_OBJECT,
})


class StatusColor(str, Enum):
    """Traffic-light color of the live status indicator"""
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


@dataclass(frozen=True)
class StatusIndicator:
    """What the UI should currently show for the candidate"""
    color: StatusColor
    message: str


INITIAL_STATUS = StatusIndicator(StatusColor.YELLOW, "Initializing...")


def utc_now() -> datetime:
    """Timezone-aware current time, the default clock for the proctor"""
    return datetime.now(timezone.utc)


class MonotonicClock:
    """
    Wraps a clock so its readings never go backwards.

    A wall clock can step back (NTP correction, manual change). Readings
    earlier than the last one are held at the last one, so events stamped
    from this clock always arrive in order.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._last: Optional[datetime] = None

    def __call__(self) -> datetime:
        now = self._clock()
        if self._last is not None and now < self._last:
            return self._last
        self._last = now
        return now


def monotonic(clock: Callable[[], datetime]) -> MonotonicClock:
    """Wrap clock unless it already is monotonic"""
    return clock if isinstance(clock, MonotonicClock) else MonotonicClock(clock)


def to_millis(moment: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds"""
    return int(moment.timestamp() * 1000)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class ProctoringEvent:
    """A single immutable, timestamped integrity event"""

    id: str
    timestamp: datetime
    type: EventType
    description: str
    severity: Severity

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-ready dictionary"""
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "description": self.description,
            "severity": self.severity.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProctoringEvent":
        return cls(
            id=data["id"],
            timestamp=_parse_datetime(data["timestamp"]),
            type=EventType(data["type"]),
            description=data["description"],
            severity=Severity(data["severity"]),
        )


@dataclass
class SessionData:
    """
    One interview session.

    candidate_name and start_time are fixed at creation; events grow
    while recording; end_time is set exactly once when the session stops.
    """

    _FIXED_FIELDS = ("candidate_name", "start_time")

    candidate_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    events: List[ProctoringEvent] = field(default_factory=list)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self._FIXED_FIELDS and name in self.__dict__:
            raise AttributeError(f"{name} cannot be changed after the session is created")
        super().__setattr__(name, value)

    @property
    def is_recording(self) -> bool:
        return self.end_time is None

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        """Elapsed session time (up to now while still recording)"""
        end = self.end_time or now or utc_now()
        return end - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted record shape"""
        return {
            "candidate_name": self.candidate_name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionData":
        end_time = data.get("end_time")
        return cls(
            candidate_name=data["candidate_name"],
            start_time=_parse_datetime(data["start_time"]),
            end_time=_parse_datetime(end_time) if end_time else None,
            events=[ProctoringEvent.from_dict(e) for e in data.get("events", [])],
        )


@dataclass(frozen=True)
class DetectionStats:
    """Violation counts derived from an event collection"""

    focus_lost_count: int = 0
    no_face_count: int = 0
    multiple_faces_count: int = 0
    suspicious_object_count: int = 0
    total_duration: timedelta = timedelta(0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "focus_lost_count": self.focus_lost_count,
            "no_face_count": self.no_face_count,
            "multiple_faces_count": self.multiple_faces_count,
            "suspicious_object_count": self.suspicious_object_count,
            "total_duration_seconds": self.total_duration.total_seconds(),
        }
