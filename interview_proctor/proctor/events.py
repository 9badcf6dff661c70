"""
Event construction and the append-only event sink
"""

import logging
import random
import string
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Tuple

from .models import EventType, ProctoringEvent, to_millis, utc_now

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9


class EventOrderError(ValueError):
    """Raised when an event would be appended out of timestamp order"""


def generate_event_id(now: Optional[datetime] = None) -> str:
    """
    Build a session-unique event id.

    Format: "<epoch millis>-<9 random base-36 chars>"
    """
    millis = to_millis(now or utc_now())
    suffix = "".join(random.choices(_ID_ALPHABET, k=_ID_SUFFIX_LENGTH))
    return f"{millis}-{suffix}"


def create_event(
    event_type: EventType,
    description: str,
    timestamp: Optional[datetime] = None
) -> ProctoringEvent:
    """
    Create a new proctoring event.

    Severity is taken from the event type.

    Args:
        event_type: Type of the event
        description: Human-readable description
        timestamp: Event time (defaults to now)
    """
    timestamp = timestamp or utc_now()
    return ProctoringEvent(
        id=generate_event_id(timestamp),
        timestamp=timestamp,
        type=event_type,
        description=description,
        severity=event_type.severity,
    )


class EventSink:
    """
    Ordered, append-only collector of proctoring events.

    Single writer, many readers: readers get tuple snapshots and
    never see a list that is being mutated.
    """

    def __init__(
        self,
        events: Optional[List[ProctoringEvent]] = None,
        on_append: Optional[Callable[[ProctoringEvent], None]] = None
    ):
        self._events: List[ProctoringEvent] = list(events or [])
        self._on_append = on_append

    def append(self, event: ProctoringEvent) -> None:
        """Append an event, enforcing non-decreasing timestamps"""
        if self._events and event.timestamp < self._events[-1].timestamp:
            raise EventOrderError(
                f"Event {event.id} at {event.timestamp.isoformat()} is older than "
                f"last event at {self._events[-1].timestamp.isoformat()}"
            )
        self._events.append(event)

        if self._on_append is not None:
            try:
                self._on_append(event)
            except Exception as e:
                logger.error(f"Event sink listener failed for {event.id}: {e}")

    def snapshot(self) -> Tuple[ProctoringEvent, ...]:
        """Immutable copy of the events collected so far"""
        return tuple(self._events)

    @property
    def last_timestamp(self) -> Optional[datetime]:
        return self._events[-1].timestamp if self._events else None

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[ProctoringEvent]:
        return iter(self.snapshot())
