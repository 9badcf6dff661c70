"""
Proctoring API - FastAPI endpoints for interview proctoring

Endpoints:
- POST /api/proctor/start - Start an interview session
- POST /api/proctor/frame - Push a webcam frame for detection
- POST /api/proctor/focus - Record a focus change reported by the client
- POST /api/proctor/stop - Stop session and get results
- GET /api/proctor/status/{session_id} - Get session status
- GET /api/proctor/events/{session_id} - Get the session event log
- GET /api/proctor/report/{session_id} - Download the text report
- GET /api/proctor/sessions - List completed sessions
- GET /api/proctor/health - Health check
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ..config import settings
from .detectors import decode_frame
from .scoring import IntegrityScorer, calculate_stats
from .session import InterviewSession, SessionConflictError, SessionManager, SessionValidationError
from .store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proctor", tags=["Proctoring"])

_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Process-wide session manager, created on first use"""
    global _manager
    if _manager is None:
        _manager = SessionManager(store=SessionStore(settings.SESSION_STORE_PATH))
    return _manager


def set_session_manager(manager: Optional[SessionManager]) -> None:
    """Replace the process-wide session manager (None resets it)"""
    global _manager
    _manager = manager


def _require_session(manager: SessionManager, session_id: str) -> InterviewSession:
    session = manager.get(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _require_recording(manager: SessionManager, session_id: str) -> InterviewSession:
    session = _require_session(manager, session_id)
    if not session.is_recording:
        raise HTTPException(status_code=400, detail="Session is not recording")
    return session


# ============== Request/Response Models ==============

class StartSessionRequest(BaseModel):
    """Request to start an interview session"""
    candidate_name: str = Field(..., description="Name of the candidate")


class StartSessionResponse(BaseModel):
    """Response after starting a session"""
    session_id: str
    candidate_name: str
    status: str
    message: str


class FrameRequest(BaseModel):
    """Webcam frame pushed by the client"""
    session_id: str = Field(..., description="Session ID from /start")
    frame_base64: str = Field(..., description="Base64 encoded JPEG frame")


class FrameResponse(BaseModel):
    accepted: bool
    frames_received: int


class FocusRequest(BaseModel):
    """Focus change detected by the client (tab switch, window blur)"""
    session_id: str
    focused: bool


class FocusResponse(BaseModel):
    recorded: bool
    event_type: Optional[str] = None


class StopSessionRequest(BaseModel):
    """Request to stop an interview session"""
    session_id: str


class StatusIndicatorModel(BaseModel):
    color: str
    message: str


class StopSessionResponse(BaseModel):
    """Final proctoring results"""
    session_id: str
    candidate_name: str
    integrity_score: int
    score_label: str
    stats: Dict[str, Any]
    event_count: int
    duration_seconds: float


class SessionStatusResponse(BaseModel):
    """Current session status"""
    session_id: str
    candidate_name: str
    is_recording: bool
    status: StatusIndicatorModel
    current_score: int
    stats: Dict[str, Any]
    duration_seconds: float


class EventModel(BaseModel):
    id: str
    timestamp: str
    type: str
    description: str
    severity: str


class CompletedSessionModel(BaseModel):
    candidate_name: str
    start_time: str
    end_time: Optional[str]
    duration_seconds: float
    event_count: int
    integrity_score: int


# ============== API Endpoints ==============

@router.post("/start", response_model=StartSessionResponse)
async def start_session(
    request: StartSessionRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Start a new interview session.

    Begins the monitoring loop; frames pushed to /frame feed its detectors.
    """
    try:
        session = manager.start_session(request.candidate_name)
    except SessionValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SessionConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to start interview session: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return StartSessionResponse(
        session_id=session.id,
        candidate_name=session.candidate_name,
        status="recording",
        message="Interview session started successfully"
    )


@router.post("/frame", response_model=FrameResponse)
async def push_frame(
    request: FrameRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Push a webcam frame.

    The frame is only buffered; detection runs on the monitoring loop's
    own cadence against the latest frame.
    """
    session = _require_recording(manager, request.session_id)

    frame_buffer = session.frame_buffer
    if frame_buffer is None:
        raise HTTPException(status_code=400, detail="Session does not accept frames")

    frame = decode_frame(request.frame_base64)
    if frame is None:
        raise HTTPException(status_code=400, detail="Invalid frame data")

    frame_buffer.push(frame)
    return FrameResponse(accepted=True, frames_received=frame_buffer.frames_received)


@router.post("/focus", response_model=FocusResponse)
async def record_focus(
    request: FocusRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Record a focus change.

    Called when the frontend detects that the candidate switched away
    from (or back to) the interview window.
    """
    session = _require_recording(manager, request.session_id)

    event = session.record_focus_change(request.focused)
    return FocusResponse(
        recorded=event is not None,
        event_type=event.type.value if event else None
    )


@router.post("/stop", response_model=StopSessionResponse)
async def stop_session(
    request: StopSessionRequest,
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Stop an interview session and get final results.

    The session is archived to the store and stays readable through
    /status, /events and /report.
    """
    session = _require_recording(manager, request.session_id)

    try:
        result = manager.stop_session(session.id)
    except Exception as e:
        logger.error(f"Error stopping session: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if result is None:
        raise HTTPException(status_code=400, detail="Session is not recording")

    return StopSessionResponse(
        session_id=result["session_id"],
        candidate_name=result["candidate_name"],
        integrity_score=result["integrity_score"],
        score_label=result["score_label"],
        stats=result["stats"],
        event_count=result["event_count"],
        duration_seconds=result["duration_seconds"]
    )


@router.get("/status/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Get current status of an interview session.
    """
    session = _require_session(manager, session_id)
    summary = session.summary()

    return SessionStatusResponse(
        session_id=session.id,
        candidate_name=session.candidate_name,
        is_recording=session.is_recording,
        status=StatusIndicatorModel(**summary["status"]),
        current_score=summary["integrity_score"],
        stats=summary["stats"],
        duration_seconds=summary["duration_seconds"]
    )


@router.get("/events/{session_id}", response_model=List[EventModel])
async def get_session_events(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    session = _require_session(manager, session_id)
    return [EventModel(**event.to_dict()) for event in session.events()]


@router.get("/report/{session_id}", response_class=PlainTextResponse)
async def get_session_report(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager)
):
    """
    Download the proctoring report as plain text.
    """
    session = _require_session(manager, session_id)
    filename = f"proctoring-report-{session.candidate_name.replace(' ', '_')}.txt"

    return PlainTextResponse(
        session.report_text(),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get("/sessions", response_model=List[CompletedSessionModel])
async def list_completed_sessions(manager: SessionManager = Depends(get_session_manager)):
    """
    List archived sessions, oldest first.
    """
    scorer = IntegrityScorer()
    completed = []

    for data in manager.list_completed():
        stats = calculate_stats(data.events)
        completed.append(CompletedSessionModel(
            candidate_name=data.candidate_name,
            start_time=data.start_time.isoformat(),
            end_time=data.end_time.isoformat() if data.end_time else None,
            duration_seconds=data.duration().total_seconds(),
            event_count=len(data.events),
            integrity_score=scorer.compute(stats)
        ))

    return completed


@router.get("/health")
async def health_check(manager: SessionManager = Depends(get_session_manager)):
    """Health check endpoint"""
    active = manager.active_session
    return {
        "status": "healthy",
        "service": "interview-proctor",
        "active_session": active.id if active else None
    }
