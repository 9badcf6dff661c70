"""
Pytest Configuration for Interview Proctor Tests
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from interview_proctor.config import ProctorSettings
from interview_proctor.proctor.detectors import ScriptedPerception
from interview_proctor.proctor.store import SessionStore

# Aligned to a 5 second dedup bucket boundary
START_TIME = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock"""

    def __init__(self, start: datetime = START_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


async def settle(rounds: int = 3):
    """Let pending object-detection tasks run to completion"""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def run_ticks(loop, clock: FakeClock, count: int, seconds: float = 1.0):
    """Run `count` ticks, advancing the clock after each one"""
    emitted = []
    for _ in range(count):
        emitted.extend(await loop.tick())
        await settle()
        clock.advance(seconds)
    return emitted


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_path):
    return SessionStore(str(tmp_path / "sessions.json"))


@pytest.fixture
def proctor_settings(tmp_path):
    return ProctorSettings(
        SESSION_STORE_PATH=str(tmp_path / "sessions.json"),
        DEBUG=False
    )


@pytest.fixture
def perception():
    return ScriptedPerception()


@pytest.fixture
def manager(proctor_settings, store, clock):
    """Session manager with scripted perception and a fake clock"""
    from interview_proctor.proctor.session import SessionManager

    return SessionManager(
        config=proctor_settings,
        store=store,
        perception_factory=lambda config: ScriptedPerception(),
        clock=clock
    )


@pytest.fixture
def app(manager):
    """FastAPI app wired to the test session manager"""
    from interview_proctor.main import app
    from interview_proctor.proctor.api import set_session_manager

    set_session_manager(manager)
    yield app
    set_session_manager(None)


@pytest.fixture
def client(app):
    """FastAPI test client (shutdown stops any recording session)"""
    with TestClient(app) as test_client:
        yield test_client
