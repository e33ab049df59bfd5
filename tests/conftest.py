"""
Global pytest configuration and fixtures for quorum barrier tests
"""

import logging
import sys
from pathlib import Path
from typing import List

import pytest

# Add the src directory to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from quorum_barrier.coordination.memory import InMemoryNamespace
from quorum_barrier.core.models import ParticipantPayload
from quorum_barrier.events import BarrierEvent, BarrierEventType
from quorum_barrier.observer import BarrierObserver

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)

# Suppress noisy logs during testing
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)


class RecordingObserver(BarrierObserver):
    """Observer that keeps every event it receives"""

    def __init__(self):
        self.events: List[BarrierEvent] = []

    def emit(self, event: BarrierEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: BarrierEventType) -> List[BarrierEvent]:
        return [e for e in self.events if e.event_type == event_type]


@pytest.fixture
def namespace():
    """Fresh in-memory coordination namespace"""
    return InMemoryNamespace()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def make_observer():
    """Factory for one recording observer per participant"""
    return RecordingObserver


@pytest.fixture
def sample_payload():
    return ParticipantPayload(repository="octo/repo", participant_value=42.0, ip="203.0.113.7")


# Custom markers for test categorization
def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
