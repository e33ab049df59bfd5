"""
Barrier Event Schemas

Progress events emitted by a barrier run. Every event has the same
envelope with an event-specific ``data`` payload.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class BarrierEventType(str, Enum):
    """All events a barrier run can emit"""
    REGISTERED = "barrier:registered"
    AGGREGATION_REPORT = "barrier:aggregation_report"
    LEADER_METADATA = "barrier:leader_metadata"
    WAITING = "barrier:waiting"
    PASSED = "barrier:passed"
    LEADER_ANNOUNCED = "barrier:leader_announced"
    METADATA_FETCH_FAILED = "barrier:metadata_fetch_failed"
    FATAL = "barrier:fatal"


class BarrierEvent(BaseModel):
    """Standard envelope for barrier events"""
    event_type: BarrierEventType
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    barrier_path: str
    node_name: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
