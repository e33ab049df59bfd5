"""
Core data models for the quorum barrier
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ParticipantPayload(BaseModel):
    """Metadata a participant stores in its registration node"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    repository: Optional[str] = None
    participant_value: Optional[float] = Field(default=None, alias="participantValue")
    ip: Optional[str] = None


class MembershipSnapshot:
    """Sorted, immutable listing of the children under the barrier path"""

    __slots__ = ("names",)

    def __init__(self, names: Iterable[str] = ()):
        self.names: Tuple[str, ...] = tuple(sorted(names))

    def __len__(self) -> int:
        return len(self.names)

    def __iter__(self):
        return iter(self.names)

    def __contains__(self, name) -> bool:
        return name in self.names

    def __eq__(self, other) -> bool:
        if not isinstance(other, MembershipSnapshot):
            return NotImplemented
        return self.names == other.names

    def __repr__(self) -> str:
        return f"MembershipSnapshot({list(self.names)!r})"

    @property
    def first(self) -> Optional[str]:
        return self.names[0] if self.names else None

    def added_since(self, previous: "MembershipSnapshot") -> List[str]:
        """Names present here but not in the previous snapshot"""
        seen = set(previous.names)
        return [name for name in self.names if name not in seen]


class AggregationReport(BaseModel):
    """Statistics the leader computes over all known participants"""
    count: int = 0
    max: Optional[float] = None
    min: Optional[float] = None
    mean: Optional[float] = None
    unique_ip_count: int = 0
    top_ips: List[Tuple[str, int]] = Field(default_factory=list)
    added_count: int = 0
    elapsed_seconds: float = 0.0


@dataclass
class BarrierResult:
    """Outcome of a passed barrier"""
    node_name: str
    leader: Optional[str]
    participant_count: int
    elapsed_seconds: float
    last_report: Optional[AggregationReport] = None

    @property
    def is_leader(self) -> bool:
        return self.leader is not None and self.leader == self.node_name
