"""Per-run barrier state"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.models import AggregationReport, MembershipSnapshot
from .gate import BarrierGate
from .monitor import check_shrink


@dataclass
class BarrierRunState:
    """State of one barrier run, owned by the task driving the watcher"""
    node_name: str
    gate: BarrierGate
    last_snapshot: MembershipSnapshot = field(default_factory=MembershipSnapshot)
    leader: Optional[str] = None
    last_report: Optional[AggregationReport] = None

    @property
    def passed(self) -> bool:
        return self.gate.passed

    @property
    def is_leader(self) -> bool:
        return self.leader is not None and self.leader == self.node_name

    def advance(self, snapshot: MembershipSnapshot) -> List[str]:
        """Accept a new snapshot and return the names added since the last one"""
        check_shrink(self.last_snapshot, snapshot)
        added = snapshot.added_since(self.last_snapshot)
        self.last_snapshot = snapshot
        return added

    def assign_leader(self, snapshot: MembershipSnapshot) -> Optional[str]:
        """Fix the leader on first call; later calls keep the first choice"""
        if self.leader is None:
            self.leader = snapshot.first
        return self.leader
