"""Barrier gate state machine"""

from enum import Enum


class GateState(Enum):
    WAITING = "waiting"
    PASSED = "passed"


class BarrierGate:
    """Opens exactly once, when the participant count reaches the quorum"""

    def __init__(self, quorum: int):
        if quorum < 1:
            raise ValueError("quorum must be at least 1")
        self.quorum = quorum
        self.state = GateState.WAITING

    @property
    def passed(self) -> bool:
        return self.state == GateState.PASSED

    def evaluate(self, size: int) -> bool:
        """Return True only on the WAITING -> PASSED transition"""
        if self.passed:
            return False
        if size < self.quorum:
            return False
        self.state = GateState.PASSED
        return True
