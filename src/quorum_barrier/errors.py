"""
Barrier Exceptions

Exception classes for barrier registration, monitoring and coordination
service failures.
"""


class BarrierError(Exception):
    """Base exception for barrier-related errors"""
    pass


class CoordinationError(BarrierError):
    """Raised when a coordination service operation fails"""
    def __init__(self, operation: str, path: str, reason: str):
        self.operation = operation
        self.path = path
        self.reason = reason
        super().__init__(f"Coordination '{operation}' failed for '{path}': {reason}")


class NoNodeError(CoordinationError):
    """Raised when a node does not exist in the coordination namespace"""
    def __init__(self, path: str):
        super().__init__("get_data", path, "no such node")


class RegistrationError(BarrierError):
    """Raised when the barrier path or the participant node cannot be created"""
    def __init__(self, barrier_path: str, reason: str):
        self.barrier_path = barrier_path
        super().__init__(f"Failed to register under '{barrier_path}': {reason}")


class PayloadCodecError(BarrierError):
    """Raised when participant metadata cannot be decoded"""
    pass


class MetadataFetchError(BarrierError):
    """Raised when a participant's metadata cannot be fetched (non-fatal)"""
    def __init__(self, node_name: str, reason: str):
        self.node_name = node_name
        super().__init__(f"Failed to fetch metadata for '{node_name}': {reason}")


class FatalBarrierError(BarrierError):
    """Errors that abort a barrier run once monitoring has started"""
    pass


class MembershipShrinkError(FatalBarrierError):
    """Raised when the number of registered participants decreases"""
    def __init__(self, previous_size: int, current_size: int):
        self.previous_size = previous_size
        self.current_size = current_size
        super().__init__(
            f"Barrier membership shrank ({previous_size} -> {current_size}), "
            f"a participant probably exited abnormally"
        )


class StallTimeoutError(FatalBarrierError):
    """Raised when no new participant registers within the idle window"""
    def __init__(self, idle_timeout: float):
        self.idle_timeout = idle_timeout
        super().__init__(f"No new participant registered within {idle_timeout:g} seconds")
