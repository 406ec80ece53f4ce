"""
Harness Exceptions

Resolution and connection errors stop one object's setup; transport and
remote-call errors end one check or one cycle. Assertion mismatches are
not exceptions at all: they are reported outcomes.
"""


class HarnessError(Exception):
    """Base class for harness errors."""
    pass


class ConfigError(HarnessError):
    """Raised when configuration values are invalid."""
    pass


class ValueEncodingError(HarnessError):
    """Raised when a raw value cannot be represented as the requested type."""
    pass


class ResolutionError(HarnessError):
    """Raised when an object name cannot be mapped to a location."""

    def __init__(self, object_id: str, reason: str = "not found"):
        self.object_id = object_id
        self.reason = reason
        super().__init__(f"Failed to locate {object_id}: {reason}")


class ConnectError(HarnessError):
    """Raised when a location cannot be turned into a remote object handle."""

    def __init__(self, location, reason: str = "unreachable"):
        self.location = location
        self.reason = reason
        super().__init__(f"Failed to connect to {location}: {reason}")


class TransportError(HarnessError):
    """Raised when a get/set/invoke call fails in transit."""
    pass


class RemoteCallError(HarnessError):
    """Raised when the remote side answers a call with an error status."""

    def __init__(self, operation: str, name: str, status: str = "error"):
        self.operation = operation
        self.name = name
        self.status = status
        super().__init__(f"{operation} {name} failed: {status}")
