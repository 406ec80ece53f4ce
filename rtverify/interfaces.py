"""
Collaborator Interfaces

The harness only consumes these. Discovery, proxies and the wire codec
live behind them.
"""

from abc import ABC, abstractmethod
from typing import Any

from .values import TypedValue


class RemoteObjectHandle(ABC):
    """Capability bound to one remote object identity."""

    object_id: str = "unknown"

    @abstractmethod
    async def get(self, property_name: str) -> TypedValue:
        """Read a remote property."""

    @abstractmethod
    async def set(self, property_name: str, value: TypedValue) -> None:
        """Write a remote property."""

    @abstractmethod
    async def invoke(self, method_name: str, *args: TypedValue) -> TypedValue:
        """Call a remote method and return its result."""

    async def close(self) -> None:
        """Release the handle. Optional for implementations."""


class Resolver(ABC):
    """Maps logical object names to connectable locations."""

    @abstractmethod
    async def locate(self, object_id: str) -> Any:
        """Return a location for ``object_id`` or raise ResolutionError."""


class ConnectionManager(ABC):
    """Turns a location into a live remote object handle."""

    @abstractmethod
    async def connect(self, location: Any) -> RemoteObjectHandle:
        """Return a handle for ``location`` or raise ConnectError."""
