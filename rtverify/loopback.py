"""
In-Process Loopback Objects

Stand-ins for remote objects: properties are kept in a dict and methods
are plain callables. Used by the example driver and by the tests, with
knobs to make calls fail or to push wide integers through a double.
"""

import asyncio
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from .errors import ConnectError, RemoteCallError
from .interfaces import ConnectionManager, RemoteObjectHandle
from .resolver import Endpoint
from .values import TypedValue, ValueType, make_value

LOOPBACK_HOST = "127.0.0.1"
DEFAULT_BASE_PORT = 10004


def two_int_number_sum(a: TypedValue, b: TypedValue) -> TypedValue:
    return make_value(a.value + b.value, ValueType.INT32)


class LoopbackObject(RemoteObjectHandle):
    """
    A remote object living in this process.

    Args:
        object_id: Identity label
        fail_calls: Calls that raise RemoteCallError, as ``op`` or ``op:name``
            (e.g. ``"invoke"``, ``"get:int64"``)
        lossy_wide: Read INT64/UINT64 properties back through a float
        latency: Seconds each call suspends for
    """

    def __init__(
        self,
        object_id: str,
        fail_calls: Optional[Iterable[str]] = None,
        lossy_wide: bool = False,
        latency: float = 0.0
    ):
        self.object_id = object_id
        self.fail_calls: Set[str] = set(fail_calls or ())
        self.lossy_wide = lossy_wide
        self.latency = latency
        self.properties: Dict[str, TypedValue] = {}
        self.methods: Dict[str, Callable[..., TypedValue]] = {
            "twoIntNumberSum": two_int_number_sum,
        }
        self.calls: List[Tuple[str, str]] = []
        self.closed = False

    def register_method(self, name: str, fn: Callable[..., TypedValue]):
        self.methods[name] = fn

    async def _enter(self, op: str, name: str):
        self.calls.append((op, name))
        if self.latency:
            await asyncio.sleep(self.latency)
        else:
            await asyncio.sleep(0)
        if self.closed:
            raise RemoteCallError(op, name, "handle closed")
        if op in self.fail_calls or f"{op}:{name}" in self.fail_calls:
            raise RemoteCallError(op, name, "injected failure")

    async def set(self, property_name: str, value: TypedValue) -> None:
        await self._enter("set", property_name)
        self.properties[property_name] = value

    async def get(self, property_name: str) -> TypedValue:
        await self._enter("get", property_name)
        try:
            value = self.properties[property_name]
        except KeyError:
            raise RemoteCallError("get", property_name, "property not found") from None
        if self.lossy_wide and value.type.is_wide:
            return TypedValue(value.type, float(value.value))
        return value

    async def invoke(self, method_name: str, *args: TypedValue) -> TypedValue:
        await self._enter("invoke", method_name)
        try:
            fn = self.methods[method_name]
        except KeyError:
            raise RemoteCallError("invoke", method_name, "method not found") from None
        return fn(*args)

    async def close(self) -> None:
        self.closed = True


class LoopbackConnectionManager(ConnectionManager):
    """Hands out loopback objects registered under their endpoints."""

    def __init__(self, objects: Optional[Mapping[str, LoopbackObject]] = None):
        self.objects: Dict[str, LoopbackObject] = {str(k): v for k, v in (objects or {}).items()}

    def register(self, endpoint, obj: LoopbackObject):
        self.objects[str(endpoint)] = obj

    async def connect(self, location) -> RemoteObjectHandle:
        await asyncio.sleep(0)
        try:
            return self.objects[str(location)]
        except KeyError:
            raise ConnectError(location, "connection refused") from None


def loopback_network(
    object_ids: Iterable[str],
    base_port: int = DEFAULT_BASE_PORT,
    **object_kwargs
) -> Tuple[Dict[str, Endpoint], LoopbackConnectionManager]:
    """
    Create one loopback object per name.

    Returns:
        (endpoint table for StaticResolver, connection manager)
    """
    table: Dict[str, Endpoint] = {}
    manager = LoopbackConnectionManager()
    for offset, object_id in enumerate(object_ids):
        endpoint = Endpoint("tcp", LOOPBACK_HOST, base_port + offset)
        table[object_id] = endpoint
        manager.register(endpoint, LoopbackObject(object_id, **object_kwargs))
    return table, manager
