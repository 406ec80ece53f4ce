"""
Endpoints and Static Resolution

Endpoints use the URI forms of the remote object runtime:

    tcp://127.0.0.1:10004
    udp://[::1]:10004
    unix:///tmp/rt.sock

StaticResolver maps object names to endpoints from a fixed table; it is
a lookup, not network discovery.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Union
from urllib.parse import urlsplit

from .errors import ResolutionError
from .interfaces import Resolver

NETWORK_SCHEMES = ("tcp", "udp")
LOCAL_SCHEMES = ("unix",)


@dataclass(frozen=True)
class Endpoint:
    scheme: str
    host: Optional[str] = None
    port: Optional[int] = None
    path: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Endpoint":
        """
        Parse an endpoint URI.

        Raises:
            ResolutionError: If the URI is malformed or the scheme unsupported
        """
        try:
            parts = urlsplit(text.strip())
            scheme = parts.scheme.lower()
            if scheme in NETWORK_SCHEMES:
                host, port = parts.hostname, parts.port
                if not host or port is None:
                    raise ValueError("host and port are required")
                return cls(scheme=scheme, host=host, port=port)
            if scheme in LOCAL_SCHEMES:
                if not parts.path:
                    raise ValueError("path is required")
                return cls(scheme=scheme, path=parts.path)
        except ValueError as e:
            raise ResolutionError(text, f"invalid endpoint: {e}") from None
        raise ResolutionError(text, f"unsupported endpoint scheme {parts.scheme!r}")

    def __str__(self) -> str:
        if self.scheme in LOCAL_SCHEMES:
            return f"{self.scheme}://{self.path}"
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{self.scheme}://{host}:{self.port}"


def parse_endpoint_table(pairs: Iterable[str]) -> Dict[str, Endpoint]:
    """Parse ``name=endpoint`` pairs into a table."""
    table = {}
    for pair in pairs:
        name, sep, uri = pair.partition("=")
        if not sep or not name.strip():
            raise ResolutionError(pair, "expected name=endpoint")
        table[name.strip()] = Endpoint.parse(uri)
    return table


class StaticResolver(Resolver):
    """Resolves names from a fixed table."""

    def __init__(self, table: Mapping[str, Union[str, Endpoint]]):
        self.table: Dict[str, Endpoint] = {
            name: endpoint if isinstance(endpoint, Endpoint) else Endpoint.parse(endpoint)
            for name, endpoint in table.items()
        }

    async def locate(self, object_id: str) -> Endpoint:
        try:
            return self.table[object_id]
        except KeyError:
            raise ResolutionError(object_id) from None
