"""
Server management for the shop's clerks.

Servers are addressed by index into a fixed-size list owned by ServerPool.
Allocation always picks the lowest-indexed idle server.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional

from icesim.common.errors import InvalidParameter, InvariantViolation


@dataclass
class Server:
    """
    A single clerk.

    Attributes:
        server_id: Index of this server in its pool
        busy: Whether the server is serving someone
        current_customer_id: Customer being served (None while idle)
        last_free_time: Time at which the server last became idle
    """
    server_id: int
    busy: bool = False
    current_customer_id: Optional[int] = None
    last_free_time: float = 0.0

    def __repr__(self) -> str:
        state = f"busy({self.current_customer_id})" if self.busy else "idle"
        return f"Server({self.server_id}, {state}, last_free={self.last_free_time:.3f})"


class ServerPool:
    """
    Tracks busy/free state and current occupant for each of N servers.
    """

    def __init__(self, num_servers: int):
        """
        Initialize the pool with all servers idle since time 0.

        Args:
            num_servers: Number of parallel servers (>= 1)
        """
        if num_servers < 1:
            raise InvalidParameter(f"Number of servers must be at least 1, got {num_servers}")
        self.servers: List[Server] = [Server(server_id=i) for i in range(num_servers)]

    def find_free_server(self) -> Optional[int]:
        """
        Find the lowest-indexed idle server.

        Returns:
            Server id, or None if all servers are busy
        """
        for server in self.servers:
            if not server.busy:
                return server.server_id
        return None

    def assign(self, server_id: int, customer_id: int, at_time: float) -> float:
        """
        Start serving a customer on an idle server.

        Args:
            server_id: Server to occupy
            customer_id: Customer to serve
            at_time: Current simulation time

        Returns:
            Idle duration since the server last became free (never negative)

        Raises:
            InvariantViolation: If the server is already busy
        """
        server = self._get(server_id)
        if server.busy:
            raise InvariantViolation(
                f"Server {server_id} is busy with customer {server.current_customer_id}, "
                f"cannot assign customer {customer_id}"
            )
        server.busy = True
        server.current_customer_id = customer_id
        return max(0.0, at_time - server.last_free_time)

    def release(self, server_id: int, at_time: float, customer_id: Optional[int] = None) -> None:
        """
        Mark a server idle.

        Args:
            server_id: Server to free
            at_time: Current simulation time (becomes last_free_time)
            customer_id: If given, must match the customer being served

        Raises:
            InvariantViolation: If the server is idle or serves someone else
        """
        server = self._get(server_id)
        if not server.busy:
            raise InvariantViolation(f"Server {server_id} is already idle")
        if customer_id is not None and server.current_customer_id != customer_id:
            raise InvariantViolation(
                f"Customer {customer_id} is not in service on server {server_id} "
                f"(serving {server.current_customer_id})"
            )
        server.busy = False
        server.current_customer_id = None
        server.last_free_time = at_time

    def occupant(self, server_id: int) -> Optional[int]:
        """Customer currently served by a server, or None."""
        return self._get(server_id).current_customer_id

    def busy_count(self) -> int:
        return sum(1 for server in self.servers if server.busy)

    def _get(self, server_id: int) -> Server:
        if not 0 <= server_id < len(self.servers):
            raise InvariantViolation(f"Unknown server id {server_id}")
        return self.servers[server_id]

    def __len__(self) -> int:
        return len(self.servers)

    def __iter__(self) -> Iterator[Server]:
        return iter(self.servers)

    def __repr__(self) -> str:
        return f"ServerPool(size={len(self.servers)}, busy={self.busy_count()})"
