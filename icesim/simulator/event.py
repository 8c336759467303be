"""
Event system for discrete-event simulation.

Two kinds of events exist: ARRIVAL (a customer enters the shop) and
DEPARTURE (a customer's service completes on a given server). Events are
kept in a heap ordered by (timestamp, kind, insertion sequence).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple
from heapq import heappush, heappop

from icesim.common.errors import Exhausted, InvalidParameter

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events in the simulation."""
    ARRIVAL = "arrival"      # Customer enters the shop
    DEPARTURE = "departure"  # Customer finishes service and leaves


# Rank used to break ties at identical timestamps (lower = popped first).
# A departure frees its server before a simultaneous arrival looks for one.
_KIND_RANK = {
    EventType.DEPARTURE: 0,
    EventType.ARRIVAL: 1,
}


@dataclass(frozen=True)
class Event:
    """
    Discrete event in the simulation.

    Attributes:
        timestamp: Simulation time when event occurs (minutes)
        customer_id: Customer the event refers to
    """
    timestamp: float
    customer_id: int

    event_type = None  # set by the concrete variants

    def __post_init__(self):
        """Validate timestamp is non-negative and the event has a concrete kind."""
        if self.event_type is None:
            raise InvalidParameter(
                f"{type(self).__name__} has no event type, use ArrivalEvent or DepartureEvent"
            )
        if not self.timestamp >= 0:
            raise InvalidParameter(f"Event timestamp must be non-negative, got {self.timestamp}")


@dataclass(frozen=True)
class ArrivalEvent(Event):
    """A customer walks into the shop."""
    event_type = EventType.ARRIVAL


@dataclass(frozen=True)
class DepartureEvent(Event):
    """
    A customer's service completes.

    Attributes:
        server_id: Server that was serving the customer
    """
    server_id: int
    event_type = EventType.DEPARTURE


class EventQueue:
    """
    Priority queue for simulation events, ordered by timestamp.

    Uses heapq for O(log n) push/pop operations. Ties at the same timestamp
    are resolved departures first, then in insertion order, so a run with a
    fixed random sequence always processes events in the same order.
    """

    def __init__(self):
        self._heap: List[Tuple[float, int, int, Event]] = []
        self._event_counter: int = 0  # For stable ordering of same-timestamp events

    def push(self, event: Event) -> None:
        """
        Add an event to the queue.

        Args:
            event: Event to schedule
        """
        key = (event.timestamp, _KIND_RANK[event.event_type], self._event_counter, event)
        heappush(self._heap, key)
        self._event_counter += 1
        logger.debug("Event queued: %s", event)

    def pop(self) -> Event:
        """
        Remove and return the next event (earliest timestamp).

        Returns:
            Next event to process

        Raises:
            Exhausted: If queue is empty
        """
        if not self._heap:
            raise Exhausted("Cannot pop from empty EventQueue")
        return heappop(self._heap)[-1]

    def peek(self) -> Optional[Event]:
        """
        Get the next event without removing it.

        Returns:
            Next event, or None if queue is empty
        """
        return self._heap[0][-1] if self._heap else None

    def is_empty(self) -> bool:
        """Check if queue has no events."""
        return len(self._heap) == 0

    def size(self) -> int:
        """Get number of events in queue."""
        return len(self._heap)

    def clear(self) -> None:
        """Remove all events from queue."""
        self._heap.clear()
        self._event_counter = 0

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        """True if queue has events."""
        return bool(self._heap)
