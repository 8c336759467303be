"""
Customer - a single shop visitor and the ledger that holds all of them.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from icesim.common.errors import InvariantViolation


@dataclass
class Customer:
    """
    Visitor to the shop.

    Attributes:
        customer_id: Sequential identifier, starting at 0
        arrival_time: When the customer enters the shop (simulation time)
        service_start: When a server was assigned (None if still waiting)
        departure_time: When service completed (None if not finished)
        scoops: Number of scoops ordered, sampled at service start
    """
    customer_id: int
    arrival_time: float

    service_start: Optional[float] = field(default=None)
    departure_time: Optional[float] = field(default=None)
    scoops: Optional[int] = field(default=None)

    def is_served(self) -> bool:
        """Check if the customer has left after being served."""
        return self.departure_time is not None

    def get_wait(self) -> Optional[float]:
        """
        Time spent waiting in line before service.

        Returns:
            Wait (never negative), or None if service has not started
        """
        if self.service_start is None:
            return None
        return max(0.0, self.service_start - self.arrival_time)

    def get_service_time(self) -> Optional[float]:
        if self.service_start is None or self.departure_time is None:
            return None
        return self.departure_time - self.service_start


class CustomerLedger:
    """
    Per-customer records addressed by id.

    Ids are handed out sequentially, so the ledger is a plain list indexed
    by customer id.
    """

    def __init__(self):
        self._customers: List[Customer] = []

    def create(self, arrival_time: float) -> Customer:
        """
        Create the record for a customer whose arrival is being scheduled.

        Args:
            arrival_time: Scheduled arrival time

        Returns:
            New Customer with the next free id
        """
        customer = Customer(customer_id=len(self._customers), arrival_time=arrival_time)
        self._customers.append(customer)
        return customer

    def get(self, customer_id: int) -> Customer:
        if not 0 <= customer_id < len(self._customers):
            raise InvariantViolation(f"Unknown customer id {customer_id}")
        return self._customers[customer_id]

    def served(self) -> List[Customer]:
        """All customers that have departed, in id order."""
        return [c for c in self._customers if c.is_served()]

    def __len__(self) -> int:
        return len(self._customers)

    def __iter__(self) -> Iterator[Customer]:
        return iter(self._customers)
