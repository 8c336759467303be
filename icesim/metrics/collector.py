"""
MetricsAccumulator - running totals updated by the engine, finalized once.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable

import numpy as np

from icesim.common.errors import InvariantViolation
from icesim.shop.customer import Customer


@dataclass(frozen=True)
class SimulationReport:
    """
    Finalized results of one run.

    Attributes:
        num_servers: Number of clerks
        sim_minutes: Simulation horizon
        customers_created: Customers whose arrival was scheduled
        served_count: Customers that departed before the horizon
        throughput_per_min: served_count / sim_minutes
        average_wait: Mean wait in line of served customers
        average_service: Mean service time of started services
        total_revenue: Revenue from served customers
        total_idle_time: Server idle time accumulated at service starts
        remaining_in_queue: Customers still waiting at the horizon
        wait_stats: Distribution of served customers' waits
    """
    num_servers: int
    sim_minutes: float
    customers_created: int
    served_count: int
    throughput_per_min: float
    average_wait: float
    average_service: float
    total_revenue: float
    total_idle_time: float
    remaining_in_queue: int
    wait_stats: Dict[str, float] = field(default_factory=dict)


class MetricsAccumulator:
    """
    Collects metrics during simulation and computes statistics.

    Tracks:
    - Total waiting time of served customers
    - Total (scoop-scaled) service time of started services
    - Number of served customers and the revenue they bring
    - Idle time of servers between services

    Derived values (averages, throughput) are only computed by finalize().
    """

    def __init__(self):
        self.total_waiting_time: float = 0.0
        self.total_service_time: float = 0.0
        self.served_count: int = 0
        self.total_revenue: float = 0.0
        self.idle_time: float = 0.0

    def add_wait(self, wait: float) -> None:
        self.total_waiting_time += self._checked(wait, 'wait')

    def add_service(self, service_time: float) -> None:
        self.total_service_time += self._checked(service_time, 'service time')

    def add_revenue(self, revenue: float) -> None:
        self.total_revenue += self._checked(revenue, 'revenue')

    def add_idle(self, idle: float) -> None:
        self.idle_time += self._checked(idle, 'idle time')

    def increment_served(self) -> None:
        self.served_count += 1

    @staticmethod
    def _checked(amount: float, what: str) -> float:
        # totals are monotone; a negative amount means the engine is broken
        if amount < 0:
            raise InvariantViolation(f"Negative {what} {amount} would decrease a running total")
        return amount

    def finalize(self,
                 sim_minutes: float,
                 num_servers: int,
                 customers_created: int,
                 remaining_in_queue: int,
                 customers: Iterable[Customer] = ()) -> SimulationReport:
        """
        Compute derived metrics once the loop has ended.

        Args:
            sim_minutes: Simulation horizon
            num_servers: Number of clerks
            customers_created: Size of the customer ledger
            remaining_in_queue: Waiting line length at the end
            customers: Customer records, used for the wait distribution

        Returns:
            SimulationReport
        """
        served = self.served_count
        return SimulationReport(
            num_servers=num_servers,
            sim_minutes=sim_minutes,
            customers_created=customers_created,
            served_count=served,
            throughput_per_min=served / sim_minutes if sim_minutes > 0 else 0.0,
            average_wait=self.total_waiting_time / served if served > 0 else 0.0,
            average_service=self.total_service_time / served if served > 0 else 0.0,
            total_revenue=self.total_revenue,
            total_idle_time=self.idle_time,
            remaining_in_queue=remaining_in_queue,
            wait_stats=wait_statistics(customers),
        )

    def get_summary(self) -> Dict[str, float]:
        """Raw running totals."""
        return {
            'total_waiting_time': self.total_waiting_time,
            'total_service_time': self.total_service_time,
            'served_count': self.served_count,
            'total_revenue': self.total_revenue,
            'idle_time': self.idle_time,
        }


def wait_statistics(customers: Iterable[Customer]) -> Dict[str, float]:
    """
    Get wait statistics over served customers.

    Args:
        customers: Customer records (unserved ones are skipped)

    Returns:
        Dictionary with statistics (count, mean, median, p95, max, std)
    """
    waits = [c.get_wait() for c in customers if c.is_served()]

    if not waits:
        return {
            'count': 0,
            'mean': 0.0,
            'median': 0.0,
            'p95': 0.0,
            'max': 0.0,
            'std': 0.0
        }

    waits_array = np.array(waits)

    return {
        'count': len(waits),
        'mean': float(np.mean(waits_array)),
        'median': float(np.median(waits_array)),
        'p95': float(np.percentile(waits_array, 95)),
        'max': float(np.max(waits_array)),
        'std': float(np.std(waits_array))
    }
