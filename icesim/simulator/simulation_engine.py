"""
SimulationEngine - core discrete-event simulation loop.

Key design: the engine owns every piece of mutable state (event queue,
servers, waiting line, customer ledger, metrics) for the run's lifetime.
Events are processed strictly one at a time, each to completion.
"""

import logging
from typing import Dict, Optional

from icesim.common.errors import InvariantViolation
from icesim.metrics.collector import MetricsAccumulator, SimulationReport
from icesim.shop.customer import Customer, CustomerLedger
from icesim.shop.random_source import NumpyRandomSource, RandomSource
from icesim.simulator.config import SimulationConfig
from icesim.simulator.event import ArrivalEvent, DepartureEvent, Event, EventQueue, EventType
from icesim.simulator.server import ServerPool
from icesim.simulator.waiting_line import WaitingLine

logger = logging.getLogger(__name__)


class SimulationEngine:
    """
    Discrete-event simulator of a multi-server shop.

    Architecture:
    - EventQueue holds pending ARRIVAL and DEPARTURE events
    - An arrival takes the lowest-indexed free server or joins the line
    - A departure frees its server, which immediately takes the head of the line
    - The loop stops when the queue is empty or the next event is past the horizon

    Attributes:
        config: Run parameters
        random_source: Source of all random draws
        current_time: Current simulation time (minutes)
        event_queue: Pending events
        servers: The clerks
        waiting_line: Customers waiting for a clerk
        customers: Ledger of every customer created
        metrics: Running totals
    """

    def __init__(self, config: SimulationConfig, random_source: RandomSource):
        """
        Initialize simulation engine.

        Args:
            config: Validated simulation parameters
            random_source: Source of inter-arrival gaps, service durations
                and scoop counts
        """
        self.config = config
        self.random_source = random_source
        self.horizon: float = config.sim_minutes
        self.current_time: float = 0.0

        self.event_queue = EventQueue()
        self.servers = ServerPool(config.num_servers)
        self.waiting_line = WaitingLine()
        self.customers = CustomerLedger()
        self.metrics = MetricsAccumulator()

        self.total_steps: int = 0
        self._started: bool = False

    def schedule_event(self, event: Event) -> None:
        """
        Add an event to the queue.

        Args:
            event: Event to schedule
        """
        self.event_queue.push(event)

    def run(self) -> None:
        """
        Run simulation until the event queue drains or the horizon is passed.

        Raises:
            InvariantViolation: If called twice on the same engine
        """
        if self._started:
            raise InvariantViolation("SimulationEngine.run() can only be called once")
        self._started = True

        logger.info(
            "Starting simulation: %d servers, lambda=%.3f/min, mean service=%.3f min, horizon=%.1f min",
            self.config.num_servers, self.config.arrival_rate_per_min,
            self.config.avg_service_min, self.horizon,
        )

        # First customer is created and scheduled before the loop starts
        self._schedule_arrival(0.0)

        while self.event_queue:
            event = self.event_queue.pop()
            if event.timestamp > self.horizon:
                # Past the horizon: discard and stop, the clock stays put
                logger.debug("Event %s is past the horizon, stopping", event)
                break

            self.current_time = event.timestamp
            if event.event_type == EventType.ARRIVAL:
                self._handle_arrival(event)
            elif event.event_type == EventType.DEPARTURE:
                self._handle_departure(event)

            self.total_steps += 1

        logger.info(
            "Simulation finished at t=%.3f after %d events: %d served, %d still waiting",
            self.current_time, self.total_steps, self.metrics.served_count, len(self.waiting_line),
        )

    def _schedule_arrival(self, at_time: float) -> Customer:
        """Create the customer record and schedule its ARRIVAL event."""
        customer = self.customers.create(arrival_time=at_time)
        self.schedule_event(ArrivalEvent(timestamp=at_time, customer_id=customer.customer_id))
        return customer

    def _handle_arrival(self, event: ArrivalEvent) -> None:
        """
        Handle ARRIVAL event.

        Starts service on a free server if there is one, otherwise the
        customer joins the waiting line. Then schedules the next arrival
        unless it would fall past the horizon.

        Args:
            event: ARRIVAL event
        """
        customer = self.customers.get(event.customer_id)
        customer.arrival_time = self.current_time

        server_id = self.servers.find_free_server()
        if server_id is not None:
            idle = self._start_service(customer, server_id)
            self.metrics.add_idle(idle)
        else:
            self.waiting_line.append(customer.customer_id)
            logger.debug("t=%.3f customer %d joins the line (length %d)",
                         self.current_time, customer.customer_id, len(self.waiting_line))

        next_time = self.current_time + self.random_source.next_inter_arrival_gap()
        if next_time <= self.horizon:
            self._schedule_arrival(next_time)

    def _handle_departure(self, event: DepartureEvent) -> None:
        """
        Handle DEPARTURE event.

        Frees the server, books the customer's wait and revenue, and hands
        the server to the head of the waiting line if anyone is waiting.

        Args:
            event: DEPARTURE event
        """
        customer = self.customers.get(event.customer_id)
        if customer.service_start is None:
            raise InvariantViolation(f"Customer {customer.customer_id} departs without being served")

        customer.departure_time = self.current_time
        self.servers.release(event.server_id, self.current_time, customer_id=customer.customer_id)

        self.metrics.add_wait(customer.get_wait())
        self.metrics.increment_served()
        self.metrics.add_revenue(customer.scoops * self.config.price_per_scoop)
        logger.debug("t=%.3f customer %d leaves server %d", self.current_time,
                     customer.customer_id, event.server_id)

        if not self.waiting_line.is_empty():
            next_customer = self.customers.get(self.waiting_line.pop())
            # busy -> busy handover, the server was free for zero time
            self._start_service(next_customer, event.server_id)

    def _start_service(self, customer: Customer, server_id: int) -> float:
        """
        Assign a server, sample the order and schedule the DEPARTURE.

        Scoops are drawn before the service duration because the duration is
        the base draw scaled by the number of scoops.

        Returns:
            Idle time of the server since it was last freed
        """
        idle = self.servers.assign(server_id, customer.customer_id, self.current_time)
        customer.service_start = self.current_time

        customer.scoops = self.random_source.next_scoop_count()
        service_time = self.random_source.next_service_duration() * customer.scoops
        self.metrics.add_service(service_time)

        self.schedule_event(DepartureEvent(
            timestamp=self.current_time + service_time,
            customer_id=customer.customer_id,
            server_id=server_id,
        ))
        logger.debug("t=%.3f customer %d starts on server %d (%d scoops, %.3f min)",
                     self.current_time, customer.customer_id, server_id, customer.scoops, service_time)
        return idle

    def build_report(self) -> SimulationReport:
        """Finalize metrics. Call after run()."""
        return self.metrics.finalize(
            sim_minutes=self.horizon,
            num_servers=self.config.num_servers,
            customers_created=len(self.customers),
            remaining_in_queue=len(self.waiting_line),
            customers=self.customers,
        )

    def get_statistics(self) -> Dict:
        """
        Get simulation statistics.

        Returns:
            Dictionary with statistics
        """
        return {
            'total_customers': len(self.customers),
            'served_customers': self.metrics.served_count,
            'busy_servers': self.servers.busy_count(),
            'waiting': len(self.waiting_line),
            'pending_events': len(self.event_queue),
            'current_time': self.current_time,
            'total_steps': self.total_steps,
        }


def run_simulation(config: SimulationConfig,
                   random_source: Optional[RandomSource] = None) -> SimulationReport:
    """
    Run one simulated day and return its report.

    Args:
        config: Simulation parameters
        random_source: Source of random draws (a NumpyRandomSource seeded
            from config.seed if not given)
    """
    if random_source is None:
        random_source = NumpyRandomSource.from_config(config)
    engine = SimulationEngine(config, random_source)
    engine.run()
    return engine.build_report()
