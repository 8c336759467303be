"""
Basic integration tests for simulation engine.
"""

import unittest

from icesim.common.errors import InvariantViolation
from icesim.shop.random_source import NumpyRandomSource, RandomSource
from icesim.simulator.config import SimulationConfig
from icesim.simulator.event import DepartureEvent
from icesim.simulator.simulation_engine import SimulationEngine, run_simulation


class FixedRandomSource(RandomSource):
    """Random source returning the same values every time."""

    def __init__(self, gap, service, scoops=1):
        self.gap = gap
        self.service = service
        self.scoops = scoops
        self.calls = []

    def next_inter_arrival_gap(self):
        self.calls.append('gap')
        return self.gap

    def next_service_duration(self):
        self.calls.append('service')
        return self.service

    def next_scoop_count(self):
        self.calls.append('scoops')
        return self.scoops


class TestBasicSimulation(unittest.TestCase):
    """Test basic simulation functionality."""

    def run_engine(self, random_source, **params):
        engine = SimulationEngine(SimulationConfig(**params), random_source)
        engine.run()
        return engine

    def test_single_server_back_to_back(self):
        """Test: unit gaps and unit services on one server never make anyone wait."""
        engine = self.run_engine(FixedRandomSource(gap=1.0, service=1.0),
                                 num_servers=1, sim_minutes=5)
        report = engine.build_report()

        served = engine.customers.served()
        self.assertEqual([c.arrival_time for c in served], [0.0, 1.0, 2.0, 3.0, 4.0])
        self.assertEqual(report.served_count, 5)
        for customer in served:
            self.assertAlmostEqual(customer.get_wait(), 0.0, places=9)
        self.assertAlmostEqual(report.average_wait, 0.0, places=9)
        self.assertAlmostEqual(report.throughput_per_min, report.served_count / 5)
        self.assertEqual(report.remaining_in_queue, 0)
        # Only the time the clock reached is ever processed
        self.assertLessEqual(engine.current_time, 5.0)

        stats = engine.get_statistics()
        self.assertEqual(stats['total_customers'], 6)
        self.assertEqual(stats['served_customers'], 5)
        # the t=5 arrival is still at the counter when the day ends
        self.assertEqual(stats['busy_servers'], 1)

    def test_two_servers_third_customer_waits(self):
        """Test: with both servers busy until t=3, the t=1 arrival waits 2 minutes."""
        engine = self.run_engine(FixedRandomSource(gap=0.5, service=3.0),
                                 num_servers=2, sim_minutes=10)

        first, second, third = (engine.customers.get(i) for i in range(3))
        self.assertEqual(first.service_start, 0.0)
        self.assertEqual(second.service_start, 0.5)
        self.assertEqual(third.arrival_time, 1.0)
        self.assertEqual(third.service_start, 3.0)
        self.assertAlmostEqual(third.get_wait(), 2.0)
        self.assertEqual(third.departure_time, 6.0)

    def test_zero_horizon(self):
        """Test: a zero-length day serves nobody and divides by nothing."""
        engine = self.run_engine(FixedRandomSource(gap=1.0, service=1.0), sim_minutes=0)
        report = engine.build_report()

        self.assertEqual(report.served_count, 0)
        self.assertEqual(report.throughput_per_min, 0.0)
        self.assertEqual(report.average_wait, 0.0)
        self.assertEqual(report.average_service, 0.0)
        self.assertEqual(report.total_revenue, 0.0)

    def test_scoops_sampled_before_service_and_scale_duration(self):
        """Test: service duration is the base draw times the scoop count."""
        source = FixedRandomSource(gap=100.0, service=1.5, scoops=3)
        engine = self.run_engine(source, num_servers=1, sim_minutes=10, price_per_scoop=2.0)

        customer = engine.customers.get(0)
        self.assertEqual(customer.scoops, 3)
        self.assertAlmostEqual(customer.departure_time, 4.5)
        self.assertAlmostEqual(customer.get_service_time(), 4.5)
        self.assertEqual(source.calls[:2], ['scoops', 'service'])
        self.assertEqual(engine.metrics.total_revenue, 6.0)

    def test_departure_frees_server_for_simultaneous_arrival(self):
        """Test: a departure at the same time as an arrival is processed first."""
        engine = self.run_engine(FixedRandomSource(gap=2.0, service=2.0),
                                 num_servers=1, sim_minutes=3)

        second = engine.customers.get(1)
        self.assertEqual(second.service_start, 2.0)
        # The server went busy -> busy without accruing idle time
        self.assertEqual(engine.metrics.idle_time, 0.0)

    def test_idle_time_accumulates_between_services(self):
        """Test: a clerk idle from t=1 to t=3 accrues two idle minutes."""
        engine = self.run_engine(FixedRandomSource(gap=3.0, service=1.0),
                                 num_servers=1, sim_minutes=7)

        # services at 0, 3, 6; idle gaps [1, 3] and [4, 6]
        self.assertAlmostEqual(engine.metrics.idle_time, 4.0)

    def test_lowest_indexed_server_is_used(self):
        """Test: with spare capacity every customer goes to server 0."""
        engine = self.run_engine(FixedRandomSource(gap=2.0, service=1.0),
                                 num_servers=3, sim_minutes=9)
        self.assertEqual(engine.servers.busy_count(), 0)
        last_free = [s.last_free_time for s in engine.servers]
        self.assertEqual(last_free, [9.0, 0.0, 0.0])

    def test_run_only_once(self):
        engine = self.run_engine(FixedRandomSource(gap=1.0, service=1.0), sim_minutes=2)
        with self.assertRaises(InvariantViolation):
            engine.run()

    def test_departure_without_service_is_fatal(self):
        """Test: a departure for a customer nobody served stops the run."""
        engine = SimulationEngine(SimulationConfig(sim_minutes=5), FixedRandomSource(gap=1.0, service=1.0))
        # popped before the t=0 arrival of customer 0, whose service has not started
        engine.schedule_event(DepartureEvent(timestamp=0.0, customer_id=0, server_id=0))

        with self.assertRaises(InvariantViolation):
            engine.run()
        self.assertEqual(engine.metrics.served_count, 0)


class TestSimulationProperties(unittest.TestCase):
    """Properties that must hold for any random run."""

    def test_lifecycle_is_monotonic(self):
        config = SimulationConfig(num_servers=2, arrival_rate_per_min=1.5, seed=7)
        engine = SimulationEngine(config, _numpy_source(config))
        engine.run()

        served = engine.customers.served()
        self.assertLessEqual(len(served), len(engine.customers))
        self.assertEqual(len(served), engine.metrics.served_count)
        for customer in served:
            self.assertGreaterEqual(customer.service_start, customer.arrival_time)
            self.assertGreaterEqual(customer.departure_time, customer.service_start)

    def test_revenue_matches_served_scoops(self):
        config = SimulationConfig(seed=11, price_per_scoop=2.5)
        engine = SimulationEngine(config, _numpy_source(config))
        engine.run()

        expected = 0.0
        for customer in engine.customers.served():
            expected += customer.scoops * config.price_per_scoop
        self.assertEqual(engine.metrics.total_revenue, expected)

    def test_ample_servers_means_no_waiting(self):
        config = SimulationConfig(num_servers=500, arrival_rate_per_min=2.0, seed=3)
        report = run_simulation(config)
        self.assertEqual(report.average_wait, 0.0)
        self.assertEqual(report.remaining_in_queue, 0)
        self.assertGreater(report.served_count, 0)

    def test_fixed_seed_is_reproducible(self):
        config = SimulationConfig(num_servers=2, arrival_rate_per_min=1.8, seed=2024)
        self.assertEqual(run_simulation(config), run_simulation(config))

    def test_immediately_served_customers_do_not_wait(self):
        config = SimulationConfig(num_servers=1, arrival_rate_per_min=1.0, seed=5)
        engine = SimulationEngine(config, _numpy_source(config))
        engine.run()

        immediate = [c for c in engine.customers.served() if c.service_start == c.arrival_time]
        self.assertTrue(immediate)
        for customer in immediate:
            self.assertEqual(customer.get_wait(), 0.0)


def _numpy_source(config):
    return NumpyRandomSource.from_config(config)


if __name__ == '__main__':
    unittest.main()
