"""
PURPOSE: Unit and integration tests for the Monte Carlo iteration driver.

Tests verify:
- Simulation fills pre-sized arrays with the right shapes
- Critical-path counts stay within [0, iterations]
- Seeded runs are reproducible and independent of the worker count
- Cancellation and timeout hooks abort between chunks
"""

import unittest

import numpy as np

from schedule_risk.monte_carlo.errors import SimulationCancelledError
from schedule_risk.monte_carlo.estimates import build_distributions
from schedule_risk.monte_carlo.models import Task
from schedule_risk.monte_carlo.network import TaskNetwork, build_predecessor_map
from schedule_risk.monte_carlo.simulation import MonteCarloSimulation


class TestMonteCarloSimulation(unittest.TestCase):
    """Test suite for the iteration driver."""

    def setUp(self):
        """Create a small schedule with a chain and a parallel task."""
        self.tasks = [
            Task(id="task_1", name="Requirements", estimated_days=8),
            Task(id="task_2", name="Design", estimated_days=12, dependency="task_1"),
            Task(id="task_3", name="Development", estimated_days=22, dependency="task_2"),
            Task(id="task_4", name="Documentation", estimated_days=5, dependency="task_1", priority="low"),
            Task(id="task_5", name="Deployment", estimated_days=3, dependency="task_3", priority="urgent"),
        ]
        self.distributions = build_distributions(self.tasks)
        self.network = TaskNetwork([t.id for t in self.tasks], build_predecessor_map(self.tasks))

    def test_simulation_runs_without_error(self):
        sim = MonteCarloSimulation(num_runs=500, random_seed=42)
        samples = sim.run(self.distributions, self.network)

        self.assertEqual(samples.iterations, 500)
        self.assertEqual(samples.total_durations.shape, (500,))
        self.assertEqual(samples.task_durations.shape, (500, 5))
        self.assertEqual(samples.critical_counts.shape, (5,))
        self.assertEqual(samples.task_ids, [t.id for t in self.tasks])

    def test_sampled_durations_within_bounds(self):
        samples = MonteCarloSimulation(num_runs=1000, random_seed=1).run(self.distributions, self.network)
        for column, dist in enumerate(self.distributions):
            history = samples.task_durations[:, column]
            self.assertTrue(np.all(history >= dist.optimistic))
            self.assertTrue(np.all(history <= dist.pessimistic))

    def test_critical_counts_bounds(self):
        samples = MonteCarloSimulation(num_runs=1000, random_seed=2).run(self.distributions, self.network)
        self.assertTrue(np.all(samples.critical_counts >= 0))
        self.assertTrue(np.all(samples.critical_counts <= 1000))
        # The long chain always dominates the short documentation branch
        self.assertEqual(int(samples.critical_counts[0]), 1000)
        self.assertEqual(int(samples.critical_counts[3]), 0)

    def test_total_is_longest_path(self):
        samples = MonteCarloSimulation(num_runs=200, random_seed=3).run(self.distributions, self.network)
        d = samples.task_durations
        chain = d[:, 0] + d[:, 1] + d[:, 2] + d[:, 4]
        branch = d[:, 0] + d[:, 3]
        np.testing.assert_allclose(samples.total_durations, np.maximum(chain, branch))

    def test_task_history_lookup(self):
        samples = MonteCarloSimulation(num_runs=100, random_seed=4).run(self.distributions, self.network)
        np.testing.assert_array_equal(samples.task_history("task_3"), samples.task_durations[:, 2])

    def test_reproducible_with_seed(self):
        first = MonteCarloSimulation(num_runs=300, random_seed=7).run(self.distributions, self.network)
        second = MonteCarloSimulation(num_runs=300, random_seed=7).run(self.distributions, self.network)
        np.testing.assert_array_equal(first.total_durations, second.total_durations)
        np.testing.assert_array_equal(first.critical_counts, second.critical_counts)

    def test_worker_count_does_not_change_results(self):
        sequential = MonteCarloSimulation(num_runs=1000, random_seed=8, chunk_size=150).run(
            self.distributions, self.network
        )
        threaded = MonteCarloSimulation(num_runs=1000, random_seed=8, chunk_size=150, workers=4).run(
            self.distributions, self.network
        )
        np.testing.assert_array_equal(sequential.task_durations, threaded.task_durations)
        np.testing.assert_array_equal(sequential.total_durations, threaded.total_durations)
        np.testing.assert_array_equal(sequential.critical_counts, threaded.critical_counts)

    def test_triangular_model(self):
        samples = MonteCarloSimulation(num_runs=500, uncertainty_model="triangular", random_seed=9).run(
            self.distributions, self.network
        )
        self.assertTrue(np.all(samples.total_durations > 0))

    def test_cancellation_before_first_chunk(self):
        sim = MonteCarloSimulation(num_runs=500, random_seed=1, should_cancel=lambda: True)
        with self.assertRaises(SimulationCancelledError) as ctx:
            sim.run(self.distributions, self.network)
        self.assertEqual(ctx.exception.completed_iterations, 0)
        self.assertEqual(ctx.exception.requested_iterations, 500)

    def test_cancellation_between_chunks(self):
        calls = {"n": 0}

        def cancel_on_third_check():
            calls["n"] += 1
            return calls["n"] >= 3

        sim = MonteCarloSimulation(num_runs=1000, chunk_size=100, random_seed=1, should_cancel=cancel_on_third_check)
        with self.assertRaises(SimulationCancelledError) as ctx:
            sim.run(self.distributions, self.network)
        self.assertEqual(ctx.exception.completed_iterations, 200)

    def test_timeout(self):
        sim = MonteCarloSimulation(num_runs=5000, chunk_size=1, random_seed=1, timeout_seconds=0.0)
        with self.assertRaises(SimulationCancelledError):
            sim.run(self.distributions, self.network)

    def test_invalid_arguments(self):
        with self.assertRaises(ValueError):
            MonteCarloSimulation(num_runs=0)
        with self.assertRaises(ValueError):
            MonteCarloSimulation(chunk_size=0)
        with self.assertRaises(ValueError):
            MonteCarloSimulation(workers=0)
        with self.assertRaises(ValueError):
            MonteCarloSimulation(uncertainty_model="lognormal")

    def test_requires_tasks(self):
        sim = MonteCarloSimulation(num_runs=100)
        with self.assertRaises(ValueError):
            sim.run([], TaskNetwork([], {}))

    def test_network_mismatch(self):
        sim = MonteCarloSimulation(num_runs=100)
        with self.assertRaises(ValueError):
            sim.run(self.distributions, TaskNetwork(["task_1"], {}))


if __name__ == "__main__":
    unittest.main()
