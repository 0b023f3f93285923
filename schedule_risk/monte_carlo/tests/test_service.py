"""
PURPOSE: End-to-end tests for ScheduleRiskService.

Tests verify:
- Percentile, histogram and statistic invariants for both uncertainty models
- Sensitivity and criticality ordering on a known chain
- Not-found and config errors abort before any simulation work
- Cost forecast degrades to zero when the budget is unavailable
- Result serialization and immutability
"""

import unittest
from dataclasses import FrozenInstanceError
from datetime import date
from unittest.mock import MagicMock, patch

from schedule_risk.monte_carlo.critical_path import CriticalPathBaseline
from schedule_risk.monte_carlo.errors import (
    NoTasksFoundError,
    ScheduleNotFoundError,
    SimulationCancelledError,
    SimulationConfigError,
)
from schedule_risk.monte_carlo.models import Schedule, Task
from schedule_risk.monte_carlo.repository import InMemoryBudgetProvider, InMemoryScheduleRepository
from schedule_risk.monte_carlo.service import ScheduleRiskService

START = date(2026, 1, 5)


def make_repository(tasks, project_id="proj_1"):
    repository = InMemoryScheduleRepository()
    repository.add_schedule(Schedule(id="sched_1", start_date=START, project_id=project_id), tasks)
    return repository


def chain_tasks(priority="medium"):
    return [
        Task(id="A", name="Design", estimated_days=10, priority=priority),
        Task(id="B", name="Build", estimated_days=20, dependency="A", priority=priority),
        Task(id="C", name="Test", estimated_days=5, dependency="B", priority=priority),
    ]


class RaisingBudgetProvider:
    def find_allocated_budget(self, project_id):
        raise ConnectionError("budget service down")


class TestScheduleRiskService(unittest.TestCase):
    """Test suite for full simulation runs."""

    def setUp(self):
        self.repository = make_repository(chain_tasks())
        self.service = ScheduleRiskService(self.repository, random_seed=42)

    def test_chain_statistics(self):
        result = self.service.run_simulation("sched_1", {"iterations": 2000})
        stats = result.duration_stats

        self.assertEqual(result.iterations_run, 2000)
        self.assertGreater(stats.mean, 25)
        self.assertLess(stats.mean, 65)
        self.assertEqual(result.sensitivity_analysis[0].task_id, "B")
        self.assertEqual([s.rank for s in result.sensitivity_analysis], [1, 2, 3])
        # Every task of a linear chain is always critical
        for item in result.criticality_index:
            self.assertEqual(item.criticality_percent, 100.0)

    def test_invariants_for_both_models(self):
        tasks = chain_tasks() + [Task(id="D", name="Docs", estimated_days=8, dependency="A", priority="low")]
        service = ScheduleRiskService(make_repository(tasks), random_seed=7)
        for model in ("pert", "triangular"):
            with self.subTest(model=model):
                result = service.run_simulation("sched_1", {"iterations": 1000, "uncertaintyModel": model})
                stats = result.duration_stats
                self.assertLessEqual(stats.min, stats.p50)
                self.assertLessEqual(stats.p50, stats.p80)
                self.assertLessEqual(stats.p80, stats.p90)
                self.assertLessEqual(stats.p90, stats.max)
                self.assertGreaterEqual(stats.std_dev, 0)

                bins = result.histogram
                self.assertLessEqual(len(bins), 20)
                self.assertEqual(sum(b.count for b in bins), 1000)
                self.assertEqual(bins[-1].cumulative_percent, 100.0)

                self.assertEqual(len(result.sensitivity_analysis), 4)
                self.assertEqual(len(result.criticality_index), 4)
                for item in result.sensitivity_analysis:
                    self.assertGreaterEqual(item.correlation_coefficient, -1.0)
                    self.assertLessEqual(item.correlation_coefficient, 1.0)
                percents = [c.criticality_percent for c in result.criticality_index]
                self.assertEqual(percents, sorted(percents, reverse=True))
                self.assertEqual(result.simulation_config.uncertainty_model, model)

    def test_single_task(self):
        service = ScheduleRiskService(make_repository([Task(id="D", name="Solo", estimated_days=10)]), random_seed=1)
        result = service.run_simulation("sched_1", {"iterations": 1000})
        self.assertEqual(len(result.sensitivity_analysis), 1)
        self.assertEqual(len(result.criticality_index), 1)
        self.assertEqual(result.criticality_index[0].criticality_percent, 100.0)
        self.assertGreater(result.duration_stats.mean, 9)
        self.assertLess(result.duration_stats.mean, 13)

    def test_date_span_task(self):
        task = Task(id="D", name="Dated", start_date=date(2026, 2, 1), end_date=date(2026, 2, 15))
        service = ScheduleRiskService(make_repository([task]), random_seed=2)
        result = service.run_simulation("sched_1", {"iterations": 1000})
        self.assertGreater(result.duration_stats.mean, 12)
        self.assertLess(result.duration_stats.mean, 18)

    def test_urgent_priority_widens_spread(self):
        low = ScheduleRiskService(make_repository(chain_tasks("low")), random_seed=3)
        urgent = ScheduleRiskService(make_repository(chain_tasks("urgent")), random_seed=3)
        low_stats = low.run_simulation("sched_1", {"iterations": 2000}).duration_stats
        urgent_stats = urgent.run_simulation("sched_1", {"iterations": 2000}).duration_stats
        self.assertGreater(urgent_stats.std_dev, low_stats.std_dev)

    def test_completion_dates(self):
        result = self.service.run_simulation("sched_1", {"iterations": 500})
        dates = [date.fromisoformat(d) for d in (result.completion_date.p50, result.completion_date.p80, result.completion_date.p90)]
        self.assertTrue(all(d > START for d in dates))
        self.assertEqual(dates, sorted(dates))

    def test_confidence_percentiles(self):
        result = self.service.run_simulation("sched_1", {"iterations": 500, "confidenceLevels": [10, 50, 95]})
        levels = [c.confidence_level for c in result.confidence_percentiles]
        self.assertEqual(levels, [10, 50, 95])
        durations = [c.duration_days for c in result.confidence_percentiles]
        self.assertEqual(durations, sorted(durations))
        self.assertEqual(result.confidence_percentiles[1].duration_days, result.duration_stats.p50)

    def test_seeded_runs_match(self):
        first = self.service.run_simulation("sched_1", {"iterations": 300})
        second = ScheduleRiskService(self.repository, random_seed=42).run_simulation("sched_1", {"iterations": 300})
        self.assertEqual(first.duration_stats, second.duration_stats)

    def test_cyclic_schedule_still_runs(self):
        tasks = [
            Task(id="A", name="Loop A", estimated_days=3, dependency="B"),
            Task(id="B", name="Loop B", estimated_days=4, dependency="A"),
        ]
        service = ScheduleRiskService(make_repository(tasks), random_seed=4)
        result = service.run_simulation("sched_1", {"iterations": 200})
        self.assertEqual(result.iterations_run, 200)
        self.assertGreater(result.duration_stats.min, 0)


class TestServiceErrors(unittest.TestCase):
    def test_missing_schedule(self):
        service = ScheduleRiskService(InMemoryScheduleRepository())
        with self.assertRaises(ScheduleNotFoundError) as ctx:
            service.run_simulation("nope")
        self.assertIn("nope", str(ctx.exception))

    def test_no_tasks_aborts_before_simulation(self):
        service = ScheduleRiskService(make_repository([]))
        with patch("schedule_risk.monte_carlo.service.MonteCarloSimulation") as simulation_cls:
            with self.assertRaises(NoTasksFoundError):
                service.run_simulation("sched_1")
        simulation_cls.assert_not_called()

    def test_invalid_config_checked_first(self):
        repository = MagicMock()
        service = ScheduleRiskService(repository)
        with self.assertRaises(SimulationConfigError) as ctx:
            service.run_simulation("sched_1", {"iterations": 50})
        self.assertEqual(ctx.exception.fields, ["iterations"])
        repository.find_schedule_by_id.assert_not_called()
        repository.find_tasks_by_schedule_id.assert_not_called()

    def test_cancellation(self):
        service = ScheduleRiskService(make_repository(chain_tasks()), random_seed=1)
        with self.assertRaises(SimulationCancelledError):
            service.run_simulation("sched_1", {"iterations": 500}, should_cancel=lambda: True)


class TestCostForecastIntegration(unittest.TestCase):
    def test_budget_with_deterministic_baseline(self):
        repository = make_repository(chain_tasks())
        service = ScheduleRiskService(
            repository,
            budget_provider=InMemoryBudgetProvider({"proj_1": 100000}),
            baseline_provider=CriticalPathBaseline(repository),
            random_seed=5,
        )
        result = service.run_simulation("sched_1", {"iterations": 1000})
        cost = result.cost_forecast
        self.assertGreater(cost.p50, 0)
        self.assertGreaterEqual(cost.p80, cost.p50)
        self.assertGreaterEqual(cost.p90, cost.p80)
        self.assertIsInstance(cost.p50, int)
        for row in result.confidence_percentiles:
            self.assertGreater(row.cost, 0)

    def test_baseline_falls_back_to_p50(self):
        service = ScheduleRiskService(
            make_repository(chain_tasks()),
            budget_provider=InMemoryBudgetProvider({"proj_1": 50000}),
            random_seed=6,
        )
        result = service.run_simulation("sched_1", {"iterations": 1000})
        self.assertEqual(result.cost_forecast.p50, 50000)

    def test_failing_budget_provider_gives_zero_cost(self):
        service = ScheduleRiskService(
            make_repository(chain_tasks()), budget_provider=RaisingBudgetProvider(), random_seed=7
        )
        with self.assertLogs("schedule_risk.monte_carlo.service", level="WARNING"):
            result = service.run_simulation("sched_1", {"iterations": 200})
        self.assertEqual(result.cost_forecast.to_dict(), {"p50": 0, "p80": 0, "p90": 0})

    def test_non_numeric_budget_gives_zero_cost(self):
        service = ScheduleRiskService(
            make_repository(chain_tasks()),
            budget_provider=InMemoryBudgetProvider({"proj_1": "1000"}),
            random_seed=11,
        )
        with self.assertLogs("schedule_risk.monte_carlo.service", level="WARNING"):
            result = service.run_simulation("sched_1", {"iterations": 200})
        self.assertEqual(result.cost_forecast.to_dict(), {"p50": 0, "p80": 0, "p90": 0})
        self.assertTrue(all(row.cost == 0 for row in result.confidence_percentiles))

    def test_no_budget_provider(self):
        service = ScheduleRiskService(make_repository(chain_tasks()), random_seed=8)
        result = service.run_simulation("sched_1", {"iterations": 200})
        self.assertEqual(result.cost_forecast.to_dict(), {"p50": 0, "p80": 0, "p90": 0})

    def test_missing_project_id(self):
        budget = MagicMock()
        service = ScheduleRiskService(
            make_repository(chain_tasks(), project_id=None), budget_provider=budget, random_seed=9
        )
        result = service.run_simulation("sched_1", {"iterations": 200})
        budget.find_allocated_budget.assert_not_called()
        self.assertEqual(result.cost_forecast.p90, 0)


class TestResultShape(unittest.TestCase):
    def setUp(self):
        service = ScheduleRiskService(make_repository(chain_tasks()), random_seed=10)
        self.result = service.run_simulation("sched_1", {"iterations": 300})

    def test_to_dict(self):
        data = self.result.to_dict()
        self.assertEqual(
            set(data),
            {
                "completion_date",
                "duration_stats",
                "histogram",
                "sensitivity_analysis",
                "criticality_index",
                "cost_forecast",
                "confidence_percentiles",
                "simulation_config",
                "iterations_run",
            },
        )
        self.assertIn("bins", data["histogram"])
        self.assertEqual(set(data["duration_stats"]), {"min", "max", "mean", "std_dev", "p50", "p80", "p90"})
        self.assertEqual(data["simulation_config"]["iterations"], 300)
        self.assertEqual(data["sensitivity_analysis"][0]["rank"], 1)

    def test_result_is_immutable(self):
        with self.assertRaises(FrozenInstanceError):
            self.result.iterations_run = 1
        with self.assertRaises(FrozenInstanceError):
            self.result.duration_stats.mean = 0.0


if __name__ == "__main__":
    unittest.main()
