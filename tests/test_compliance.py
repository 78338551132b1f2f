import sys
import unittest
from datetime import date, datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from routine_tracking.domain.models import OperationalLog, Task, TaskCompletion, User
from routine_tracking.services.compliance import (
    ComplianceFilters,
    aggregate,
    daily_series,
    filter_options,
    ranking_labels,
    round_half_up,
)

NOW = datetime(2024, 5, 15, 12, 0)


def _done(cid: str, task_id: str, user_id: str, at: datetime) -> TaskCompletion:
    return TaskCompletion(id=cid, task_id=task_id, user_id=user_id, completed_at=at)


def _log(lid: str, kind: str, value: float, at: datetime) -> OperationalLog:
    return OperationalLog(id=lid, user_id="a", kind=kind, value=value, description=lid, timestamp=at)


class AggregateScoresTests(unittest.TestCase):
    def setUp(self) -> None:
        self.users = [
            User(id="a", name="Ana Costa", shift="Morning", department="Maintenance"),
            User(id="b", name="Bruno Lima", shift="Morning", department="Production"),
            User(id="c", name="Carla Dias", shift="Night", department="Production"),
        ]
        self.tasks = [
            Task(id="t1", title="Pressure", frequency="DAILY", assigned_user_ids=("a", "b", "c")),
            Task(id="t2", title="Lubrication", frequency="DAILY", assigned_user_ids=("a", "b", "c")),
        ]
        self.completions = [
            _done("1", "t1", "a", datetime(2024, 5, 15, 8, 0)),
            _done("2", "t2", "a", datetime(2024, 5, 15, 8, 30)),
            _done("3", "t1", "b", datetime(2024, 5, 15, 9, 0)),
            _done("4", "t1", "c", datetime(2024, 5, 14, 9, 0)),
        ]

    def test_scores_rate_and_pending(self) -> None:
        summary = aggregate(self.users, self.tasks, self.completions, [], now=NOW)
        scores = {row.user_id: row.score for row in summary.user_scores}
        self.assertEqual(scores, {"a": 100, "b": 50, "c": 0})
        self.assertEqual([row.user_id for row in summary.user_scores], ["a", "b", "c"])
        self.assertEqual(summary.overall_rate, 50)
        self.assertEqual(summary.pending_count, 3)
        self.assertEqual(summary.top_performer.user_id, "a")

    def test_user_score_details(self) -> None:
        summary = aggregate(self.users, self.tasks, self.completions, [], now=NOW)
        carla = summary.user_scores[-1]
        self.assertEqual((carla.assigned, carla.satisfied), (2, 0))
        self.assertEqual(carla.completed_total, 1)
        self.assertEqual(carla.first_name, "Carla")

    def test_filters_restrict_scores_but_not_pending(self) -> None:
        summary = aggregate(
            self.users,
            self.tasks,
            self.completions,
            [],
            filters=ComplianceFilters(shift="Morning", department="ALL"),
            now=NOW,
        )
        self.assertEqual([row.user_id for row in summary.user_scores], ["a", "b"])
        self.assertEqual(summary.overall_rate, 75)
        self.assertEqual(summary.pending_count, 3)

        summary = aggregate(
            self.users,
            self.tasks,
            self.completions,
            [],
            filters=ComplianceFilters(shift="Morning", department="Production"),
            now=NOW,
        )
        self.assertEqual([row.user_id for row in summary.user_scores], ["b"])

    def test_filter_matching_nobody_yields_empty_result(self) -> None:
        summary = aggregate(
            self.users,
            self.tasks,
            self.completions,
            [],
            filters=ComplianceFilters(shift="Weekend", department=None),
            now=NOW,
        )
        self.assertEqual(summary.user_scores, [])
        self.assertEqual(summary.overall_rate, 0)
        self.assertIsNone(summary.top_performer)
        self.assertEqual(summary.pending_count, 3)

    def test_ties_keep_encounter_order_and_no_top_performer_at_zero(self) -> None:
        users = [User(id="x", name="Xavier"), User(id="y", name="Yara"), User(id="z", name="Zoe")]
        tasks = [Task(id="t1", title="Check", assigned_user_ids=("x", "y"))]
        summary = aggregate(users, tasks, [], [], now=NOW)
        self.assertEqual([row.user_id for row in summary.user_scores], ["x", "y", "z"])
        self.assertTrue(all(row.score == 0 for row in summary.user_scores))
        self.assertIsNone(summary.top_performer)
        self.assertEqual(summary.pending_count, 2)

    def test_scores_round_half_up(self) -> None:
        users = [User(id="p", name="Paula"), User(id="q", name="Quim")]
        tasks = [
            Task(id="t1", title="A", assigned_user_ids=("p", "q")),
            Task(id="t2", title="B", assigned_user_ids=("p",)),
            Task(id="t3", title="C", assigned_user_ids=("p",)),
        ]
        completions = [_done("1", "t1", "p", datetime(2024, 5, 15, 7, 0))]
        summary = aggregate(users, tasks, completions, [], now=NOW)
        self.assertEqual([row.score for row in summary.user_scores], [33, 0])
        # mean 16.5 rounds up
        self.assertEqual(summary.overall_rate, 17)
        self.assertEqual(round_half_up(66.666), 67)

    def test_pending_counts_assignments_of_unknown_users(self) -> None:
        tasks = [Task(id="t1", title="Check", assigned_user_ids=("a", "ghost"))]
        summary = aggregate(self.users, tasks, [], [], now=NOW)
        self.assertEqual(summary.pending_count, 2)

    def test_filter_options_are_sorted_and_distinct(self) -> None:
        shifts, departments = filter_options(self.users + [User(id="d", name="Dora")])
        self.assertEqual(shifts, ["Morning", "Night"])
        self.assertEqual(departments, ["Maintenance", "Production"])


class RankingLabelTests(unittest.TestCase):
    def test_shared_first_names_get_distinct_labels(self) -> None:
        users = [
            User(id="1", name="Ana Costa"),
            User(id="2", name="Ana Lima"),
            User(id="3", name="Bruno Dias"),
            User(id="4", name="Bruno Dias"),
        ]
        summary = aggregate(users, [], [], [], now=NOW)
        labels = ranking_labels(summary.user_scores)
        self.assertEqual(labels["1"], "Ana Costa")
        self.assertEqual(labels["2"], "Ana Lima")
        self.assertEqual(labels["3"], "Bruno Dias (#3)")
        self.assertEqual(labels["4"], "Bruno Dias (#4)")
        self.assertEqual(len(set(labels.values())), 4)

    def test_unique_first_names_stay_short(self) -> None:
        users = [User(id="1", name="Ana Costa"), User(id="2", name="Bruno Dias")]
        summary = aggregate(users, [], [], [], now=NOW)
        self.assertEqual(ranking_labels(summary.user_scores), {"1": "Ana", "2": "Bruno"})


class DailySeriesTests(unittest.TestCase):
    def test_seven_buckets_with_production_and_scrap_on_day_three(self) -> None:
        logs = [
            _log("p", "PRODUCTION", 100, datetime(2024, 5, 11, 10, 0)),
            _log("s", "SCRAP", 5, datetime(2024, 5, 11, 23, 59, 59)),
            _log("d", "DOWNTIME", 30, datetime(2024, 5, 11, 12, 0)),
            _log("old", "PRODUCTION", 999, datetime(2024, 5, 8, 23, 0)),
            _log("future", "PRODUCTION", 999, datetime(2024, 5, 16, 0, 0)),
        ]
        series = daily_series(logs, NOW)
        self.assertEqual(len(series), 7)
        self.assertEqual(series[0].day, date(2024, 5, 9))
        self.assertEqual(series[-1].day, date(2024, 5, 15))
        for index, bucket in enumerate(series):
            with self.subTest(day=bucket.day):
                if index == 2:
                    self.assertEqual((bucket.production, bucket.scrap), (100, 5))
                else:
                    self.assertEqual((bucket.production, bucket.scrap), (0, 0))

    def test_same_day_logs_are_summed(self) -> None:
        logs = [
            _log("p1", "PRODUCTION", 40, datetime(2024, 5, 15, 0, 0)),
            _log("p2", "PRODUCTION", 60.5, datetime(2024, 5, 15, 11, 0)),
        ]
        summary = aggregate([], [], [], logs, now=NOW)
        self.assertEqual(summary.daily_series[-1].production, 100.5)


if __name__ == "__main__":
    unittest.main()
