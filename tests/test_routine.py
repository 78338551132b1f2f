import sys
import unittest
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from routine_tracking.domain.models import Task, TaskCompletion
from routine_tracking.services.errors import InvalidMeasurementError
from routine_tracking.services.oplogs import build_log
from routine_tracking.services.routine import (
    build_completion,
    build_work_list,
    parse_measurement,
    work_list_progress,
)

NOW = datetime(2024, 5, 15, 9, 30)

PRESSURE = Task(
    id="t1",
    title="Pressure",
    frequency="DAILY",
    kind="MEASUREMENT",
    assigned_user_ids=("2", "3"),
    due_time="08:00",
    unit="bar",
    min_value=10,
    max_value=15,
)
LUBRICATION = Task(
    id="t2",
    title="Lubrication",
    frequency="WEEKLY",
    assigned_user_ids=("3", "4"),
    due_time="10:00",
)
OVEN = Task(
    id="t3",
    title="Oven",
    frequency="HOURLY",
    kind="MEASUREMENT",
    assigned_user_ids=("2",),
    min_value=180,
    max_value=220,
)


class ParseMeasurementTests(unittest.TestCase):
    def test_accepts_numbers_and_decimal_comma(self) -> None:
        self.assertEqual(parse_measurement("12,5"), 12.5)
        self.assertEqual(parse_measurement(" 7 "), 7.0)
        self.assertEqual(parse_measurement(3), 3.0)

    def test_rejects_non_numbers(self) -> None:
        for raw in (None, "", "abc", "nan", "inf", True):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_measurement(raw))


class BuildCompletionTests(unittest.TestCase):
    def test_measurement_requires_a_number(self) -> None:
        for raw in ("abc", "", None):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidMeasurementError):
                    build_completion(PRESSURE, "2", raw, now=NOW)

    def test_measurement_completion_fields(self) -> None:
        completion = build_completion(PRESSURE, "2", "12,5", notes="  ok  ", now=NOW)
        self.assertEqual(completion.task_id, "t1")
        self.assertEqual(completion.user_id, "2")
        self.assertEqual(completion.completed_at, NOW)
        self.assertEqual(completion.status, "COMPLETED")
        self.assertEqual(completion.measured_value, 12.5)
        self.assertEqual(completion.notes, "ok")
        self.assertTrue(completion.id)

    def test_checklist_needs_no_value(self) -> None:
        completion = build_completion(LUBRICATION, "3", notes="   ", now=NOW)
        self.assertIsNone(completion.measured_value)
        self.assertIsNone(completion.notes)

    def test_ids_are_unique(self) -> None:
        first = build_completion(LUBRICATION, "3", now=NOW)
        second = build_completion(LUBRICATION, "3", now=NOW)
        self.assertNotEqual(first.id, second.id)


class WorkListTests(unittest.TestCase):
    def test_only_assigned_tasks_are_listed(self) -> None:
        items = build_work_list([PRESSURE, LUBRICATION, OVEN], "4", [], NOW)
        self.assertEqual([item.task.id for item in items], ["t2"])

    def test_status_overdue_and_range(self) -> None:
        completions = [
            TaskCompletion(
                id="c1",
                task_id="t3",
                user_id="2",
                completed_at=datetime(2024, 5, 15, 9, 5),
                measured_value=230,
            ),
            TaskCompletion(
                id="c2",
                task_id="t1",
                user_id="2",
                completed_at=datetime(2024, 5, 14, 8, 0),
                measured_value=12,
            ),
        ]
        items = {item.task.id: item for item in build_work_list([PRESSURE, OVEN], "2", completions, NOW)}

        pressure = items["t1"]
        self.assertFalse(pressure.satisfied)
        self.assertTrue(pressure.overdue)
        self.assertIsNone(pressure.range_status)
        self.assertEqual(pressure.period_end, datetime(2024, 5, 16))

        oven = items["t3"]
        self.assertTrue(oven.satisfied)
        self.assertFalse(oven.overdue)
        self.assertEqual(oven.range_status, "HIGH")
        self.assertEqual(oven.period_end, datetime(2024, 5, 15, 10, 0))

        self.assertEqual(work_list_progress(list(items.values())), (1, 2))

    def test_empty_work_list_progress(self) -> None:
        self.assertEqual(work_list_progress([]), (0, 0))


class BuildLogTests(unittest.TestCase):
    def test_valid_log(self) -> None:
        log = build_log("2", "SCRAP", "3,5", "  burr on part  ", now=NOW)
        self.assertEqual(log.kind, "SCRAP")
        self.assertEqual(log.value, 3.5)
        self.assertEqual(log.description, "burr on part")
        self.assertEqual(log.timestamp, NOW)

    def test_invalid_logs_are_rejected(self) -> None:
        cases = [
            ("BREAKDOWN", "1", "x"),
            ("SCRAP", "abc", "x"),
            ("SCRAP", "-1", "x"),
            ("DOWNTIME", "10", "   "),
        ]
        for kind, raw, description in cases:
            with self.subTest(kind=kind, raw=raw):
                with self.assertRaises(ValueError):
                    build_log("2", kind, raw, description, now=NOW)


if __name__ == "__main__":
    unittest.main()
