import csv
import io
import sys
import unittest
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from routine_tracking.domain.models import OperationalLog, TaskCompletion, User
from routine_tracking.services.exports import (
    LOG_EXPORT_COLUMNS,
    build_log_export_rows,
    export_filename,
    logs_to_csv,
)
from routine_tracking.services.insights import build_insight_counters, build_prompt


def _log(lid: str, kind: str, value: float, day: int, user_id: str = "2") -> OperationalLog:
    return OperationalLog(
        id=lid,
        user_id=user_id,
        kind=kind,
        value=value,
        description=f"log {lid}",
        timestamp=datetime(2024, 5, day, 10, 0),
    )


class InsightCountersTests(unittest.TestCase):
    def setUp(self) -> None:
        self.logs = [
            _log("a", "SCRAP", 4, 1),
            _log("b", "DOWNTIME", 30, 2),
            _log("c", "SCRAP", 1.5, 3),
            _log("g", "PRODUCTION", 500, 7),
            _log("d", "OCCURRENCE", 0, 4),
            _log("e", "DOWNTIME", 15, 5),
            _log("f", "PRODUCTION", 100, 6),
        ]
        self.completions = [
            TaskCompletion(id="1", task_id="t1", user_id="2", completed_at=datetime(2024, 5, 1)),
            TaskCompletion(id="2", task_id="t1", user_id="2", completed_at=datetime(2024, 5, 2)),
            TaskCompletion(
                id="3", task_id="t2", user_id="3", completed_at=datetime(2024, 5, 2), status="MISSED"
            ),
        ]

    def test_totals_and_counts(self) -> None:
        counters = build_insight_counters(self.logs, self.completions)
        self.assertEqual(counters.scrap_total, 5.5)
        self.assertEqual(counters.downtime_total, 45)
        self.assertEqual(counters.completed_count, 2)
        self.assertEqual(counters.missed_count, 1)

    def test_recent_logs_are_the_last_five_by_time(self) -> None:
        counters = build_insight_counters(self.logs, self.completions)
        self.assertEqual(len(counters.recent_logs), 5)
        self.assertEqual(counters.recent_logs[0], "[SCRAP] log c (Value: 1.5)")
        self.assertEqual(counters.recent_logs[-1], "[PRODUCTION] log g (Value: 500)")

    def test_prompt_contains_data_block(self) -> None:
        counters = build_insight_counters(self.logs, self.completions)
        prompt = build_prompt(counters, "en")
        self.assertIn("Respond in ENGLISH.", prompt)
        self.assertIn("- Scrap/Refugo: 5.5", prompt)
        self.assertIn("- Downtime/Parada: 45", prompt)
        self.assertIn("- Tasks Completed/Tarefas Feitas: 2", prompt)
        self.assertIn("- Tasks Missed/Tarefas Perdidas: 1", prompt)
        self.assertIn("RECENT LOGS / OCORRÊNCIAS:", prompt)
        self.assertIn("- [DOWNTIME] log e (Value: 15)", prompt)

    def test_unknown_language_falls_back_to_portuguese(self) -> None:
        counters = build_insight_counters([], [])
        prompt = build_prompt(counters, "de")
        self.assertIn("Responda em PORTUGUÊS.", prompt)
        self.assertIn("- (none)", prompt)


class LogExportTests(unittest.TestCase):
    def setUp(self) -> None:
        self.users = [User(id="2", name="João Silva", shift="Manhã", department="Produção")]
        self.logs = [_log("a", "SCRAP", 4, 1), _log("b", "DOWNTIME", 30, 2, user_id="99")]

    def test_rows_are_newest_first_with_user_details(self) -> None:
        rows = build_log_export_rows(self.logs, self.users)
        self.assertEqual([row["ID"] for row in rows], ["b", "a"])
        self.assertEqual(rows[0]["User"], "99")
        self.assertEqual(rows[0]["Department"], "")
        self.assertEqual(rows[1]["User"], "João Silva")
        self.assertEqual(rows[1]["Shift"], "Manhã")
        self.assertEqual(rows[1]["Date"], "2024-05-01T10:00:00")

    def test_csv_has_header_and_rows(self) -> None:
        reader = csv.reader(io.StringIO(logs_to_csv(self.logs, self.users)))
        lines = list(reader)
        self.assertEqual(lines[0], LOG_EXPORT_COLUMNS)
        self.assertEqual(len(lines), 3)

    def test_empty_export_keeps_header(self) -> None:
        lines = list(csv.reader(io.StringIO(logs_to_csv([], self.users))))
        self.assertEqual(lines, [LOG_EXPORT_COLUMNS])

    def test_export_filename(self) -> None:
        self.assertEqual(
            export_filename(datetime(2024, 5, 15, 18, 0)),
            "routine_tracking_logs_2024-05-15.csv",
        )


if __name__ == "__main__":
    unittest.main()
