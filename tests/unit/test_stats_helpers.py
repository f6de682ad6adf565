"""
Unit tests for the formatting helpers in vibe/actions/stats.py
"""

from vibe.actions.stats import completion_rate, format_priority, format_status, _chart
from vibe.core.constants import IssueStatus, PRIORITY_ORDER


class TestFormatting:

    def test_format_status(self):
        assert format_status("BACKLOG") == "Backlog"
        assert format_status("IN_PROGRESS") == "In Progress"

    def test_format_priority(self):
        assert format_priority("URGENT") == "Urgent"


class TestCompletionRate:

    def test_rounds_to_whole_percent(self):
        assert completion_rate(1, 3) == 33
        assert completion_rate(2, 3) == 67

    def test_no_issues(self):
        assert completion_rate(0, 0) == 0


class TestChart:

    def test_rows_follow_enum_order_and_skip_empty(self):
        rows = _chart({"DONE": 2, "BACKLOG": 1, "IN_PROGRESS": 0},
                      (IssueStatus.BACKLOG, IssueStatus.IN_PROGRESS, IssueStatus.DONE), format_status)
        assert rows == [
            {"name": "Backlog", "value": 1, "key": "BACKLOG"},
            {"name": "Done", "value": 2, "key": "DONE"},
        ]

    def test_priority_order_is_most_urgent_first(self):
        rows = _chart({"LOW": 1, "URGENT": 4}, PRIORITY_ORDER, format_priority)
        assert [row["key"] for row in rows] == ["URGENT", "LOW"]
