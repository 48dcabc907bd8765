"""Tests for report generation."""

import json

import pytest

from refactorpilot.models import (
    ExtractRefactoring,
    FileChange,
    Opportunity,
    OpportunityType,
    RenameRefactoring,
    ScoredOpportunity,
    SplitRefactoring,
)
from refactorpilot.reporting import RefactorReporter


@pytest.fixture
def reporter():
    return RefactorReporter()


@pytest.fixture
def scored():
    return ScoredOpportunity(
        Opportunity(OpportunityType.COMPLEXITY, "app.py", 12, "High complexity (14) in handle"),
        {"total": 86},
    )


class TestRefactorReporter:
    """Test the RefactorReporter class."""

    def test_markdown_report(self, reporter, scored):
        report = reporter.generate([scored], "markdown")

        assert report.startswith("# Refactoring Report")
        assert "## Summary" in report
        assert "- Total items: 1" in report
        assert "### 1. High complexity (14) in handle" in report
        assert "`app.py:12`" in report
        assert "- Impact: 86" in report

    def test_markdown_empty(self, reporter):
        report = reporter.generate([], "markdown")

        assert "_No changes._" in report
        assert "```mermaid" not in report

    def test_markdown_includes_diagram_and_diff(self, reporter):
        items = [
            ExtractRefactoring("app.py", "helper", 3, 8, "helpers.py"),
            {"type": "generic", "file": "a.py", "description": "Tidy", "before": "x=1\n", "after": "x = 1\n"},
        ]

        report = reporter.generate(items, "markdown")

        assert "```mermaid\ngraph TD\n    app_py --> helper" in report
        assert "<summary>View Diff</summary>" in report
        assert "+x = 1" in report

    def test_json_report(self, reporter, scored):
        data = json.loads(reporter.generate([scored], "json"))

        assert set(data) == {"generated_at", "summary", "changes"}
        assert data["summary"] == {"total": 1, "by_type": {"complexity": 1}}
        assert data["changes"][0]["impact"] == 86

    def test_html_report_escapes(self, reporter):
        report = reporter.generate([{"type": "generic", "description": "<script>"}], "html")

        assert report.startswith("<!DOCTYPE html>")
        assert "<title>Refactoring Report</title>" in report
        assert "&lt;script&gt;" in report

    def test_unknown_format(self, reporter):
        with pytest.raises(ValueError):
            reporter.generate([], "pdf")

    def test_describe_change(self, reporter):
        assert reporter.describe_change(
            {"type": "extract", "name": "helper", "source": "app.py"}
        ) == "Extracted helper from app.py"
        assert reporter.describe_change(
            {"type": "rename", "old_name": "a", "new_name": "b", "files": ["x", "y"]}
        ) == "Renamed a to b in 2 file(s)"
        assert reporter.describe_change(
            {"type": "split", "source": "big.py", "targets": ["a.py", "b.py"]}
        ) == "Split big.py into 2 files"

    def test_refactorings_are_described(self, reporter):
        data = json.loads(reporter.generate([
            RenameRefactoring("old", "new", ["a.py"]),
            SplitRefactoring("big.py", [FileChange("a.py", ""), FileChange("b.py", "")]),
        ], "json"))

        assert [c["description"] for c in data["changes"]] == [
            "Renamed old to new in 1 file(s)",
            "Split big.py into 2 files",
        ]

    def test_generate_diff(self):
        diff = RefactorReporter.generate_diff("a.py", "x = 1\n", "x = 2\n")

        assert diff.splitlines()[:2] == ["--- a/a.py", "+++ b/a.py"]
        assert "-x = 1" in diff
        assert "+x = 2" in diff
        assert RefactorReporter.generate_diff("a.py") == ""

    def test_mermaid_diagram_for_split(self):
        diagram = RefactorReporter.generate_mermaid_diagram([
            {"type": "split", "source": "big.py", "targets": ["pkg/a.py", "pkg/b.py"]},
        ])

        assert diagram == "graph TD\n    big_py --> a\n    big_py --> b"

    def test_mermaid_diagram_empty(self):
        assert RefactorReporter.generate_mermaid_diagram([{"type": "rename"}]) == ""
