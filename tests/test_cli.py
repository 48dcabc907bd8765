"""Tests for the command-line interface."""

import signal
from unittest.mock import Mock

import pytest
from click.testing import CliRunner

from refactorpilot import cli as cli_module
from refactorpilot import __version__
from refactorpilot.command import CommandResult


DUPLICATED = "\n".join([
    "total = 0",
    "for item in items:",
    "    total += item.price * item.quantity",
    "    if item.discounted:",
    "        total -= item.discount",
]) + "\n"


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("REFACTORPILOT_LOG_LEVEL", raising=False)
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "one.py").write_text(DUPLICATED)
    (tmp_path / "src" / "two.py").write_text(DUPLICATED)
    return tmp_path


class TestCLI:
    """Test suite for refactorpilot commands."""

    def test_version(self, runner):
        result = runner.invoke(cli_module.cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_duplicates_command(self, runner, project):
        result = runner.invoke(cli_module.cli, ["duplicates", "src"])

        assert result.exit_code == 0
        assert "Duplicate Blocks" in result.output
        assert "src/one.py:1-5" in result.output

    def test_duplicates_none_found(self, runner, project):
        (project / "src" / "two.py").write_text("x = 1\n")

        result = runner.invoke(cli_module.cli, ["duplicates", "src", "--no-similar"])

        assert result.exit_code == 0
        assert "No duplicate blocks found" in result.output

    def test_candidates_empty(self, runner, project):
        result = runner.invoke(cli_module.cli, ["candidates"])

        assert result.exit_code == 0
        assert "No refactor candidates" in result.output

    def test_candidates_table(self, runner, project):
        backlog = project / ".refactorpilot" / "REFACTOR-CANDIDATES.md"
        backlog.parent.mkdir()
        backlog.write_text(
            "# Refactor Candidates\n\n"
            "## High Priority (Impact 80+)\n\n"
            "- [ ] x.js:10 - Extract (Impact: 85)\n\n"
            "## Medium Priority (Impact 50-79)\n\n_None_\n\n"
            "## Low Priority (Impact <50)\n\n"
            "- [x] y.js:2 - Done already (Impact: 20)\n"
        )

        result = runner.invoke(cli_module.cli, ["candidates"])

        assert result.exit_code == 0
        assert "x.js:10" in result.output
        assert "y.js:2" not in result.output

        result = runner.invoke(cli_module.cli, ["candidates", "--all", "--tier", "low"])
        assert "y.js:2" in result.output
        assert "x.js:10" not in result.output

    def test_cache_clear(self, runner, project):
        cache_file = project / ".refactorpilot" / "cache.json"
        cache_file.parent.mkdir()
        cache_file.write_text("{}")

        result = runner.invoke(cli_module.cli, ["cache", "clear"])

        assert result.exit_code == 0
        assert not cache_file.exists()

    def test_run_analyze_only(self, runner, project):
        result = runner.invoke(
            cli_module.cli,
            ["run", "--mode", "analyze-only", "--scope", "all", "--no-models", "--output", "report.md"],
        )

        assert result.exit_code == 0, result.output
        assert "Files analyzed" in result.output
        assert (project / "report.md").read_text().startswith("# Refactoring Report")
        assert (project / ".refactorpilot" / "REFACTOR-CANDIDATES.md").exists()
        assert (project / ".refactorpilot" / "state.json").exists()

    def test_run_requires_target_for_file_scope(self, runner, project):
        result = runner.invoke(cli_module.cli, ["run", "--scope", "file"])

        assert result.exit_code == 2
        assert "--target is required" in result.output

    def test_duplicates_paths_relative_to_project_root(self, runner, project, monkeypatch):
        (project / ".refactorpilot.yaml").write_text("detection:\n  min_lines: 5\n")
        monkeypatch.chdir(project / "src")

        result = runner.invoke(cli_module.cli, ["duplicates", "."])

        assert result.exit_code == 0, result.output
        assert "src/one.py:1-5" in result.output

    def test_interrupt_during_run_returns_partial_report(self, runner, project, monkeypatch):
        command = Mock()
        command.get_progress.return_value.remaining = 1
        command.progress.is_cancelled.return_value = False

        def run(**kwargs):
            signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
            return CommandResult(analyzed=1, cancelled=command.cancel.called, report="# partial report")

        command.run.side_effect = run
        monkeypatch.setattr(cli_module, "build_command", lambda *args, **kwargs: command)

        result = runner.invoke(cli_module.cli, ["run", "--mode", "analyze-only", "--scope", "all"])

        assert result.exit_code == 0, result.output
        command.cancel.assert_called_once()
        assert "results are partial" in result.output
        assert "# partial report" in result.output


class TestCancelOnInterrupt:
    """Test the Ctrl-C handler installed around a run."""

    @pytest.fixture
    def command(self):
        command = Mock()
        command.get_progress.return_value.remaining = 3
        command.progress.is_cancelled.return_value = False
        return command

    def test_first_interrupt_cancels_analysis(self, command):
        previous = signal.getsignal(signal.SIGINT)

        with cli_module.cancel_on_interrupt(command):
            signal.getsignal(signal.SIGINT)(signal.SIGINT, None)

        command.cancel.assert_called_once()
        assert signal.getsignal(signal.SIGINT) is previous

    def test_interrupt_after_cancel_is_raised(self, command):
        command.progress.is_cancelled.return_value = True

        with pytest.raises(KeyboardInterrupt):
            with cli_module.cancel_on_interrupt(command):
                signal.getsignal(signal.SIGINT)(signal.SIGINT, None)

        command.cancel.assert_not_called()

    def test_interrupt_outside_analysis_is_raised(self, command):
        command.get_progress.return_value.remaining = 0

        with pytest.raises(KeyboardInterrupt):
            with cli_module.cancel_on_interrupt(command):
                signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
