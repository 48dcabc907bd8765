"""Tests for analysis progress, ETA and cancellation."""

import pytest

from refactorpilot.analysis import AnalysisCache, AnalysisProgress
from refactorpilot.models import SourceFile


class FakeClock:
    """Manually advanced time source."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(tmp_path):
    return AnalysisCache(tmp_path / "cache.json")


@pytest.fixture
def progress(cache, clock):
    return AnalysisProgress(cache, clock=clock)


class TestProgressReporting:
    """Test percentage, ETA and message formatting."""

    def test_initial_progress_is_calculating(self, progress):
        progress.start(4)

        info = progress.get_progress()
        assert info.total == 4
        assert info.completed == 0
        assert info.percentage == 0
        assert info.eta_seconds is None
        assert info.eta == "calculating..."

    def test_eta_from_throughput(self, progress, clock):
        progress.start(3)
        clock.advance(2)
        progress.update("a.py")

        info = progress.get_progress()
        assert info.percentage == 33
        assert info.remaining == 2
        assert info.eta_seconds == 4
        assert info.current_file == "a.py"
        assert info.message == "Analyzing 1/3 files (33%) - ETA 4s"

    def test_finished_run_has_zero_eta(self, progress, clock):
        progress.start(1)
        clock.advance(1)
        progress.update("a.py")

        info = progress.get_progress()
        assert info.percentage == 100
        assert info.eta_seconds == 0
        assert info.eta == "0s"

    def test_rolling_window(self, cache, clock):
        progress = AnalysisProgress(cache, clock=clock, window=10)
        progress.start(20)
        for index in range(12):
            clock.advance(1)
            progress.update(f"{index}.py")

        assert len(progress.stats.speeds) == 10
        assert progress.average_speed() == pytest.approx(1.0)

    @pytest.mark.parametrize("seconds,expected", [
        (0, "0s"),
        (45, "45s"),
        (59.6, "1m"),
        (90, "2m"),
        (150, "3m"),
        (3720, "1h 2m"),
    ])
    def test_format_eta(self, seconds, expected):
        assert AnalysisProgress.format_eta(seconds) == expected

    def test_progress_event(self, progress, clock):
        events = []
        progress.on("progress", events.append)
        progress.start(2)
        clock.advance(1)
        progress.update("a.py")

        assert len(events) == 1
        assert events[0].completed == 1


class TestAnalyzeLoop:
    """Test the cached, cancellable analysis loop."""

    @pytest.fixture
    def files(self):
        return [
            SourceFile("a.py", "a = 1\n"),
            SourceFile("b.py", "b = 2\n"),
            SourceFile("c.py", "c = 3\n"),
        ]

    def test_results_are_cached_between_runs(self, progress, files, tmp_path):
        calls = []

        def analyzer(file):
            calls.append(file.path)
            return {"path": file.path}

        first = progress.analyze(files, analyzer)
        assert [r.file for r in first.results] == ["a.py", "b.py", "c.py"]
        assert calls == ["a.py", "b.py", "c.py"]

        second_progress = AnalysisProgress(AnalysisCache(tmp_path / "cache.json"))
        second = second_progress.analyze(files, analyzer)

        assert second.cache_hits == 3
        assert all(r.cached for r in second.results)
        assert calls == ["a.py", "b.py", "c.py"]

    def test_changed_file_is_reanalyzed(self, progress, files):
        progress.analyze(files, lambda f: f.path)
        calls = []

        def analyzer(file):
            calls.append(file.path)
            return file.path

        files[1] = SourceFile("b.py", "b = 20\n")
        run = progress.analyze(files, analyzer)

        assert calls == ["b.py"]
        assert run.cache_hits == 2

    def test_analyzer_error_skips_file(self, progress, files):
        def analyzer(file):
            if file.path == "b.py":
                raise ValueError("boom")
            return file.path

        run = progress.analyze(files, analyzer)

        assert [r.file for r in run.results] == ["a.py", "c.py"]
        assert run.errors == {"b.py": "boom"}
        assert progress.get_progress().completed == 3

    def test_cancel_stops_before_next_file(self, progress, files, cache):
        cancelled = []
        progress.on("cancelled", lambda: cancelled.append(True))

        def analyzer(file):
            if file.path == "a.py":
                progress.cancel()
            return file.path

        run = progress.analyze(files, analyzer)

        assert run.cancelled is True
        assert [r.file for r in run.results] == ["a.py"]
        assert cancelled == [True]
        assert progress.is_cancelled()
        # cache is still persisted for the completed file
        assert cache.cache_file.exists()

    def test_start_resets_cancellation(self, progress):
        progress.cancel()
        progress.start(1)

        assert not progress.is_cancelled()
