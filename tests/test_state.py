"""Tests for usage counters and their repositories."""

import json

from refactorpilot.state import InMemoryStateRepository, JsonStateRepository, UsageStats


def test_in_memory_repository_copies():
    repo = InMemoryStateRepository()
    stats = repo.load()
    stats.runs = 5

    assert repo.load().runs == 0

    repo.save(stats)
    stats.runs = 9
    assert repo.load().runs == 5


def test_json_repository_round_trip(tmp_path):
    repo = JsonStateRepository(tmp_path / "nested" / "state.json")

    repo.save(UsageStats(runs=2, refactorings_applied=3))

    loaded = repo.load()
    assert loaded.runs == 2
    assert loaded.refactorings_applied == 3


def test_json_repository_missing_file(tmp_path):
    assert JsonStateRepository(tmp_path / "state.json").load() == UsageStats()


def test_json_repository_ignores_unknown_keys(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({"runs": 4, "legacy_counter": 1}))

    assert JsonStateRepository(path).load().runs == 4


def test_json_repository_corrupt_file(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{oops")

    assert JsonStateRepository(path).load() == UsageStats()
