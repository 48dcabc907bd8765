"""Tests for the content-hash analysis cache."""

import json

import pytest

from refactorpilot.analysis import AnalysisCache


class TestAnalysisCache:
    """Test the AnalysisCache class."""

    @pytest.fixture
    def cache(self, tmp_path):
        return AnalysisCache(tmp_path / "state" / "cache.json")

    def test_hit_when_content_unchanged(self, cache):
        cache.set_cached("a.py", "x = 1\n", {"functions": []})

        assert cache.get_cached("a.py", "x = 1\n") == {"functions": []}

    def test_miss_when_content_changed(self, cache):
        cache.set_cached("a.py", "x = 1\n", {"functions": []})

        assert cache.get_cached("a.py", "x = 2\n") is None

    def test_miss_for_unknown_path(self, cache):
        assert cache.get_cached("missing.py", "") is None

    def test_set_overwrites(self, cache):
        cache.set_cached("a.py", "x = 1\n", "first")
        cache.set_cached("a.py", "x = 2\n", "second")

        assert cache.get_cached("a.py", "x = 1\n") is None
        assert cache.get_cached("a.py", "x = 2\n") == "second"
        assert len(cache) == 1

    def test_content_hash_is_md5_hex(self):
        digest = AnalysisCache.content_hash("hello")

        assert digest == "5d41402abc4b2a76b9719d911017c592"

    def test_save_and_load_round_trip(self, cache, tmp_path):
        cache.set_cached("a.py", "x = 1\n", [{"type": "complexity"}])
        assert cache.save() is True

        reloaded = AnalysisCache(tmp_path / "state" / "cache.json")
        assert reloaded.load() is True
        assert reloaded.get_cached("a.py", "x = 1\n") == [{"type": "complexity"}]

    def test_load_missing_file_keeps_memory(self, cache):
        cache.set_cached("a.py", "x", 1)

        assert cache.load() is False
        assert "a.py" in cache

    def test_load_corrupt_file_keeps_memory(self, cache):
        cache.cache_file.parent.mkdir(parents=True)
        cache.cache_file.write_text("{not json", encoding="utf-8")
        cache.set_cached("a.py", "x", 1)

        assert cache.load() is False
        assert cache.get_cached("a.py", "x") == 1

    def test_load_merges_into_memory(self, cache):
        cache.cache_file.parent.mkdir(parents=True)
        cache.cache_file.write_text(json.dumps({
            "b.py": {"hash": AnalysisCache.content_hash("y"), "result": 2, "timestamp": 0},
        }), encoding="utf-8")
        cache.set_cached("a.py", "x", 1)

        cache.load()

        assert cache.get_cached("a.py", "x") == 1
        assert cache.get_cached("b.py", "y") == 2

    def test_save_failure_is_swallowed(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        cache = AnalysisCache(blocker / "cache.json")
        cache.set_cached("a.py", "x", 1)

        assert cache.save() is False

    def test_unserializable_result_keeps_previous_file(self, cache):
        cache.set_cached("a.py", "x = 1\n", {"ok": True})
        assert cache.save() is True
        before = cache.cache_file.read_text(encoding="utf-8")

        cache.set_cached("b.py", "y = 2\n", {"tags": {"not", "json"}})

        assert cache.save() is False
        assert cache.cache_file.read_text(encoding="utf-8") == before
        assert json.loads(before)["a.py"]["result"] == {"ok": True}
        assert not cache.cache_file.with_name("cache.json.tmp").exists()

    def test_fingerprint_mismatch_is_a_miss(self, cache):
        cache.set_cached("a.py", "x", [], fingerprint="models=")

        assert cache.get_cached("a.py", "x", fingerprint="models=default") is None
        assert cache.get_cached("a.py", "x", fingerprint="models=") == []

    def test_fingerprint_survives_save_and_load(self, cache, tmp_path):
        cache.set_cached("a.py", "x", 1, fingerprint="models=m1")
        cache.save()

        reloaded = AnalysisCache(cache.cache_file)
        reloaded.load()

        assert reloaded.get_cached("a.py", "x", fingerprint="models=m1") == 1
        assert reloaded.get_cached("a.py", "x") is None

    def test_clear_removes_file(self, cache):
        cache.set_cached("a.py", "x", 1)
        cache.save()

        cache.clear()

        assert len(cache) == 0
        assert not cache.cache_file.exists()

    def test_stats(self, cache):
        cache.set_cached("a.py", "x", 1)
        cache.get_cached("a.py", "x")
        cache.get_cached("a.py", "changed")

        stats = cache.stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["size"] == 1
        assert stats["hit_rate"] == 0.5
