"""Tests for shared helpers."""

import subprocess

import pytest

from refactorpilot.utils import content_hash, merge_dicts, run_command


def test_content_hash_is_stable():
    assert content_hash("abc") == content_hash("abc")
    assert content_hash("abc") != content_hash("abd")
    assert len(content_hash("abc")) == 32


def test_merge_dicts_is_deep_and_pure():
    base = {"a": {"x": 1, "y": 2}, "b": [1]}

    merged = merge_dicts(base, {"a": {"y": 3}, "b": [2]})

    assert merged == {"a": {"x": 1, "y": 3}, "b": [2]}
    assert base["a"]["y"] == 2


def test_run_command_captures_output(tmp_path):
    result = run_command("echo hello", cwd=tmp_path)

    assert result.stdout.strip() == "hello"


def test_run_command_raises_on_failure(tmp_path):
    with pytest.raises(subprocess.CalledProcessError):
        run_command("exit 4", cwd=tmp_path, shell=True)
