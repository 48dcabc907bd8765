"""Shared fixtures."""

import shutil

import pytest
from git import Repo


@pytest.fixture
def git_repo(tmp_path):
    """A git repository with one committed file."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    repo = Repo.init(tmp_path)
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")

    (tmp_path / "app.py").write_text("x = 1\n")
    repo.index.add(["app.py"])
    repo.index.commit("initial")
    return repo
