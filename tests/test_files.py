"""Tests for project file collection."""

import pytest

from refactorpilot.files import ProjectFiles


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("x = 1\n")
    (tmp_path / "src" / "ui.js").write_text("let y = 2;\n")
    (tmp_path / "README.md").write_text("# readme\n")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.js").write_text("module.exports = {};\n")
    return tmp_path


class TestProjectFiles:
    """Test the ProjectFiles class."""

    def test_all_files_filters_extensions_and_excludes(self, project):
        files = ProjectFiles(project).get_all_files()

        assert [f.path for f in files] == ["src/app.py", "src/ui.js"]
        assert files[0].content == "x = 1\n"

    def test_custom_extensions(self, project):
        files = ProjectFiles(project, extensions=[".md"]).get_all_files()

        assert [f.path for f in files] == ["README.md"]

    def test_files_by_path(self, project):
        pf = ProjectFiles(project)

        assert [f.path for f in pf.get_files_by_path("src/app.py")] == ["src/app.py"]
        assert [f.path for f in pf.get_files_by_path("src")] == ["src/app.py", "src/ui.js"]
        assert pf.get_files_by_path("missing") == []

    def test_changed_files_outside_git(self, project):
        assert ProjectFiles(project).get_changed_files() == []

    def test_changed_files(self, git_repo, tmp_path):
        (tmp_path / "app.py").write_text("x = 2\n")
        (tmp_path / "new.py").write_text("y = 1\n")
        (tmp_path / "notes.txt").write_text("ignored\n")

        files = ProjectFiles(tmp_path).get_changed_files()

        assert [f.path for f in files] == ["app.py", "new.py"]
