"""File listing collaborators for the ``changed``/``all``/``file``/``directory`` scopes."""

from pathlib import Path
from typing import Iterable, List, Optional, Union

import git
from git import Repo

from .constants import DEFAULT_EXCLUDES, DEFAULT_EXTENSIONS
from .models import SourceFile
from .utils import logger


class ProjectFiles:
    """Collects source files under a project root."""

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        extensions: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ):
        self.root = Path(root) if root else Path.cwd()
        self.extensions = set(extensions or DEFAULT_EXTENSIONS)
        self.exclude = set(exclude or DEFAULT_EXCLUDES)

    def get_all_files(self) -> List[SourceFile]:
        return self._read_all(self._walk(self.root))

    def get_files_by_path(self, target: Union[str, Path]) -> List[SourceFile]:
        path = Path(target)
        if not path.is_absolute():
            path = self.root / path
        if path.is_file():
            return self._read_all([path])
        if path.is_dir():
            return self._read_all(self._walk(path))
        logger.warning(f"Path not found: {target}")
        return []

    def get_changed_files(self) -> List[SourceFile]:
        """Modified, staged and untracked files according to git."""
        try:
            repo = Repo(self.root, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            logger.warning(f"{self.root} is not a git repository; no changed files")
            return []

        changed = {item.a_path for item in repo.index.diff(None)}
        try:
            changed.update(item.a_path for item in repo.index.diff('HEAD'))
        except (git.BadName, ValueError):
            # Repository without commits: everything staged is new
            changed.update(path for path, _stage in repo.index.entries)
        changed.update(repo.untracked_files)

        working_dir = Path(repo.working_tree_dir)
        paths = [
            working_dir / name for name in sorted(changed)
            if (working_dir / name).is_file() and self._wanted(working_dir / name)
        ]
        return self._read_all(paths)

    def _walk(self, directory: Path) -> List[Path]:
        return sorted(
            path for path in directory.rglob('*')
            if path.is_file() and self._wanted(path)
        )

    def _wanted(self, path: Path) -> bool:
        if path.suffix not in self.extensions:
            return False
        try:
            parts = path.relative_to(self.root).parts
        except ValueError:
            parts = path.parts
        return not any(part in self.exclude for part in parts)

    def _read_all(self, paths: Iterable[Path]) -> List[SourceFile]:
        files = []
        for path in paths:
            try:
                content = path.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable file {path}: {e}")
                continue
            files.append(SourceFile(path=self._display_path(path), content=content))
        return files

    def _display_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()
