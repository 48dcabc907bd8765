"""Working-tree checkpoints the executor can roll a batch back to."""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, FrozenSet, Optional, Protocol, Union

import git
from git import GitCommandError, Repo

from ..exceptions import CheckpointError
from ..utils import logger


class CheckpointManager(Protocol):
    """What the executor needs from a checkpoint mechanism."""

    def create(self) -> Any:
        ...

    def rollback(self, checkpoint: Any) -> None:
        ...


@dataclass(frozen=True)
class GitCheckpoint:
    head: str
    snapshot: Optional[str]
    untracked: FrozenSet[str] = field(default_factory=frozenset)
    created_at: float = 0.0


class GitCheckpointManager:
    """Checkpoints built from git: HEAD, a stash snapshot and the untracked set.

    Creating a checkpoint leaves the working tree untouched.
    """

    def __init__(self, repo_path: Optional[Union[str, Path]] = None):
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        try:
            self.repo = Repo(self.repo_path, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise CheckpointError(f"No git repository found at {self.repo_path}") from e

    def create(self) -> GitCheckpoint:
        try:
            head = self.repo.head.commit.hexsha
            # Empty when there is nothing uncommitted
            snapshot = self.repo.git.stash('create').strip() or None
        except (GitCommandError, ValueError) as e:
            raise CheckpointError(f"Could not create checkpoint: {e}") from e

        checkpoint = GitCheckpoint(
            head=head,
            snapshot=snapshot,
            untracked=frozenset(self.repo.untracked_files),
            created_at=time.time(),
        )
        logger.info(f"Checkpoint created at {head[:8]}" + (" with local changes" if snapshot else ""))
        return checkpoint

    def rollback(self, checkpoint: GitCheckpoint) -> None:
        try:
            self.repo.git.reset('--hard', checkpoint.head)

            working_dir = Path(self.repo.working_tree_dir)
            for path in self.repo.untracked_files:
                if path not in checkpoint.untracked:
                    (working_dir / path).unlink()

            if checkpoint.snapshot:
                self.repo.git.stash('apply', '--index', checkpoint.snapshot)
        except (GitCommandError, OSError) as e:
            raise CheckpointError(f"Rollback to {checkpoint.head[:8]} failed: {e}") from e

        logger.warning(f"Rolled back working tree to checkpoint {checkpoint.head[:8]}")
