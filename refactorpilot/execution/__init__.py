"""Checkpointed, test-gated application of refactorings."""

from .checkpoint import CheckpointManager, GitCheckpoint, GitCheckpointManager
from .executor import ChangeRecord, RefactorExecutor
from .testing import NoopAutofix, ShellTestRunner, TestOutcome
from .workspace import Workspace

__all__ = [
    'ChangeRecord',
    'CheckpointManager',
    'GitCheckpoint',
    'GitCheckpointManager',
    'NoopAutofix',
    'RefactorExecutor',
    'ShellTestRunner',
    'TestOutcome',
    'Workspace',
]
