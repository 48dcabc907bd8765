"""
refactorpilot: automated refactoring assistant.

Finds refactoring opportunities, keeps a prioritized backlog of them,
and applies refactorings behind a checkpoint and a test gate.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .command import CommandResult, RefactorCommand
from .duplication import DuplicationDetector
from .cli import main

__all__ = ["RefactorCommand", "CommandResult", "DuplicationDetector", "main"]
