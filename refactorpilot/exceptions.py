"""Exception hierarchy for refactorpilot."""


class RefactorPilotError(Exception):
    """Base class for all refactorpilot errors."""


class ConfigError(RefactorPilotError):
    """Configuration could not be loaded or validated."""


class CheckpointError(RefactorPilotError):
    """A checkpoint could not be created or restored."""


class RefactoringApplyError(RefactorPilotError):
    """A refactoring strategy failed to modify the working tree."""

    def __init__(self, message: str, refactoring=None):
        super().__init__(message)
        self.refactoring = refactoring
