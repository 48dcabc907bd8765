"""Data models shared by the refactoring pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional, Any, Tuple, Union


class OpportunityType(Enum):
    """Kinds of detected refactoring opportunities."""
    COMPLEXITY = "complexity"
    LENGTH = "length"
    DUPLICATION = "duplication"
    SEMANTIC = "semantic"


class RefactoringType(Enum):
    """Refactoring operations the executor knows how to apply."""
    EXTRACT = "extract"
    RENAME = "rename"
    SPLIT = "split"
    GENERIC = "generic"


class Tier(Enum):
    """Impact-derived priority bucket of the backlog."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class SourceFile:
    """A file handed to the analysis pipeline."""
    path: str
    content: str


@dataclass
class FileChange:
    """Explicit new content for a file."""
    file: str
    content: str


@dataclass
class Opportunity:
    """A detected, unscored candidate for refactoring."""
    type: OpportunityType
    file: str
    line: int
    description: str
    name: Optional[str] = None
    suggestion: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)
    # Concrete operation proposed by the detector, if it has one
    refactoring: Optional["Refactoring"] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dict (the proposed refactoring is dropped)."""
        return {
            "type": self.type.value,
            "file": self.file,
            "line": self.line,
            "description": self.description,
            "name": self.name,
            "suggestion": self.suggestion,
            "metrics": dict(self.metrics),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Opportunity":
        return cls(
            type=OpportunityType(data["type"]),
            file=data["file"],
            line=int(data.get("line") or 1),
            description=data.get("description", ""),
            name=data.get("name"),
            suggestion=data.get("suggestion"),
            metrics=dict(data.get("metrics") or {}),
        )


@dataclass
class ScoredOpportunity:
    """An opportunity together with the score the impact scorer gave it."""
    opportunity: Opportunity
    score: Dict[str, Any]

    @property
    def total(self) -> float:
        return float(self.score.get("total", 0))


@dataclass
class ExtractRefactoring:
    """Move a line range into a new unit and reference it from the source."""
    source: str
    name: str
    start_line: int
    end_line: int
    new_file: str
    origin: Optional[ScoredOpportunity] = None
    type: RefactoringType = field(default=RefactoringType.EXTRACT, init=False)


@dataclass
class RenameRefactoring:
    """Replace a name across a set of files."""
    old_name: str
    new_name: str
    files: List[str] = field(default_factory=list)
    origin: Optional[ScoredOpportunity] = None
    type: RefactoringType = field(default=RefactoringType.RENAME, init=False)


@dataclass
class SplitRefactoring:
    """Split a source file into several target files."""
    source: str
    targets: List[FileChange] = field(default_factory=list)
    origin: Optional[ScoredOpportunity] = None
    type: RefactoringType = field(default=RefactoringType.SPLIT, init=False)


@dataclass
class GenericRefactoring:
    """Apply an explicit list of file-content changes."""
    changes: List[FileChange] = field(default_factory=list)
    description: str = ""
    origin: Optional[ScoredOpportunity] = None
    type: RefactoringType = field(default=RefactoringType.GENERIC, init=False)


Refactoring = Union[ExtractRefactoring, RenameRefactoring, SplitRefactoring, GenericRefactoring]


@dataclass(frozen=True)
class FailedRefactoring:
    """A refactoring that could not be applied or did not pass the test gate."""
    refactoring: Refactoring
    error: str


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one executed batch."""
    applied: Tuple[Refactoring, ...] = ()
    skipped: Tuple[Refactoring, ...] = ()
    failed: Tuple[FailedRefactoring, ...] = ()
    rolled_back: bool = False


@dataclass
class CacheEntry:
    """Cached analysis result for one file."""
    hash: str
    result: Any
    timestamp: float
    # Settings the result was produced with
    fingerprint: str = ""


@dataclass
class ProgressStats:
    """Counters owned by the progress tracker."""
    total: int = 0
    completed: int = 0
    start_time: Optional[float] = None
    speeds: List[float] = field(default_factory=list)


@dataclass
class CandidateEntry:
    """One line of the refactor backlog."""
    file: str
    start_line: int
    end_line: int
    description: str
    impact: int
    completed: bool = False

    @property
    def key(self) -> str:
        return f"{self.file}:{self.start_line}"
