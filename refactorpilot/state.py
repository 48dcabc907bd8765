"""Usage counters owned by the orchestrator and their persistence."""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional, Protocol, Union

from .constants import STATE_FILE
from .utils import logger


@dataclass
class UsageStats:
    """Cumulative counters across runs."""
    runs: int = 0
    files_analyzed: int = 0
    cache_hits: int = 0
    analyzer_errors: int = 0
    semantic_calls: int = 0
    opportunities_found: int = 0
    refactorings_applied: int = 0
    refactorings_failed: int = 0
    rollbacks: int = 0


class StateRepository(Protocol):
    def load(self) -> UsageStats:
        ...

    def save(self, stats: UsageStats) -> None:
        ...


class InMemoryStateRepository:
    def __init__(self, stats: Optional[UsageStats] = None):
        self.stats = stats or UsageStats()

    def load(self) -> UsageStats:
        return UsageStats(**asdict(self.stats))

    def save(self, stats: UsageStats) -> None:
        self.stats = UsageStats(**asdict(stats))


class JsonStateRepository:
    """Stores ``UsageStats`` as a small JSON document."""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or STATE_FILE)

    def load(self) -> UsageStats:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return UsageStats()
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return UsageStats()

        known = {f.name for f in fields(UsageStats)}
        return UsageStats(**{k: v for k, v in data.items() if k in known})

    def save(self, stats: UsageStats) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(asdict(stats), f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save state to {self.path}: {e}")
