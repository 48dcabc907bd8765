"""Durable, deduplicated refactor backlog."""

from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from ..constants import CANDIDATES_FILE
from ..models import CandidateEntry, Tier
from ..utils import logger
from .format import (
    Backlog,
    TIER_ORDER,
    format_candidate,
    get_tier,
    parse_backlog,
    render_backlog,
)


class CandidatesTracker:
    """Reads and writes the prioritized backlog document.

    Entries are keyed by ``file:start_line``; a key appears at most once
    across all tiers.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or CANDIDATES_FILE)

    get_tier = staticmethod(get_tier)
    format_candidate = staticmethod(format_candidate)

    def load(self) -> Backlog:
        """Parse the backlog file; a missing file is an empty backlog."""
        try:
            text = self.path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return Backlog()
        return parse_backlog(text)

    def save(self, backlog: Backlog):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(render_backlog(backlog), encoding='utf-8')

    def add(self, candidates: Iterable[Any]) -> Backlog:
        """Merge candidates into the backlog and persist it.

        Each candidate needs ``file``, ``start_line``, ``description`` and
        ``impact``; ``end_line`` is optional. An existing key is updated in
        place and moved if its tier changed.
        """
        backlog = self.load()
        added = updated = 0

        for candidate in candidates:
            item = _as_entry(candidate)
            tier = get_tier(item.impact)
            existing = backlog.find(item.key)

            if existing is None:
                backlog.tier(tier).append(item)
                added += 1
                continue

            existing.description = item.description
            existing.impact = item.impact
            existing.end_line = item.end_line
            updated += 1

            current_tier = backlog.tier_of(existing)
            if current_tier is not tier:
                entries = backlog.tier(current_tier)
                entries[:] = [entry for entry in entries if entry is not existing]
                backlog.tier(tier).append(existing)

        self.save(backlog)
        logger.debug(f"Backlog updated: {added} added, {updated} updated ({self.path})")
        return backlog

    def mark_complete(self, file: str, line: int) -> bool:
        """Check off the entry for ``file:line``; returns False if absent."""
        backlog = self.load()
        entry = backlog.find(f"{file}:{line}")
        if entry is None:
            logger.debug(f"No backlog entry for {file}:{line}")
            return False

        entry.completed = True
        self.save(backlog)
        return True

    def pending(self, tier: Optional[Tier] = None) -> List[CandidateEntry]:
        """Open entries, highest tier first."""
        backlog = self.load()
        tiers = [tier] if tier else TIER_ORDER
        return [entry for t in tiers for entry in backlog.tier(t) if not entry.completed]


def _as_entry(candidate: Any) -> CandidateEntry:
    if isinstance(candidate, CandidateEntry):
        return CandidateEntry(
            file=candidate.file,
            start_line=candidate.start_line,
            end_line=max(candidate.end_line or candidate.start_line, candidate.start_line),
            description=candidate.description,
            impact=_impact(candidate.impact),
            completed=candidate.completed,
        )

    start = int(candidate.get("start_line") or 1)
    end = int(candidate.get("end_line") or start)
    return CandidateEntry(
        file=str(candidate["file"]),
        start_line=start,
        end_line=max(end, start),
        description=candidate.get("description", ""),
        impact=_impact(candidate.get("impact", 0)),
    )


def _impact(value: Any) -> int:
    return int(round(float(value)))
