"""
Refactor backlog document format.

The backlog is a Markdown file with three fixed priority sections and an
optional free-form Notes section::

    # Refactor Candidates

    ## High Priority (Impact 80+)

    - [ ] src/api.py:10-25 - Extract validation (Impact: 85)
    - [x] src/utils.py:5 - Rename variable (Impact: 82)

    ## Medium Priority (Impact 50-79)

    _None_

    ## Low Priority (Impact <50)

    _None_

    ## Notes
    Anything here is kept byte-for-byte.

Parsing and rendering are pure; the tracker owns the I/O.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..constants import HIGH_IMPACT_THRESHOLD, MEDIUM_IMPACT_THRESHOLD
from ..models import CandidateEntry, Tier

TITLE = "# Refactor Candidates"
NOTES_HEADER = "## Notes"
EMPTY_MARKER = "_None_"

SECTION_HEADERS = {
    Tier.HIGH: f"## High Priority (Impact {HIGH_IMPACT_THRESHOLD}+)",
    Tier.MEDIUM: f"## Medium Priority (Impact {MEDIUM_IMPACT_THRESHOLD}-{HIGH_IMPACT_THRESHOLD - 1})",
    Tier.LOW: f"## Low Priority (Impact <{MEDIUM_IMPACT_THRESHOLD})",
}

TIER_ORDER = [Tier.HIGH, Tier.MEDIUM, Tier.LOW]

_CANDIDATE_LINE = re.compile(
    r'^- \[(?P<mark>[ xX])\] '
    r'(?P<file>.+?):(?P<start>\d+)(?:-(?P<end>\d+))? - '
    r'(?P<description>.*) \(Impact: (?P<impact>-?\d+(?:\.\d+)?)\)\s*$'
)


@dataclass
class Backlog:
    """Parsed backlog: tiered entries plus the verbatim Notes block."""
    high: List[CandidateEntry] = field(default_factory=list)
    medium: List[CandidateEntry] = field(default_factory=list)
    low: List[CandidateEntry] = field(default_factory=list)
    # Text from the "## Notes" header to end of document, or None
    notes: Optional[str] = None

    def tier(self, tier: Tier) -> List[CandidateEntry]:
        return getattr(self, tier.value)

    def entries(self) -> List[CandidateEntry]:
        return self.high + self.medium + self.low

    def find(self, key: str) -> Optional[CandidateEntry]:
        for entry in self.entries():
            if entry.key == key:
                return entry
        return None

    def tier_of(self, entry: CandidateEntry) -> Optional[Tier]:
        for tier in TIER_ORDER:
            if any(item is entry for item in self.tier(tier)):
                return tier
        return None


def get_tier(impact: float) -> Tier:
    """Classify an impact score; boundaries are inclusive at 80 and 50."""
    if impact >= HIGH_IMPACT_THRESHOLD:
        return Tier.HIGH
    if impact >= MEDIUM_IMPACT_THRESHOLD:
        return Tier.MEDIUM
    return Tier.LOW


def format_candidate(entry: CandidateEntry) -> str:
    """Render one backlog line; single-line ranges never render as ``N-N``."""
    mark = "x" if entry.completed else " "
    if entry.end_line and entry.end_line > entry.start_line:
        location = f"{entry.file}:{entry.start_line}-{entry.end_line}"
    else:
        location = f"{entry.file}:{entry.start_line}"
    return f"- [{mark}] {location} - {entry.description} (Impact: {entry.impact})"


def parse_candidate_line(line: str) -> Optional[CandidateEntry]:
    """Parse one backlog line, or return None if it is not a candidate."""
    match = _CANDIDATE_LINE.match(line.strip())
    if not match:
        return None

    start = int(match.group('start'))
    end = int(match.group('end')) if match.group('end') else start
    impact = float(match.group('impact'))
    return CandidateEntry(
        file=match.group('file'),
        start_line=start,
        end_line=end,
        description=match.group('description'),
        impact=int(impact) if impact.is_integer() else impact,
        completed=match.group('mark') in ('x', 'X'),
    )


def parse_backlog(text: str) -> Backlog:
    """Parse a backlog document. Unknown lines outside Notes are ignored.

    A key listed more than once (a hand edit) keeps only its first
    occurrence, which in a rendered document is the highest tier.
    """
    backlog = Backlog()
    if not text:
        return backlog

    headers: Dict[str, Tier] = {header: tier for tier, header in SECTION_HEADERS.items()}
    current: Optional[Tier] = None
    seen = set()

    lines = text.splitlines(keepends=True)
    for index, raw in enumerate(lines):
        stripped = raw.strip()
        if stripped == NOTES_HEADER:
            backlog.notes = ''.join(lines[index:])
            break
        if stripped in headers:
            current = headers[stripped]
            continue
        if stripped.startswith('## '):
            current = None
            continue
        if current is None:
            continue

        entry = parse_candidate_line(stripped)
        if entry is None or entry.key in seen:
            continue
        seen.add(entry.key)
        backlog.tier(current).append(entry)

    return backlog


def render_backlog(backlog: Backlog) -> str:
    """Render the full document; the Notes block is appended untouched."""
    parts = [TITLE, ""]
    for tier in TIER_ORDER:
        parts.append(SECTION_HEADERS[tier])
        parts.append("")
        entries = backlog.tier(tier)
        if entries:
            parts.extend(format_candidate(entry) for entry in entries)
        else:
            parts.append(EMPTY_MARKER)
        parts.append("")

    document = "\n".join(parts)
    if backlog.notes is not None:
        document += "\n" + backlog.notes
    return document
