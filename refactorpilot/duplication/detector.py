"""
Duplicate code detection.
Finds copy-pasted blocks and structurally similar files across a batch.
"""

import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple

from ..utils import logger


@dataclass
class SignificantLine:
    """A stripped source line with its original 1-based line number."""
    text: str
    line_number: int


@dataclass
class BlockLocation:
    """Where one copy of a duplicate block lives."""
    path: str
    start_line: int
    end_line: int


@dataclass
class DuplicateBlock:
    """A block of significant lines found in two or more places."""
    content: str
    line_count: int
    files: List[str]
    locations: List[BlockLocation]


@dataclass
class SimilarPair:
    """Two files whose normalized token sets are near-identical."""
    file1: str
    file2: str
    similarity: float


@dataclass
class PairDuplicate:
    lines1: Tuple[int, int]
    lines2: Tuple[int, int]
    line_count: int


@dataclass
class FilePair:
    """All duplicate blocks shared by one (sorted) pair of files."""
    file1: str
    file2: str
    duplicates: List[PairDuplicate] = field(default_factory=list)
    total_duplicated_lines: int = 0


@dataclass
class FileStats:
    total_lines: int
    duplicated_lines: int
    duplication_percentage: int


@dataclass
class DuplicationSummary:
    total_files: int = 0
    files_with_duplication: int = 0
    total_duplicate_blocks: int = 0


@dataclass
class DuplicationReport:
    """Result of a detection run."""
    duplicates: List[DuplicateBlock] = field(default_factory=list)
    similar: List[SimilarPair] = field(default_factory=list)
    pairs: List[FilePair] = field(default_factory=list)
    file_stats: Dict[str, FileStats] = field(default_factory=dict)
    summary: DuplicationSummary = field(default_factory=DuplicationSummary)


@dataclass
class _ProcessedFile:
    path: str
    lines: List[SignificantLine]
    normalized: str


_PY_IMPORT = re.compile(r'^(import\s+[\w.]|from\s+[\w.]+\s+import\s)')
_JS_REQUIRE = re.compile(r'^(const|let|var)\s.*\brequire\s*\(')
_JS_IMPORT = re.compile(r'^import\s*[{*\'"]')

_COMMENT_PATTERNS = [
    re.compile(r'/\*.*?\*/', re.DOTALL),
    re.compile(r'//.*$', re.MULTILINE),
    re.compile(r'#.*$', re.MULTILINE),
]
_STRING_PATTERNS = [
    (re.compile(r'"""[\s\S]*?"""'), '"STR"'),
    (re.compile(r"'''[\s\S]*?'''"), "'STR'"),
    (re.compile(r"'[^'\n]*'"), "'STR'"),
    (re.compile(r'"[^"\n]*"'), '"STR"'),
    (re.compile(r'`[^`]*`'), '`STR`'),
]
_NUMBER_PATTERN = re.compile(r'\b\d+(\.\d+)?\b')
_WHITESPACE = re.compile(r'\s+')
_INSIGNIFICANT_CHARS = re.compile(r'[{}();\s]')


class DuplicationDetector:
    """Detects exact duplicate blocks and near-duplicate files."""

    def __init__(
        self,
        min_lines: int = 5,
        max_block_lines: int = 50,
        min_block_chars: int = 20,
        similarity_threshold: float = 0.8,
        ignore_imports: bool = True,
        maximal_blocks_only: bool = True,
    ):
        """Initialize the detector.

        Args:
            min_lines: Smallest window of significant lines worth reporting
            max_block_lines: Largest window considered by the sliding window
            min_block_chars: Windows with this many or fewer meaningful
                characters are ignored
            similarity_threshold: Jaccard score at which two files are
                reported as near-duplicates
            ignore_imports: Drop import/require lines before windowing
            maximal_blocks_only: Drop blocks nested inside a longer
                duplicate; ``False`` reports every matching window
        """
        self.min_lines = min_lines
        self.max_block_lines = max_block_lines
        self.min_block_chars = min_block_chars
        self.similarity_threshold = similarity_threshold
        self.ignore_imports = ignore_imports
        self.maximal_blocks_only = maximal_blocks_only

    def detect(self, files: Iterable[Any]) -> DuplicationReport:
        """Detect duplication across files.

        Args:
            files: Items exposing ``path`` and ``content`` (attributes or keys)

        Returns:
            DuplicationReport for the batch
        """
        processed = []
        for item in files or []:
            path, content = _path_and_content(item)
            processed.append(_ProcessedFile(
                path=path,
                lines=self.significant_lines(content),
                normalized=self.normalize_code(content),
            ))

        if not processed:
            return DuplicationReport()

        duplicates = self.find_exact_duplicates(processed)
        similar = self.find_similar_files(processed)

        report = DuplicationReport(
            duplicates=duplicates,
            similar=similar,
            pairs=self._build_file_pairs(duplicates),
            file_stats=self._calculate_file_stats(processed, duplicates),
            summary=self._build_summary(processed, duplicates),
        )
        logger.debug(
            f"Duplication scan: {len(processed)} files, "
            f"{len(duplicates)} duplicate blocks, {len(similar)} similar pairs"
        )
        return report

    def significant_lines(self, content: str) -> List[SignificantLine]:
        """Non-empty (and optionally non-import) lines, stripped."""
        if not content:
            return []

        lines = []
        for index, raw in enumerate(content.split('\n')):
            text = raw.strip()
            if not text:
                continue
            if self.ignore_imports and self.is_import_line(text):
                continue
            lines.append(SignificantLine(text=text, line_number=index + 1))
        return lines

    @staticmethod
    def is_import_line(line: str) -> bool:
        """Check if a stripped line is an import/require statement."""
        return bool(_PY_IMPORT.match(line) or _JS_IMPORT.match(line) or _JS_REQUIRE.match(line))

    @staticmethod
    def normalize_code(content: str) -> str:
        """Strip comments, replace literals with placeholders, collapse whitespace."""
        if not content:
            return ''

        normalized = content
        # Literals go first so comment markers inside strings survive
        for pattern, placeholder in _STRING_PATTERNS:
            normalized = pattern.sub(placeholder, normalized)
        for pattern in _COMMENT_PATTERNS:
            normalized = pattern.sub('', normalized)
        normalized = _NUMBER_PATTERN.sub('NUM', normalized)
        return _WHITESPACE.sub(' ', normalized).strip()

    def is_significant_block(self, content: str) -> bool:
        """A block is significant when it is more than braces and punctuation."""
        return len(_INSIGNIFICANT_CHARS.sub('', content)) > self.min_block_chars

    def extract_blocks(self, lines: List[SignificantLine]) -> List[Tuple[str, int, int]]:
        """All significant sliding windows as (content, start_line, end_line)."""
        blocks = []
        count = len(lines)
        if count < self.min_lines:
            return blocks

        for start in range(count - self.min_lines + 1):
            longest = min(count - start, self.max_block_lines)
            for length in range(self.min_lines, longest + 1):
                window = lines[start:start + length]
                content = '\n'.join(line.text for line in window)
                if self.is_significant_block(content):
                    blocks.append((content, window[0].line_number, window[-1].line_number))
        return blocks

    def find_exact_duplicates(self, processed: List[_ProcessedFile]) -> List[DuplicateBlock]:
        """Group identical windows; any window seen at 2+ locations is a duplicate."""
        block_map: Dict[str, List[BlockLocation]] = defaultdict(list)
        seen = set()

        for item in processed:
            for content, start, end in self.extract_blocks(item.lines):
                marker = (content, item.path, start, end)
                if marker in seen:
                    continue
                seen.add(marker)
                block_map[content].append(BlockLocation(item.path, start, end))

        duplicates = []
        for content, locations in block_map.items():
            if len(locations) < 2:
                continue
            files = list(dict.fromkeys(loc.path for loc in locations))
            duplicates.append(DuplicateBlock(
                content=content,
                line_count=content.count('\n') + 1,
                files=files,
                locations=locations,
            ))

        if self.maximal_blocks_only:
            duplicates = self._keep_maximal_blocks(duplicates, processed)
        return duplicates

    def _keep_maximal_blocks(
        self,
        duplicates: List[DuplicateBlock],
        processed: List[_ProcessedFile],
    ) -> List[DuplicateBlock]:
        """Drop blocks that extend by one significant line into a block with as many copies.

        Every copy must extend in the same direction into the same longer block.
        """
        previous: Dict[Tuple[str, int], int] = {}
        following: Dict[Tuple[str, int], int] = {}
        for item in processed:
            numbers = [line.line_number for line in item.lines]
            for before, after in zip(numbers, numbers[1:]):
                following[(item.path, before)] = after
                previous[(item.path, after)] = before

        by_window: Dict[Tuple[str, int, int], DuplicateBlock] = {
            (loc.path, loc.start_line, loc.end_line): block
            for block in duplicates
            for loc in block.locations
        }

        def extends_into(block: DuplicateBlock, extend) -> bool:
            target = None
            for loc in block.locations:
                window = extend(loc)
                other = by_window.get(window) if window else None
                if other is None or (target is not None and other is not target):
                    return False
                target = other
            return len(target.locations) >= len(block.locations)

        def left(loc: BlockLocation):
            start = previous.get((loc.path, loc.start_line))
            return (loc.path, start, loc.end_line) if start is not None else None

        def right(loc: BlockLocation):
            end = following.get((loc.path, loc.end_line))
            return (loc.path, loc.start_line, end) if end is not None else None

        return [
            block for block in duplicates
            if not (extends_into(block, left) or extends_into(block, right))
        ]

    def find_similar_files(self, processed: List[_ProcessedFile]) -> List[SimilarPair]:
        """Compare every file pair by normalized token-set similarity."""
        similar = []
        for i in range(len(processed)):
            for j in range(i + 1, len(processed)):
                score = self.similarity(processed[i].normalized, processed[j].normalized)
                if score >= self.similarity_threshold:
                    similar.append(SimilarPair(
                        file1=processed[i].path,
                        file2=processed[j].path,
                        similarity=score,
                    ))
        return similar

    @staticmethod
    def similarity(code1: str, code2: str) -> float:
        """Jaccard similarity of the whitespace-split token sets."""
        if not code1 or not code2:
            return 0.0

        tokens1 = set(code1.split())
        tokens2 = set(code2.split())
        union = tokens1 | tokens2
        if not union:
            return 0.0
        return len(tokens1 & tokens2) / len(union)

    def _build_file_pairs(self, duplicates: List[DuplicateBlock]) -> List[FilePair]:
        pair_map: Dict[Tuple[str, str], FilePair] = {}

        for block in duplicates:
            locations = block.locations
            for i in range(len(locations)):
                for j in range(i + 1, len(locations)):
                    first, second = sorted(
                        (locations[i], locations[j]), key=lambda loc: loc.path
                    )
                    key = (first.path, second.path)
                    if key not in pair_map:
                        pair_map[key] = FilePair(file1=first.path, file2=second.path)
                    pair = pair_map[key]
                    pair.duplicates.append(PairDuplicate(
                        lines1=(first.start_line, first.end_line),
                        lines2=(second.start_line, second.end_line),
                        line_count=block.line_count,
                    ))
                    pair.total_duplicated_lines += block.line_count

        return list(pair_map.values())

    def _calculate_file_stats(
        self,
        processed: List[_ProcessedFile],
        duplicates: List[DuplicateBlock],
    ) -> Dict[str, FileStats]:
        duplicated_by_path: Dict[str, int] = defaultdict(int)
        for block in duplicates:
            for location in block.locations:
                duplicated_by_path[location.path] += location.end_line - location.start_line + 1

        stats = {}
        for item in processed:
            total_lines = len(item.lines)
            # Overlapping windows would otherwise count a line more than once
            duplicated = min(duplicated_by_path.get(item.path, 0), total_lines)
            percentage = (
                min(100, _round_half_up(duplicated / total_lines * 100))
                if total_lines > 0 else 0
            )
            stats[item.path] = FileStats(
                total_lines=total_lines,
                duplicated_lines=duplicated,
                duplication_percentage=percentage,
            )
        return stats

    @staticmethod
    def _build_summary(
        processed: List[_ProcessedFile],
        duplicates: List[DuplicateBlock],
    ) -> DuplicationSummary:
        files_with_duplication = {
            location.path for block in duplicates for location in block.locations
        }
        return DuplicationSummary(
            total_files=len(processed),
            files_with_duplication=len(files_with_duplication),
            total_duplicate_blocks=len(duplicates),
        )


def _path_and_content(item: Any) -> Tuple[str, str]:
    if isinstance(item, dict):
        return str(item["path"]), item.get("content") or ""
    return str(item.path), item.content or ""


def _round_half_up(value: float) -> int:
    return int(value + 0.5)
